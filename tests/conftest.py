import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the config overlay and pins the fake carrier, so no test ever
    talks to the real carrier by accident.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["CARRIER_ADAPTER"] = "fake"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path) or "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def catalogue_domain():
    from catalogue.domain import catalogue

    catalogue.init()
    return catalogue


@pytest.fixture(scope="session")
def ordering_domain():
    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(scope="session", autouse=True)
def setup_db(catalogue_domain, ordering_domain):
    from shared.db import drop_db, setup_db

    setup_db(catalogue_domain)
    setup_db(ordering_domain)

    yield

    drop_db(ordering_domain)
    drop_db(catalogue_domain)


@pytest.fixture(autouse=True)
def _fresh_carrier():
    """Every test starts with a new fake carrier and no cached carrier token."""
    from ordering.carrier import reset_carrier
    from ordering.carrier.shiprocket import reset_token_cache

    reset_carrier()
    reset_token_cache()
    yield
    reset_carrier()
