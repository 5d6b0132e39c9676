import pytest


@pytest.fixture(autouse=True)
def run_around_tests(catalogue_domain):
    """Push domain context before each test, cleanup after."""
    ctx = catalogue_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()
