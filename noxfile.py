import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# Packages with C extensions that must be rebuilt per Python version.
# Poetry's wheel cache can serve a .so compiled for the wrong interpreter.
_C_EXT_PACKAGES = ["psycopg2"]


def _install(session: nox.Session) -> None:
    """Install the project with all test extras into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--with",
        "test",
        "--all-extras",
        external=True,
    )
    session.run(
        "pip",
        "install",
        "--force-reinstall",
        "--no-cache-dir",
        *_C_EXT_PACKAGES,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no infrastructure required)."""
    _install(session)
    session.run(
        "pytest",
        "tests/catalogue/domain/",
        "tests/ordering/domain/",
    )


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_carrier(session: nox.Session) -> None:
    """Run carrier adapter and shipment tests only."""
    _install(session)
    session.run("pytest", "tests/ordering/", "-k", "carrier or shipment or webhook")


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_sqlite(session: nox.Session) -> None:
    """Run ordering tests against SQLite-backed repositories."""
    _install(session)
    session.run("pytest", "--env", "sqlite", "tests/ordering/")
