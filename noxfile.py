import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with its test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no cross-context wiring exercised)."""
    _install(session)
    session.run(
        "pytest",
        "tests/customer_orders/domain/",
        "tests/manufacturing/domain/",
        "tests/shared/",
    )


@nox.session(python=PYTHON_VERSIONS)
def tests_integration(session: nox.Session) -> None:
    """Run the cross-context correlation scenarios."""
    _install(session)
    session.run("pytest", "-m", "integration")
