import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with its test extra into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--all-extras",
        external=True,
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
    session.run("pytest", "tests/domain/")


@nox.session(python=PYTHON_VERSIONS)
def tests_application(session: nox.Session) -> None:
    """Run command handler tests against the in-memory providers."""
    _install(session)
    session.run("pytest", "tests/application/")


@nox.session(python=PYTHON_VERSIONS)
def tests_api(session: nox.Session) -> None:
    """Run HTTP tests and behaviour scenarios."""
    _install(session)
    session.run("pytest", "tests/integration/", "tests/bdd/")


@nox.session(python=PYTHON_VERSIONS[-1])
def concurrency(session: nox.Session) -> None:
    """Re-run the slot reservation race several times to shake out flakes."""
    _install(session)
    for _ in range(5):
        session.run("pytest", "tests/application/test_slot_reservation.py", "-k", "concurrent", "-q")
