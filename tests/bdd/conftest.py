"""Shared BDD fixtures and step definitions for the bakery domain."""

import pytest
from pytest_bdd import parsers, then


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured conflict and expiry errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse("the request is rejected as {code}"))
def request_rejected(error, code):
    assert error["exc"] is not None
    assert error["exc"].code == code
