"""Tests for ConsentBroker scope assurance."""
from urllib.parse import parse_qs, urlparse

from app.core.consent import (
    ConsentBroker,
    ConsentRequired,
    ScopesGranted,
    USER_SCOPES,
    USER_ADMIN_SCOPES,
    EXTENSION_SCOPES,
)
from app.core.graph import GraphAPIError, DirectoryObjectTypeError


def _query(url):
    return parse_qs(urlparse(url).query)


def test_scope_sets():
    assert USER_SCOPES == {"User.ReadWrite", "User.ReadBasic.All"}
    assert USER_ADMIN_SCOPES == {"User.ReadWrite.All"}
    assert EXTENSION_SCOPES == {"User.ReadWrite"}


def test_granted_scopes_pass_through():
    broker = ConsentBroker({"User.ReadWrite", "User.ReadBasic.All"}, "/login")
    outcome = broker.ensure_scopes(USER_SCOPES)
    assert isinstance(outcome, ScopesGranted)


def test_scope_comparison_ignores_case():
    broker = ConsentBroker({"user.readwrite.all"}, "/login")
    assert isinstance(broker.ensure_scopes(USER_ADMIN_SCOPES), ScopesGranted)


def test_missing_scope_describes_consent_handoff():
    broker = ConsentBroker({"User.ReadWrite"}, "/login", return_to="/Users/List")

    outcome = broker.ensure_scopes(USER_SCOPES)

    assert isinstance(outcome, ConsentRequired)
    assert outcome.missing == {"User.ReadBasic.All"}
    params = _query(outcome.redirect_url)
    assert params["scope"] == ["User.ReadBasic.All User.ReadWrite"]
    assert params["next"] == ["/Users/List"]
    assert urlparse(outcome.redirect_url).path == "/login"


def test_consent_url_keeps_previously_granted_scopes():
    broker = ConsentBroker({"User.ReadWrite", "Mail.Read"}, "/login")
    outcome = broker.ensure_scopes(USER_ADMIN_SCOPES)
    assert _query(outcome.redirect_url)["scope"] == ["Mail.Read User.ReadWrite User.ReadWrite.All"]


def test_check_error_on_401_requests_last_scopes():
    broker = ConsentBroker({"User.ReadWrite.All"}, "/login", return_to="/Users/AdminList")
    broker.ensure_scopes(USER_ADMIN_SCOPES)

    outcome = broker.check_error(GraphAPIError(401, "InvalidAuthenticationToken", "Access token has expired"))

    assert isinstance(outcome, ConsentRequired)
    assert outcome.missing == USER_ADMIN_SCOPES
    assert _query(outcome.redirect_url)["next"] == ["/Users/AdminList"]


def test_check_error_on_invalid_token_code():
    broker = ConsentBroker(set(), "/login")
    assert broker.check_error(GraphAPIError(400, "invalidauthenticationtoken", "bad")) is not None


def test_check_error_leaves_other_failures_alone():
    broker = ConsentBroker(set(), "/login")
    assert broker.check_error(GraphAPIError(403, "Authorization_RequestDenied", "denied")) is None
    assert broker.check_error(GraphAPIError(500, "generalException", "boom")) is None
    assert broker.check_error(DirectoryObjectTypeError("user", "group")) is None
