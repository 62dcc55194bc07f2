"""Tests for directory object parsing, narrowing and lookup results."""
import pytest

from app.core.graph import (
    DirectoryUser,
    DirectoryGroup,
    OrgContact,
    DirectoryDevice,
    UnknownDirectoryObject,
    DirectoryObjectTypeError,
    GraphAPIError,
    Found,
    Absent,
    Failure,
    lookup,
    parse_directory_object,
    as_user,
)


def test_parse_user_payload():
    obj = parse_directory_object({
        "@odata.type": "#microsoft.graph.user",
        "id": "u1",
        "displayName": "Adele Vance",
        "mail": "adelev@contoso.com",
        "mobilePhone": "+1 425 555 0109",
        "userPrincipalName": "AdeleV@contoso.com",
    })

    assert isinstance(obj, DirectoryUser)
    assert obj.kind == "user"
    assert obj.display_name == "Adele Vance"
    assert obj.mobile_phone == "+1 425 555 0109"
    assert obj.user_principal_name == "AdeleV@contoso.com"


@pytest.mark.parametrize("odata_type, expected", [
    ("#microsoft.graph.group", DirectoryGroup),
    ("#microsoft.graph.orgContact", OrgContact),
    ("#microsoft.graph.device", DirectoryDevice),
])
def test_parse_other_variants(odata_type, expected):
    obj = parse_directory_object({"@odata.type": odata_type, "id": "x", "displayName": "X"})
    assert isinstance(obj, expected)
    assert obj.display_name == "X"


def test_parse_unknown_type_keeps_odata_type():
    obj = parse_directory_object({"@odata.type": "#microsoft.graph.servicePrincipal", "id": "sp"})
    assert isinstance(obj, UnknownDirectoryObject)
    assert obj.odata_type == "#microsoft.graph.servicePrincipal"


def test_default_type_applies_when_annotation_missing():
    obj = parse_directory_object({"id": "u1", "displayName": "A"}, default_type="#microsoft.graph.user")
    assert isinstance(obj, DirectoryUser)


def test_missing_display_name_becomes_empty_string():
    user = DirectoryUser.from_graph({"id": "u1", "displayName": None})
    assert user.display_name == ""
    assert user.mail is None


def test_as_user_returns_user_unchanged():
    user = DirectoryUser(id="u1", display_name="A")
    assert as_user(user) is user


def test_as_user_rejects_group():
    with pytest.raises(DirectoryObjectTypeError) as excinfo:
        as_user(DirectoryGroup(id="g1", display_name="Sales"))
    assert excinfo.value.expected == "user"
    assert excinfo.value.actual == "group"


def test_as_user_rejects_unknown_with_its_type():
    with pytest.raises(DirectoryObjectTypeError, match="servicePrincipal"):
        as_user(UnknownDirectoryObject(id="sp", odata_type="#microsoft.graph.servicePrincipal"))


def test_lookup_found():
    assert lookup(lambda: 42, lambda exc: True) == Found(42)


def test_lookup_absent_when_predicate_matches():
    def fetch():
        raise GraphAPIError(404, "Request_ResourceNotFound", "missing")

    assert isinstance(lookup(fetch, lambda exc: exc.is_not_found), Absent)


def test_lookup_failure_keeps_error():
    error = GraphAPIError(500, "generalException", "boom")

    def fetch():
        raise error

    result = lookup(fetch, lambda exc: exc.is_not_found)
    assert isinstance(result, Failure)
    assert result.error is error


def test_lookup_does_not_swallow_narrowing_errors():
    def fetch():
        return as_user(DirectoryDevice(id="d1"))

    with pytest.raises(DirectoryObjectTypeError):
        lookup(fetch, lambda exc: True)


def test_error_code_match_is_case_insensitive():
    error = GraphAPIError(403, "authorization_requestdenied", "nope")
    assert error.is_match("Authorization_RequestDenied")
    assert error.is_request_denied
    assert not error.is_not_found
