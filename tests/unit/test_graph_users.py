"""Tests for UserService against the in-memory Graph."""
import pytest

from app.core.graph import (
    UserService,
    DirectoryUser,
    DirectoryObjectTypeError,
    Found,
    Absent,
    Failure,
    PAGE_SIZE,
    build_new_user,
    principal_name,
    user_path,
)

BASE = "https://graph.microsoft.com/v1.0"


def test_user_path_for_me_is_case_insensitive():
    assert user_path("me") == "/me"
    assert user_path("ME") == "/me"
    assert user_path("Me") == "/me"


def test_user_path_for_other_ids():
    assert user_path("87d349ed-44d7-43e1-9a83-5f2406dee5bd") == "/users/87d349ed-44d7-43e1-9a83-5f2406dee5bd"
    assert user_path("AdeleV@contoso.com") == "/users/AdeleV@contoso.com"


def test_principal_name_is_plain_concatenation():
    assert principal_name("megan", "@contoso.com") == "megan@contoso.com"
    assert principal_name("megan", "contoso.com") == "megancontoso.com"


def test_build_new_user_payload():
    payload = build_new_user("Megan Bowen", "meganb", "@contoso.com", "P@ssw0rd!", "+1 555 0100")

    assert payload == {
        "accountEnabled": True,
        "displayName": "Megan Bowen",
        "userPrincipalName": "meganb@contoso.com",
        "mailNickname": "meganb",
        "passwordProfile": {"forceChangePasswordNextSignIn": True, "password": "P@ssw0rd!"},
        "mobilePhone": "+1 555 0100",
    }


def test_build_new_user_omits_empty_mobile_phone():
    assert "mobilePhone" not in build_new_user("A", "a", "@b.com", "pw", "")


def test_get_user_selects_detail_fields(graph):
    graph.respond("GET", "/me", {"id": "u1", "displayName": "Adele Vance", "mobilePhone": "+1 555"})

    user = UserService(graph).get_user("me")

    assert user == DirectoryUser(id="u1", display_name="Adele Vance", mobile_phone="+1 555")
    assert graph.calls[0].params == {"$select": "displayName,id,mail,mobilePhone,userPrincipalName"}


def test_get_photo_found(graph):
    graph.respond("GET", "/users/u1/photo/$value", (b"jpegbytes", "image/jpeg"))

    result = UserService(graph).get_photo("u1")

    assert isinstance(result, Found)
    assert result.value.content == b"jpegbytes"
    assert result.value.data_uri == "data:image/jpeg;base64,anBlZ2J5dGVz"


def test_get_photo_any_404_is_absent(graph):
    graph.fail("GET", "/users/u1/photo/$value", 404, "ImageNotFound")
    assert isinstance(UserService(graph).get_photo("u1"), Absent)


def test_get_photo_other_failure(graph):
    graph.fail("GET", "/users/u1/photo/$value", 500, "generalException")
    result = UserService(graph).get_photo("u1")
    assert isinstance(result, Failure)
    assert result.error.status_code == 500


def test_get_manager_found(graph):
    graph.respond("GET", "/users/u1/manager", {
        "@odata.type": "#microsoft.graph.user", "id": "m1", "displayName": "Nestor Wilke",
    })

    result = UserService(graph).get_manager("u1")

    assert result == Found(DirectoryUser(id="m1", display_name="Nestor Wilke"))
    assert graph.calls[0].params == {"$select": "displayName,id"}


def test_get_manager_resource_not_found_is_absent(graph):
    graph.fail("GET", "/me/manager", 404, "Request_ResourceNotFound")
    assert isinstance(UserService(graph).get_manager("me"), Absent)


def test_get_manager_request_denied_is_failure(graph):
    graph.fail("GET", "/users/u1/manager", 403, "Authorization_RequestDenied")
    result = UserService(graph).get_manager("u1")
    assert isinstance(result, Failure)
    assert result.error.is_request_denied


def test_get_manager_that_is_not_a_user_raises(graph):
    graph.respond("GET", "/users/u1/manager", {"@odata.type": "#microsoft.graph.orgContact", "id": "c1"})
    with pytest.raises(DirectoryObjectTypeError):
        UserService(graph).get_manager("u1")


def test_get_direct_reports_follows_every_page(graph):
    graph.respond("GET", "/me/directReports", {
        "value": [{"@odata.type": "#microsoft.graph.user", "id": "r1", "displayName": "Alex"}],
        "@odata.nextLink": f"{BASE}/me/directReports?$skiptoken=p2",
    })
    graph.respond("GET", "/me/directReports?$skiptoken=p2", {
        "value": [{"@odata.type": "#microsoft.graph.user", "id": "r2", "displayName": "Brian"}],
    })

    result = UserService(graph).get_direct_reports("me")

    assert isinstance(result, Found)
    assert [user.id for user in result.value] == ["r1", "r2"]
    assert graph.calls[0].params == {"$top": PAGE_SIZE, "$select": "displayName,id"}


def test_get_direct_reports_not_found_is_absent(graph):
    graph.fail("GET", "/users/u1/directReports", 404, "Request_ResourceNotFound")
    assert isinstance(UserService(graph).get_direct_reports("u1"), Absent)


def test_list_users_first_page(graph):
    graph.respond("GET", "/users", {
        "value": [{"id": "a", "displayName": "Adele"}, {"id": "b", "displayName": "Alex"}],
        "@odata.nextLink": f"{BASE}/users?$skiptoken=xyz",
    })

    page = UserService(graph).list_users()

    assert [user.display_name for user in page.users] == ["Adele", "Alex"]
    assert page.next_page_url == f"{BASE}/users?$skiptoken=xyz"
    assert graph.calls[0].params == {"$top": 25, "$orderby": "displayName", "$select": "displayName,id"}


def test_list_users_last_page_has_no_next_link(graph):
    graph.respond("GET", "/users?$skiptoken=xyz", {"value": [{"id": "z", "displayName": "Zrinka"}]})

    page = UserService(graph).list_users_page(f"{BASE}/users?$skiptoken=xyz")

    assert page.next_page_url is None
    assert graph.calls[0].params is None


@pytest.mark.parametrize("domains, expected", [
    ([{"name": "contoso.onmicrosoft.com", "isDefault": False}, {"name": "contoso.com", "isDefault": True}], "contoso.com"),
    ([{"name": "contoso.onmicrosoft.com", "isDefault": False}], "contoso.onmicrosoft.com"),
    ([], ""),
])
def test_get_default_domain(graph, domains, expected):
    graph.respond("GET", "/organization", {"value": [{"verifiedDomains": domains}]})
    assert UserService(graph).get_default_domain() == expected


def test_create_user_posts_payload(graph):
    graph.respond("POST", "/users", {"id": "new", "displayName": "Megan Bowen", "userPrincipalName": "meganb@contoso.com"})

    created = UserService(graph).create_user("Megan Bowen", "meganb", "@contoso.com", "pw")

    assert created.id == "new"
    assert graph.calls[0].json["userPrincipalName"] == "meganb@contoso.com"
    assert graph.calls[0].json["passwordProfile"]["forceChangePasswordNextSignIn"] is True


def test_update_mobile_phone_patches_only_phone(graph):
    graph.respond("PATCH", "/users/u1")
    UserService(graph).update_mobile_phone("u1", "+1 555 0100")
    assert graph.calls[0].json == {"mobilePhone": "+1 555 0100"}


def test_update_mobile_phone_empty_clears_value(graph):
    graph.respond("PATCH", "/me")
    UserService(graph).update_mobile_phone("me", "")
    assert graph.calls[0].json == {"mobilePhone": None}


def test_delete_user(graph):
    graph.respond("DELETE", "/users/u1")
    UserService(graph).delete_user("u1")
    assert graph.calls_to("DELETE", "/users/u1")
