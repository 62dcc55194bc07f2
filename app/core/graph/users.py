"""Directory user operations against Microsoft Graph."""
from __future__ import annotations
import base64
from dataclasses import dataclass, field
from typing import Optional, List
from urllib.parse import quote

from .client import GraphClient, NEXT_LINK
from .exceptions import GraphAPIError, REQUEST_RESOURCE_NOT_FOUND
from .objects import DirectoryUser, USER_TYPE, as_user, parse_directory_object
from .results import Lookup, lookup

PAGE_SIZE = 25

USER_DETAIL_FIELDS = "displayName,id,mail,mobilePhone,userPrincipalName"
USER_REFERENCE_FIELDS = "displayName,id"


@dataclass(frozen=True)
class ProfilePhoto:
    content: bytes
    content_type: str = "image/jpeg"

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass
class UserPage:
    users: List[DirectoryUser] = field(default_factory=list)
    next_page_url: Optional[str] = None


def is_me(user_id: str) -> bool:
    return user_id.lower() == "me"


def user_path(user_id: str) -> str:
    """Return /me for the signed-in user, /users/{id} otherwise."""
    if is_me(user_id):
        return "/me"
    return f"/users/{quote(user_id, safe='@')}"


def principal_name(user_name: str, domain_name: str) -> str:
    """Compose a userPrincipalName; domain_name already carries the "@"."""
    return f"{user_name}{domain_name}"


def build_new_user(display_name: str, user_name: str, domain_name: str,
                   password: str, mobile_phone: Optional[str] = None) -> dict:
    """Build the POST /users payload for a new, enabled account."""
    payload = {
        "accountEnabled": True,
        "displayName": display_name,
        "userPrincipalName": principal_name(user_name, domain_name),
        "mailNickname": user_name,
        "passwordProfile": {
            "forceChangePasswordNextSignIn": True,
            "password": password,
        },
    }
    if mobile_phone:
        payload["mobilePhone"] = mobile_phone
    return payload


def _is_resource_not_found(exc: GraphAPIError) -> bool:
    return exc.is_match(REQUEST_RESOURCE_NOT_FOUND)


def _parse_user_page(page: dict) -> UserPage:
    users = [
        as_user(parse_directory_object(item, default_type=USER_TYPE))
        for item in page.get("value", [])
    ]
    return UserPage(users=users, next_page_url=page.get(NEXT_LINK))


class UserService:
    """Service for reading and managing directory users."""

    def __init__(self, client: GraphClient):
        """Initialize user service.

        Args:
            client: Graph client carrying the signed-in user's token
        """
        self.client = client

    def get_user(self, user_id: str) -> DirectoryUser:
        """GET /me or GET /users/{id}, selecting only the fields the views use."""
        payload = self.client.get(user_path(user_id), params={"$select": USER_DETAIL_FIELDS})
        return DirectoryUser.from_graph(payload)

    def get_photo(self, user_id: str) -> Lookup:
        """Fetch the full size profile photo.

        Graph answers 404 for many reasons (no photo, no Exchange Online
        mailbox, ...), so any 404 is treated as "no photo".
        """
        def fetch() -> ProfilePhoto:
            content, content_type = self.client.get_content(f"{user_path(user_id)}/photo/$value")
            return ProfilePhoto(content=content, content_type=content_type)

        return lookup(fetch, lambda exc: exc.is_not_found)

    def get_manager(self, user_id: str) -> Lookup:
        """Fetch the user's manager, narrowed to a user reference."""
        def fetch() -> DirectoryUser:
            payload = self.client.get(
                f"{user_path(user_id)}/manager",
                params={"$select": USER_REFERENCE_FIELDS},
            )
            return as_user(parse_directory_object(payload))

        return lookup(fetch, _is_resource_not_found)

    def get_direct_reports(self, user_id: str) -> Lookup:
        """Fetch every direct report, following continuation pages until exhausted."""
        def fetch() -> List[DirectoryUser]:
            reports: List[DirectoryUser] = []
            pages = self.client.iter_pages(
                f"{user_path(user_id)}/directReports",
                params={"$top": PAGE_SIZE, "$select": USER_REFERENCE_FIELDS},
            )
            for page in pages:
                reports.extend(as_user(parse_directory_object(item)) for item in page.get("value", []))
            return reports

        return lookup(fetch, _is_resource_not_found)

    def list_users(self) -> UserPage:
        """First page of users, sorted by display name."""
        page = self.client.get(
            "/users",
            params={
                "$top": PAGE_SIZE,
                "$orderby": "displayName",
                "$select": USER_REFERENCE_FIELDS,
            },
        )
        return _parse_user_page(page)

    def list_users_page(self, page_url: str) -> UserPage:
        """Follow a nextLink returned by a previous listing, verbatim."""
        return _parse_user_page(self.client.get(page_url))

    def get_default_domain(self) -> str:
        """Return the organization's default verified domain name.

        Falls back to the first verified domain when none is marked default.
        """
        result = self.client.get("/organization", params={"$select": "verifiedDomains"})
        organizations = result.get("value", [])
        if not organizations:
            return ""
        domains = organizations[0].get("verifiedDomains") or []
        for domain in domains:
            if domain.get("isDefault"):
                return domain.get("name", "")
        return domains[0].get("name", "") if domains else ""

    def create_user(self, display_name: str, user_name: str, domain_name: str,
                    password: str, mobile_phone: Optional[str] = None) -> DirectoryUser:
        """POST /users."""
        payload = build_new_user(display_name, user_name, domain_name, password, mobile_phone)
        created = self.client.post("/users", json=payload)
        return DirectoryUser.from_graph(created)

    def update_mobile_phone(self, user_id: str, mobile_phone: str) -> None:
        """PATCH /users/{id} with only the mobile phone set (empty clears it)."""
        self.client.patch(user_path(user_id), json={"mobilePhone": mobile_phone or None})

    def delete_user(self, user_id: str) -> None:
        """DELETE /users/{id}."""
        self.client.delete(user_path(user_id))
