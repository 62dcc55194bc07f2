"""Microsoft Graph client library.

Architecture:
- client.py: HTTP client with bearer auth, error parsing and paging
- objects.py: Directory object variants and explicit narrowing
- results.py: Found / Absent / Failure outcome of optional lookups
- users.py: Directory user operations (read, list, create, update, delete)
- extensions.py: Roaming settings open extension on the signed-in user
- exceptions.py: Typed exceptions and the Graph error codes we react to

Usage:
    from app.core.graph import GraphClient, UserService

    client = GraphClient(access_token)
    user = UserService(client).get_user("me")
"""
from .client import GraphClient, GRAPH_BASE_URL, REQUEST_TIMEOUT, NEXT_LINK
from .exceptions import (
    GraphError,
    GraphAPIError,
    DirectoryObjectTypeError,
    UntrustedPageLinkError,
    GraphTransportError,
    REQUEST_RESOURCE_NOT_FOUND,
    REQUEST_DENIED,
    INVALID_AUTHENTICATION_TOKEN,
)
from .objects import (
    DirectoryUser,
    DirectoryGroup,
    OrgContact,
    DirectoryDevice,
    UnknownDirectoryObject,
    parse_directory_object,
    as_user,
)
from .results import Found, Absent, Failure, Lookup, lookup
from .users import (
    UserService,
    UserPage,
    ProfilePhoto,
    PAGE_SIZE,
    is_me,
    user_path,
    principal_name,
    build_new_user,
)
from .extensions import (
    ExtensionService,
    RoamingSettings,
    EXTENSION_NAME,
    THEMES,
    COLORS,
    LANGUAGES,
)

__all__ = [
    # Client
    "GraphClient",
    "GRAPH_BASE_URL",
    "REQUEST_TIMEOUT",
    "NEXT_LINK",

    # Exceptions
    "GraphError",
    "GraphAPIError",
    "DirectoryObjectTypeError",
    "UntrustedPageLinkError",
    "GraphTransportError",
    "REQUEST_RESOURCE_NOT_FOUND",
    "REQUEST_DENIED",
    "INVALID_AUTHENTICATION_TOKEN",

    # Directory objects
    "DirectoryUser",
    "DirectoryGroup",
    "OrgContact",
    "DirectoryDevice",
    "UnknownDirectoryObject",
    "parse_directory_object",
    "as_user",

    # Lookup results
    "Found",
    "Absent",
    "Failure",
    "Lookup",
    "lookup",

    # Users
    "UserService",
    "UserPage",
    "ProfilePhoto",
    "PAGE_SIZE",
    "is_me",
    "user_path",
    "principal_name",
    "build_new_user",

    # Extensions
    "ExtensionService",
    "RoamingSettings",
    "EXTENSION_NAME",
    "THEMES",
    "COLORS",
    "LANGUAGES",
]
