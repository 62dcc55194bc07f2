"""Directory object variants.

Relationship endpoints (manager, directReports) return generic
directoryObject payloads discriminated by "@odata.type". They are parsed
into one of the variants below and narrowed explicitly where a user is
expected.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union

from .exceptions import DirectoryObjectTypeError

ODATA_TYPE = "@odata.type"
USER_TYPE = "#microsoft.graph.user"
GROUP_TYPE = "#microsoft.graph.group"
ORG_CONTACT_TYPE = "#microsoft.graph.orgContact"
DEVICE_TYPE = "#microsoft.graph.device"


@dataclass(frozen=True)
class DirectoryUser:
    id: str
    display_name: str = ""
    mail: Optional[str] = None
    mobile_phone: Optional[str] = None
    user_principal_name: Optional[str] = None
    account_enabled: Optional[bool] = None
    kind: str = field(default="user", init=False)

    @classmethod
    def from_graph(cls, payload: dict) -> "DirectoryUser":
        return cls(
            id=payload.get("id", ""),
            display_name=payload.get("displayName") or "",
            mail=payload.get("mail"),
            mobile_phone=payload.get("mobilePhone"),
            user_principal_name=payload.get("userPrincipalName"),
            account_enabled=payload.get("accountEnabled"),
        )


@dataclass(frozen=True)
class DirectoryGroup:
    id: str
    display_name: str = ""
    kind: str = field(default="group", init=False)


@dataclass(frozen=True)
class OrgContact:
    id: str
    display_name: str = ""
    kind: str = field(default="orgContact", init=False)


@dataclass(frozen=True)
class DirectoryDevice:
    id: str
    display_name: str = ""
    kind: str = field(default="device", init=False)


@dataclass(frozen=True)
class UnknownDirectoryObject:
    id: str
    odata_type: str = ""
    kind: str = field(default="unknown", init=False)


DirectoryObject = Union[DirectoryUser, DirectoryGroup, OrgContact, DirectoryDevice, UnknownDirectoryObject]


def parse_directory_object(payload: dict, default_type: str = "") -> DirectoryObject:
    """Parse a Graph directoryObject payload into its tagged variant.

    Args:
        payload: JSON object from Graph
        default_type: "@odata.type" to assume when the payload omits it
            (Graph drops the annotation when the endpoint is typed, e.g. /users)
    """
    odata_type = payload.get(ODATA_TYPE) or default_type
    object_id = payload.get("id", "")
    display_name = payload.get("displayName") or ""

    if odata_type == USER_TYPE:
        return DirectoryUser.from_graph(payload)
    if odata_type == GROUP_TYPE:
        return DirectoryGroup(id=object_id, display_name=display_name)
    if odata_type == ORG_CONTACT_TYPE:
        return OrgContact(id=object_id, display_name=display_name)
    if odata_type == DEVICE_TYPE:
        return DirectoryDevice(id=object_id, display_name=display_name)
    return UnknownDirectoryObject(id=object_id, odata_type=odata_type)


def as_user(obj: DirectoryObject) -> DirectoryUser:
    """Narrow a directory object to a user.

    Raises:
        DirectoryObjectTypeError: If the object is any other variant
    """
    if isinstance(obj, DirectoryUser):
        return obj
    actual = obj.odata_type if isinstance(obj, UnknownDirectoryObject) else obj.kind
    raise DirectoryObjectTypeError("user", actual or "unknown")
