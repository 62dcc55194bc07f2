"""Roaming settings stored as an open extension on the signed-in user."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from .client import GraphClient
from .exceptions import GraphAPIError

EXTENSION_NAME = "com.contoso.roamingSettings"
OPEN_TYPE_EXTENSION = "microsoft.graph.openTypeExtension"

THEMES = ["dark", "light"]
COLORS = ["red", "orange", "yellow", "green", "blue", "purple"]
LANGUAGES = ["en-us", "en-gb", "fr-fr", "de-de", "es-es", "ja-jp"]


@dataclass(frozen=True)
class RoamingSettings:
    theme: str
    color: str
    language: str

    @classmethod
    def create(cls, theme: Optional[str], color: Optional[str], language: Optional[str]) -> "RoamingSettings":
        return cls(theme=theme or "", color=color or "", language=language or "")

    @classmethod
    def from_open_extension(cls, payload: dict) -> "RoamingSettings":
        return cls(
            theme=payload.get("theme") or "",
            color=payload.get("color") or "",
            language=payload.get("language") or "",
        )

    def to_open_extension(self) -> dict:
        return {
            "@odata.type": OPEN_TYPE_EXTENSION,
            "extensionName": EXTENSION_NAME,
            "theme": self.theme,
            "color": self.color,
            "language": self.language,
        }


class ExtensionService:
    """Create, read, replace and delete the roaming settings extension.

    Create and update stay two separate remote operations: create POSTs a
    new document and fails if one already exists, update PATCHes the
    existing one and fails if it does not.
    """

    def __init__(self, client: GraphClient):
        self.client = client

    @property
    def _path(self) -> str:
        return f"/me/extensions/{quote(EXTENSION_NAME)}"

    def get(self) -> Optional[RoamingSettings]:
        """GET /me/extensions/{name}; None when the document was never created."""
        try:
            payload = self.client.get(self._path)
        except GraphAPIError as exc:
            if exc.is_not_found:
                return None
            raise
        return RoamingSettings.from_open_extension(payload)

    def create(self, settings: RoamingSettings) -> None:
        """POST /me/extensions."""
        self.client.post("/me/extensions", json=settings.to_open_extension())

    def update(self, settings: RoamingSettings) -> None:
        """PATCH /me/extensions/{name}."""
        self.client.patch(self._path, json=settings.to_open_extension())

    def delete(self) -> bool:
        """DELETE /me/extensions/{name}.

        Returns:
            False when there was no document to delete, True otherwise
        """
        try:
            self.client.delete(self._path)
        except GraphAPIError as exc:
            if exc.is_not_found:
                return False
            raise
        return True
