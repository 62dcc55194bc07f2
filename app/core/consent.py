"""Scope assurance for delegated Graph calls.

A ConsentBroker is built once per request from the session token and passed
to each operation. Asking it for scopes returns a value describing what to
do next rather than raising: either the token already covers the scopes,
or the user must be sent through the identity provider's consent page.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union
from urllib.parse import urlencode

from app.core.graph import GraphError, GraphAPIError, INVALID_AUTHENTICATION_TOKEN

logger = logging.getLogger(__name__)

# Delegated Graph permissions
USER_READ_WRITE = "User.ReadWrite"
USER_READ_BASIC_ALL = "User.ReadBasic.All"
USER_READ_WRITE_ALL = "User.ReadWrite.All"

USER_SCOPES = frozenset({USER_READ_WRITE, USER_READ_BASIC_ALL})
USER_ADMIN_SCOPES = frozenset({USER_READ_WRITE_ALL})
EXTENSION_SCOPES = frozenset({USER_READ_WRITE})


@dataclass(frozen=True)
class ScopesGranted:
    scopes: frozenset


@dataclass(frozen=True)
class ConsentRequired:
    missing: frozenset
    redirect_url: str


ScopeOutcome = Union[ScopesGranted, ConsentRequired]


class ConsentBroker:
    """Capability object answering "does this session cover these scopes?"."""

    def __init__(self, granted: Iterable[str], login_url: str, return_to: str = "/"):
        """Initialize broker.

        Args:
            granted: Scopes carried by the current access token
            login_url: Sign-in endpoint that accepts "scope" and "next" query params
            return_to: Where to land after consent is granted
        """
        self.granted = frozenset(granted)
        self.login_url = login_url
        self.return_to = return_to
        self._requested: frozenset = frozenset()

    def _covers(self, scopes: frozenset) -> frozenset:
        granted_lower = {scope.lower() for scope in self.granted}
        return frozenset(scope for scope in scopes if scope.lower() not in granted_lower)

    def consent_url(self, scopes: Iterable[str]) -> str:
        """Sign-in URL requesting the union of granted and given scopes."""
        wanted = sorted(set(self.granted) | set(scopes))
        query = urlencode({"scope": " ".join(wanted), "next": self.return_to})
        return f"{self.login_url}?{query}"

    def ensure_scopes(self, scopes: Iterable[str]) -> ScopeOutcome:
        """Confirm the session token covers scopes, or describe the consent hand-off."""
        requested = frozenset(scopes)
        self._requested = requested
        missing = self._covers(requested)
        if not missing:
            return ScopesGranted(requested)

        logger.info("Consent required for scopes: %s", ", ".join(sorted(missing)))
        return ConsentRequired(missing=missing, redirect_url=self.consent_url(requested))

    def check_error(self, error: GraphError) -> Optional[ConsentRequired]:
        """Return a consent hand-off if a Graph failure means the token is unusable.

        A 401 (expired, revoked or under-scoped token) sends the user back
        through sign-in for the scopes most recently requested. Anything
        else is left to the caller's error message.
        """
        if not isinstance(error, GraphAPIError):
            return None
        if error.status_code != 401 and not error.is_match(INVALID_AUTHENTICATION_TOKEN):
            return None

        logger.info("Graph rejected the access token (%s); re-requesting consent", error.code or error.status_code)
        return ConsentRequired(missing=self._requested, redirect_url=self.consent_url(self._requested))
