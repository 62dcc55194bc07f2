"""Signed-in session helpers: token access, granted scopes, refresh."""
from __future__ import annotations
import logging
import time
from typing import Optional

import jwt
import requests
from flask import session, current_app

logger = logging.getLogger(__name__)

# Tenant id Entra ID uses for personal Microsoft accounts (MSA)
CONSUMER_TENANT_ID = "9188040d-6c67-4c5b-b112-36a304b66dad"

GRAPH_RESOURCE_PREFIX = "https://graph.microsoft.com/"
OIDC_SCOPES = {"openid", "profile", "email", "offline_access"}


def is_authenticated() -> bool:
    """Check if user is authenticated."""
    return bool(session.get("token"))


def current_access_token() -> str:
    token = session.get("token") or {}
    return token.get("access_token") or ""


def normalize_scope(scope: str) -> str:
    """Strip the Graph resource prefix so scopes compare by name."""
    scope = scope.strip()
    if scope.lower().startswith(GRAPH_RESOURCE_PREFIX):
        scope = scope[len(GRAPH_RESOURCE_PREFIX):]
    return scope


def _access_token_claims(access_token: str) -> dict:
    """Read access token claims without verifying the signature.

    Graph access tokens are meant for Graph; the client only inspects them.
    """
    if not access_token:
        return {}
    try:
        return jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return {}


def granted_scopes(token: Optional[dict] = None) -> set[str]:
    """Return the delegated Graph scopes the current token carries."""
    if token is None:
        token = session.get("token") or {}
    raw = token.get("scope")
    if not raw:
        raw = _access_token_claims(token.get("access_token", "")).get("scp", "")
    if isinstance(raw, (list, tuple)):
        raw = " ".join(raw)
    return {
        normalize_scope(scope)
        for scope in str(raw).split()
        if scope and normalize_scope(scope).lower() not in OIDC_SCOPES
    }


def is_personal_account() -> bool:
    """True when the signed-in identity is a personal (consumer) account."""
    id_claims = session.get("id_claims") or {}
    return str(id_claims.get("tid", "")).lower() == CONSUMER_TENANT_ID


def current_display_name() -> str:
    """Get the signed-in user's display name for the navigation bar."""
    id_claims = session.get("id_claims") or {}
    for key in ("name", "preferred_username", "email"):
        value = id_claims.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def refresh_session_token() -> Optional[bool]:
    """Refresh user's session token if needed.

    Returns:
        None if no token or not expired
        True if refresh successful
        False if refresh failed
    """
    cfg = current_app.config["APP_CONFIG"]

    token = session.get("token") or {}
    if not token:
        return None

    now = time.time()
    expires_at = token.get("expires_at")

    if expires_at is None:
        expires_in = token.get("expires_in")
        if expires_in is not None:
            try:
                expires_at = now + int(expires_in)
                token["expires_at"] = expires_at
                session["token"] = token
            except (TypeError, ValueError):
                pass

    if expires_at is None:
        return None

    token_refresh_leeway = int(current_app.config.get("OIDC_TOKEN_REFRESH_LEEWAY", 60))
    if expires_at - token_refresh_leeway > now:
        return None

    refresh_token = token.get("refresh_token")
    if not refresh_token:
        current_app.logger.warning("Session access token expired without refresh token; clearing session.")
        clear_session_tokens()
        return False

    scopes = sorted(granted_scopes(token) | {"openid", "profile", "offline_access"})
    try:
        response = requests.post(
            f"{cfg.entra_authority}/oauth2/v2.0/token",
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": cfg.entra_client_id,
                "client_secret": cfg.entra_client_secret,
                "scope": " ".join(scopes),
            },
            timeout=10,
        )
        response.raise_for_status()
        new_token = response.json()
    except (requests.RequestException, ValueError) as exc:
        current_app.logger.warning("Token refresh failed: %s", exc, exc_info=False)
        clear_session_tokens()
        return False

    if not new_token:
        clear_session_tokens()
        return False

    if "refresh_token" not in new_token:
        new_token["refresh_token"] = refresh_token

    expires_in = new_token.get("expires_in")
    if expires_in is not None:
        try:
            new_token["expires_at"] = time.time() + int(expires_in)
        except (TypeError, ValueError):
            new_token.pop("expires_at", None)

    session["token"] = new_token
    return True


def clear_session_tokens() -> None:
    """Clear all session tokens."""
    session.pop("token", None)
    session.pop("id_claims", None)
