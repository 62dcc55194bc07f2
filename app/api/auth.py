"""Authentication routes and OIDC helpers.

Sign-in goes through Entra ID with PKCE. /login also serves as the consent
hand-off: callers add ?scope=... to request additional delegated Graph
permissions (incremental consent) and ?next=... to come back afterwards.
"""
from __future__ import annotations
import hashlib
import base64
import re
import secrets
import string
from urllib.parse import urlencode

from flask import Blueprint, session, redirect, url_for, request, current_app
from authlib.integrations.flask_client import OAuth

bp = Blueprint("auth", __name__)

# Module-level OAuth instance (will be initialized by create_app)
oauth: OAuth = None
_client = None

BASE_SCOPES = ["openid", "profile", "email", "offline_access", "User.Read"]
_SCOPE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9.:/_-]*$")


def init_oauth(app, cfg):
    """Initialize OAuth client for Entra ID."""
    global oauth, _client

    oauth = OAuth(app)
    _client = oauth.register(
        name="entra",
        server_metadata_url=f"{cfg.entra_issuer}/.well-known/openid-configuration",
        client_id=cfg.entra_client_id,
        client_secret=cfg.entra_client_secret or None,
        # response_mode=query required for authorization code flow with Entra ID
        # Without it, Entra may try form_post which causes AADSTS900561
        client_kwargs={
            "scope": " ".join(BASE_SCOPES),
            "response_mode": "query",
        },
        fetch_token=lambda: session.get("token"),
    )
    return oauth, _client


def get_oidc_client():
    """Get the OIDC client instance."""
    if _client is None:
        raise RuntimeError("OIDC client not initialized. Call init_oauth first.")
    return _client


def requested_scopes(raw: str) -> list[str]:
    """Merge ?scope= values with the base sign-in scopes, dropping malformed entries."""
    scopes = list(BASE_SCOPES)
    for scope in (raw or "").split():
        if _SCOPE_PATTERN.match(scope) and scope not in scopes:
            scopes.append(scope)
    return scopes


def safe_next_url(raw: str) -> str:
    """Only allow local paths as post-login targets."""
    if raw and raw.startswith("/") and not raw.startswith("//") and "\\" not in raw:
        return raw
    return url_for("home.index")


# ─────────────────────────────────────────────────────────────────────────────
# PKCE Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _generate_code_verifier(length: int = 64) -> str:
    """Generate PKCE code verifier."""
    alphabet = string.ascii_letters + string.digits + "-._~"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _build_code_challenge(code_verifier: str) -> str:
    """Build PKCE code challenge from verifier."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/login")
def login():
    """Initiate OIDC login flow with PKCE.

    Query params:
        scope: Additional delegated scopes to request (space separated)
        next: Local path to return to after sign-in
    """
    cfg = current_app.config["APP_CONFIG"]
    client = get_oidc_client()

    scopes = requested_scopes(request.args.get("scope", ""))
    session["post_login_redirect"] = safe_next_url(request.args.get("next", ""))

    code_verifier = _generate_code_verifier()
    session["pkce_code_verifier"] = code_verifier
    code_challenge = _build_code_challenge(code_verifier)

    extra = [scope for scope in scopes if scope not in BASE_SCOPES]
    if extra:
        current_app.logger.info("[Auth] Requesting consent for: %s", " ".join(extra))

    return client.authorize_redirect(
        redirect_uri=cfg.oidc_redirect_uri,
        scope=" ".join(scopes),
        code_challenge=code_challenge,
        code_challenge_method="S256",
    )


@bp.route("/callback")
def callback():
    """Handle OIDC callback after successful authentication."""
    client = get_oidc_client()

    code_verifier = session.pop("pkce_code_verifier", None)
    if not code_verifier:
        return redirect(url_for("auth.login"))

    token = client.authorize_access_token(code_verifier=code_verifier)
    id_claims = dict(token.get("userinfo") or {})
    session["token"] = {key: value for key, value in token.items() if key != "userinfo"}
    session["id_claims"] = id_claims

    current_app.logger.info(
        "[Auth] Signed in: %s (scopes: %s)",
        id_claims.get("preferred_username", "unknown"),
        token.get("scope", ""),
    )

    return redirect(session.pop("post_login_redirect", None) or url_for("home.index"))


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    """Clear the local session and sign out of Entra ID."""
    cfg = current_app.config["APP_CONFIG"]
    session.clear()

    end_session_endpoint = f"{cfg.entra_authority}/oauth2/v2.0/logout"
    params = {"post_logout_redirect_uri": cfg.post_logout_redirect_uri}
    return redirect(f"{end_session_endpoint}?{urlencode(params)}")
