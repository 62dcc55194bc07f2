"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Flask
    secret_key: str
    secret_key_fallbacks: list[str] = field(default_factory=list)
    session_cookie_secure: bool = True
    trusted_proxy_ips: str = "127.0.0.1/32,::1/128"

    # Entra ID (OIDC)
    entra_tenant_id: str = "organizations"
    entra_client_id: str = ""
    entra_client_secret: str = ""
    entra_authority_host: str = DEFAULT_AUTHORITY_HOST
    oidc_redirect_uri: str = ""
    post_logout_redirect_uri: str = ""

    # Microsoft Graph
    graph_base_url: str = DEFAULT_GRAPH_BASE_URL
    graph_request_timeout: int = 10

    @property
    def entra_authority(self) -> str:
        """Tenant-specific authority, e.g. https://login.microsoftonline.com/contoso.onmicrosoft.com."""
        return f"{self.entra_authority_host.rstrip('/')}/{self.entra_tenant_id}"

    @property
    def entra_issuer(self) -> str:
        """v2.0 endpoint root (server metadata lives below it)."""
        return f"{self.entra_authority}/v2.0"


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _int_env(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got '{raw}'") from exc


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    # Flask secret key
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if demo_mode:
            secret_key = secrets.token_urlsafe(48)
            os.environ["FLASK_SECRET_KEY"] = secret_key
            print("[demo-mode] Generated temporary FLASK_SECRET_KEY")
        else:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")

    secret_key_fallbacks = [
        key.strip()
        for key in os.environ.get("FLASK_SECRET_KEY_FALLBACKS", "").split(",")
        if key.strip()
    ]

    # Session cookie secure flag
    session_secure_str = os.environ.get("FLASK_SESSION_COOKIE_SECURE")
    session_cookie_secure = (session_secure_str or "true").lower() == "true"

    # Trusted proxies
    trusted_proxy_ips = os.environ.get("TRUSTED_PROXY_IPS")
    if not trusted_proxy_ips:
        is_testing = os.environ.get("PYTEST_CURRENT_TEST") is not None
        if demo_mode or is_testing:
            trusted_proxy_ips = "127.0.0.1/32,::1/128"
            if demo_mode:
                print("[demo-mode] Defaulted TRUSTED_PROXY_IPS to localhost ranges")
        else:
            raise RuntimeError("TRUSTED_PROXY_IPS is required when DEMO_MODE is false.")

    # Entra ID app registration
    entra_tenant_id = _get_or_generate("ENTRA_TENANT_ID", demo_default="organizations", demo_mode=demo_mode)
    entra_client_id = _get_or_generate(
        "ENTRA_CLIENT_ID",
        demo_default="00000000-0000-0000-0000-000000000000",
        demo_mode=demo_mode,
    )
    entra_client_secret = _load_secret_from_file("entra_client_secret", "ENTRA_CLIENT_SECRET") or ""
    if not entra_client_secret and not demo_mode:
        raise RuntimeError("ENTRA_CLIENT_SECRET not found in /run/secrets or environment")
    entra_authority_host = os.environ.get("ENTRA_AUTHORITY_HOST", DEFAULT_AUTHORITY_HOST)

    oidc_redirect_uri = _get_or_generate(
        "OIDC_REDIRECT_URI",
        demo_default="http://localhost:5000/callback",
        demo_mode=demo_mode,
    )
    post_logout_redirect_uri = _get_or_generate(
        "POST_LOGOUT_REDIRECT_URI",
        demo_default="http://localhost:5000/",
        demo_mode=demo_mode,
    )

    # Microsoft Graph
    graph_base_url = os.environ.get("GRAPH_BASE_URL", DEFAULT_GRAPH_BASE_URL).rstrip("/")
    graph_request_timeout = _int_env("GRAPH_REQUEST_TIMEOUT", 10)

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; tenant={entra_tenant_id}; client_id={entra_client_id}")

    if demo_mode:
        print("[settings] WARNING: Demo defaults in use. Do not deploy with these values.")

    return AppConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        secret_key_fallbacks=secret_key_fallbacks,
        session_cookie_secure=session_cookie_secure,
        trusted_proxy_ips=trusted_proxy_ips,
        entra_tenant_id=entra_tenant_id,
        entra_client_id=entra_client_id,
        entra_client_secret=entra_client_secret,
        entra_authority_host=entra_authority_host,
        oidc_redirect_uri=oidc_redirect_uri,
        post_logout_redirect_uri=post_logout_redirect_uri,
        graph_base_url=graph_base_url,
        graph_request_timeout=graph_request_timeout,
    )
