"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.
"""
from __future__ import annotations
import ipaddress
import hmac
import os
import secrets
from tempfile import gettempdir

from flask import Flask, session, request, g, abort, redirect, url_for
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from app.config import load_settings

FORWARDED_HEADERS = ("X-Forwarded-For", "X-Forwarded-Proto", "X-Forwarded-Host")


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> Flask:
    """Create and configure Flask application."""
    cfg = load_settings()

    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key
    if cfg.secret_key_fallbacks:
        app.config["SECRET_KEY_FALLBACKS"] = cfg.secret_key_fallbacks

    # Graph tokens are too large for a cookie session
    app.config["SESSION_TYPE"] = os.environ.get("FLASK_SESSION_TYPE", "filesystem")
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "graph_console_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure

    app.config["OIDC_TOKEN_REFRESH_LEEWAY"] = int(os.environ.get("OIDC_TOKEN_REFRESH_LEEWAY", "60"))

    Session(app)

    # Trust X-Forwarded-* headers from the reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    trusted_proxy_networks = _parse_networks(cfg.trusted_proxy_ips)
    app.config["TRUSTED_PROXY_NETWORKS"] = trusted_proxy_networks
    app.config["CSRF_SESSION_KEY"] = "_csrf_token"

    # Initialize OIDC
    from app.api import auth
    auth.init_oauth(app, cfg)

    # Register blueprints
    from app.api import home, health, errors, users, extensions

    app.register_blueprint(auth.bp)
    app.register_blueprint(home.bp)
    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp, url_prefix="/Users")
    app.register_blueprint(extensions.bp, url_prefix="/Extensions")

    errors.register_error_handlers(app)
    _register_middleware(app, trusted_proxy_networks)
    _register_context_processors(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print(f"[flask_app] Microsoft Graph endpoint: {cfg.graph_base_url}")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with demo credentials")

    return app


def _parse_networks(raw: str) -> list:
    """Parse a comma-separated list of CIDR ranges, skipping invalid entries."""
    networks = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            print(f"[flask_app] Ignoring invalid TRUSTED_PROXY_IPS entry: {entry}")
    return networks


def _register_middleware(app: Flask, trusted_proxy_networks: list):
    """Register before_request middleware."""

    @app.before_request
    def enforce_proxy_headers() -> None:
        """Validate proxy headers from trusted sources only."""
        # ProxyFix keeps the pre-rewrite WSGI values under this key
        original_remote = request.environ.get("werkzeug.proxy_fix.orig", {}).get("REMOTE_ADDR")
        forwarded = any(request.headers.get(name) for name in FORWARDED_HEADERS)
        if original_remote and forwarded:
            try:
                address = ipaddress.ip_address(original_remote)
            except ValueError:
                abort(400, description="Invalid proxy address")
            if not any(address in network for network in trusted_proxy_networks):
                abort(400, description="Untrusted proxy")

        forwarded_proto = request.headers.get("X-Forwarded-Proto")
        if forwarded_proto and forwarded_proto != "https":
            abort(400, description="Invalid forwarded protocol")

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for and "," in forwarded_for:
            abort(400, description="Multiple forwarded clients not permitted")

        g.csrf_token = _generate_csrf_token()

    @app.before_request
    def enforce_csrf() -> None:
        """Validate CSRF token for state-changing requests."""
        if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
            return

        submitted_token = request.form.get("csrf_token") or request.headers.get("X-CSRF-Token", "")
        session_token = session.get(app.config["CSRF_SESSION_KEY"], "")

        if not session_token or not submitted_token or not hmac.compare_digest(session_token, submitted_token):
            abort(400, description="CSRF validation failed")

    @app.before_request
    def ensure_fresh_token():
        """Refresh the Graph access token if it is about to expire."""
        from app.core.session import is_authenticated, refresh_session_token

        if not is_authenticated():
            return

        endpoint = (request.endpoint or "").rsplit(".", 1)[-1]
        skip_endpoints = {"login", "logout", "callback", "health_check", "readiness_check", "static"}
        if endpoint in skip_endpoints:
            return

        if request.path.startswith("/static/"):
            return

        outcome = refresh_session_token()
        if outcome is False and not is_authenticated():
            return redirect(url_for("auth.login"))


def _register_context_processors(app: Flask):
    """Register context processors for templates."""

    @app.context_processor
    def inject_global_context():
        """Inject global variables into all templates."""
        from app.core.session import is_authenticated, current_display_name

        authenticated = is_authenticated()
        return {
            "csrf_token": g.get("csrf_token") or _generate_csrf_token(),
            "is_authenticated": authenticated,
            "user_display_name": current_display_name() if authenticated else "",
        }


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────────────────────────────────────────────
def _generate_csrf_token() -> str:
    """Generate or retrieve CSRF token for current session."""
    csrf_session_key = "_csrf_token"
    token = session.get(csrf_session_key)
    if not token:
        token = secrets.token_urlsafe(32)
        session[csrf_session_key] = token
    return token


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
