"""Per-request collaborators for the route layer.

Routes obtain their Graph client and consent broker through these
functions so tests can substitute in-memory doubles.
"""
from __future__ import annotations
from typing import Optional

from flask import current_app, redirect, request, url_for

from app.core.consent import ConsentBroker, ConsentRequired, ScopeOutcome
from app.core.graph import GraphClient, GraphError
from app.core.session import current_access_token, granted_scopes


def graph_client() -> GraphClient:
    """Graph client bound to the signed-in user's access token."""
    cfg = current_app.config["APP_CONFIG"]
    return GraphClient(
        current_access_token(),
        base_url=cfg.graph_base_url,
        timeout=cfg.graph_request_timeout,
    )


def consent_broker(return_to: Optional[str] = None) -> ConsentBroker:
    """Consent capability for the current request.

    GET requests come back to the same URL after sign-in; form posts come
    back to return_to since a POST cannot be replayed through a redirect.
    """
    if return_to is None:
        return_to = request.full_path.rstrip("?") if request.method == "GET" else "/"
    return ConsentBroker(granted_scopes(), url_for("auth.login"), return_to)


def consent_redirect(outcome: ScopeOutcome):
    """Redirect response for a consent hand-off, None when scopes are granted."""
    if isinstance(outcome, ConsentRequired):
        return redirect(outcome.redirect_url)
    return None


def consent_redirect_for_error(consent: ConsentBroker, error: GraphError) -> Optional[object]:
    """Redirect to sign-in if the failure means the token is unusable."""
    outcome = consent.check_error(error)
    if outcome is not None:
        current_app.logger.info("Sending user to consent after Graph error: %s", error)
        return redirect(outcome.redirect_url)
    return None


def error_detail(error: GraphError) -> str:
    """Human-readable message extracted from a Graph failure."""
    return getattr(error, "message", "") or str(error)
