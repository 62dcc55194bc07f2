"""Roaming settings routes backed by an open extension on the signed-in user."""
from flask import Blueprint, render_template, request, redirect, url_for, current_app

from app.api.decorators import require_login
from app.api.helpers import graph as graph_helpers
from app.api.helpers.alerts import flash_error, flash_success, flash_info
from app.core.consent import EXTENSION_SCOPES
from app.core.graph import (
    ExtensionService,
    GraphError,
    RoamingSettings,
    THEMES,
    COLORS,
    LANGUAGES,
)
from app.core.validators import validate_choice

bp = Blueprint("extensions", __name__)


def _settings_from_form() -> RoamingSettings:
    """Read and validate the three select fields; raises ValueError on bad input."""
    theme = request.form.get("SelectedTheme")
    color = request.form.get("SelectedColor")
    language = request.form.get("SelectedLanguage")

    validate_choice(theme, THEMES, "Theme")
    validate_choice(color, COLORS, "Color")
    validate_choice(language, LANGUAGES, "Language")
    return RoamingSettings.create(theme, color, language)


def _failed(consent, exc: GraphError, message: str):
    response = graph_helpers.consent_redirect_for_error(consent, exc)
    if response is not None:
        return response
    flash_error(message, graph_helpers.error_detail(exc))
    return redirect(url_for("extensions.index"))


@bp.route("")
@require_login
def index():
    """Show the current roaming settings, or the empty state with a create form."""
    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(consent.ensure_scopes(EXTENSION_SCOPES))
    if response is not None:
        return response

    try:
        settings = ExtensionService(graph_helpers.graph_client()).get()
    except GraphError as exc:
        response = graph_helpers.consent_redirect_for_error(consent, exc)
        if response is not None:
            return response
        flash_error("Error getting open extension on user", graph_helpers.error_detail(exc))
        return redirect(url_for("home.error"))

    return render_template(
        "extensions/index.html",
        title="Roaming settings",
        settings=settings,
        themes=THEMES,
        colors=COLORS,
        languages=LANGUAGES,
    )


@bp.post("/Create")
@require_login
def create():
    try:
        settings = _settings_from_form()
    except ValueError as exc:
        flash_error("Invalid roaming settings", str(exc))
        return redirect(url_for("extensions.index"))

    consent = graph_helpers.consent_broker(return_to=url_for("extensions.index"))
    response = graph_helpers.consent_redirect(consent.ensure_scopes(EXTENSION_SCOPES))
    if response is not None:
        return response

    try:
        ExtensionService(graph_helpers.graph_client()).create(settings)
    except GraphError as exc:
        # Includes the conflict raised when the document already exists
        return _failed(consent, exc, "Error creating extension")

    current_app.logger.info("Created roaming settings extension")
    flash_success("Roaming settings created")
    return redirect(url_for("extensions.index"))


@bp.post("/Update")
@require_login
def update():
    try:
        settings = _settings_from_form()
    except ValueError as exc:
        flash_error("Invalid roaming settings", str(exc))
        return redirect(url_for("extensions.index"))

    consent = graph_helpers.consent_broker(return_to=url_for("extensions.index"))
    response = graph_helpers.consent_redirect(consent.ensure_scopes(EXTENSION_SCOPES))
    if response is not None:
        return response

    try:
        ExtensionService(graph_helpers.graph_client()).update(settings)
    except GraphError as exc:
        return _failed(consent, exc, "Error updating extension")

    flash_success("Roaming settings updated")
    return redirect(url_for("extensions.index"))


@bp.post("/Delete")
@require_login
def delete():
    consent = graph_helpers.consent_broker(return_to=url_for("extensions.index"))
    response = graph_helpers.consent_redirect(consent.ensure_scopes(EXTENSION_SCOPES))
    if response is not None:
        return response

    try:
        deleted = ExtensionService(graph_helpers.graph_client()).delete()
    except GraphError as exc:
        return _failed(consent, exc, "Error deleting extension")

    if not deleted:
        flash_info("No roaming settings to delete")
    else:
        current_app.logger.info("Deleted roaming settings extension")
        flash_success("Roaming settings deleted")
    return redirect(url_for("extensions.index"))
