"""Directory user routes: display, list, page, create, update, delete."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List

from flask import Blueprint, render_template, request, redirect, url_for, current_app

from app.api.decorators import require_login
from app.api.helpers import graph as graph_helpers
from app.api.helpers.alerts import flash_error, flash_success, flash_info_link
from app.core.consent import USER_SCOPES, USER_ADMIN_SCOPES, ConsentBroker
from app.core.graph import (
    DirectoryUser,
    GraphError,
    GraphAPIError,
    ProfilePhoto,
    UserService,
    Found,
    Failure,
    Lookup,
)
from app.core.session import is_personal_account
from app.core.validators import require_fields

bp = Blueprint("users", __name__)

ADMIN_CONSENT_LINK_TEXT = "Provide admin consent"


@dataclass
class UserDisplayModel:
    user: Optional[DirectoryUser] = None
    photo: Optional[ProfilePhoto] = None
    manager: Optional[DirectoryUser] = None
    direct_reports: Optional[List[DirectoryUser]] = None


@dataclass
class UserListModel:
    users: List[DirectoryUser] = field(default_factory=list)
    next_page_url: Optional[str] = None


def _unwrap(result: Lookup):
    """Value of a Found lookup, None when Absent; a Failure is raised to the caller's error policy."""
    if isinstance(result, Found):
        return result.value
    if isinstance(result, Failure):
        raise result.error
    return None


def _is_truthy(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in {"true", "1", "yes", "on"}


# ─────────────────────────────────────────────────────────────────────────────
# View builders
# ─────────────────────────────────────────────────────────────────────────────
def _view_for_user(user_id: str, consent: ConsentBroker, elevated: bool):
    """Build the display model for one user and render it."""
    if not user_id:
        flash_error("User ID cannot be empty.")
        return redirect(url_for("home.error"))

    users = UserService(graph_helpers.graph_client())
    model = UserDisplayModel()

    try:
        model.user = users.get_user(user_id)

        # Photo, manager and direct reports are not supported on personal accounts
        if not is_personal_account():
            model.photo = _unwrap(users.get_photo(user_id))

            manager = users.get_manager(user_id)
            if isinstance(manager, Failure) and manager.error.is_request_denied and not elevated:
                # Token most likely lacks User.ReadWrite.All; offer the admin variant
                flash_info_link(
                    "Listing manager and direct reports for this user requires admin consent. "
                    "If you are an admin, you can use this link to consent to additional permissions.",
                    ADMIN_CONSENT_LINK_TEXT,
                    url_for("users.admin_display", userId=user_id),
                )
                return _render_display(model, elevated)
            model.manager = _unwrap(manager)

            model.direct_reports = _unwrap(users.get_direct_reports(user_id))

        return _render_display(model, elevated)
    except GraphError as exc:
        consent_response = graph_helpers.consent_redirect_for_error(consent, exc)
        if consent_response is not None:
            return consent_response
        flash_error(f"Error getting user with ID {user_id}", graph_helpers.error_detail(exc))
        return redirect(url_for("home.error"))


def _render_display(model: UserDisplayModel, elevated: bool):
    return render_template(
        "users/display.html",
        title=model.user.display_name if model.user else "User",
        model=model,
        elevated=elevated,
    )


def _view_for_user_list(is_admin: bool, consent: ConsentBroker, page_url: Optional[str] = None):
    """Render one page of users, either the first or the one a nextLink points at."""
    users = UserService(graph_helpers.graph_client())

    try:
        if page_url:
            # The nextLink carries $top, $orderby and $select already
            page = users.list_users_page(page_url)
        else:
            page = users.list_users()
    except GraphError as exc:
        consent_response = graph_helpers.consent_redirect_for_error(consent, exc)
        if consent_response is not None:
            return consent_response
        flash_error("Error getting user list", graph_helpers.error_detail(exc))
        return redirect(url_for("home.error"))

    model = UserListModel(users=page.users, next_page_url=page.next_page_url)
    return render_template(
        "users/admin_list.html" if is_admin else "users/list.html",
        title="Users",
        model=model,
        is_admin=is_admin,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/")
@require_login
def index():
    return redirect(url_for("users.list_users"))


@bp.route("/Display")
@require_login
def display():
    """Display a user without requesting admin permissions.

    The signed-in user sees their full profile; for anyone else only the
    basic profile is guaranteed.
    """
    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_SCOPES))
    if response is not None:
        return response
    return _view_for_user(request.args.get("userId", ""), consent, elevated=False)


@bp.route("/AdminDisplay")
@require_login
def admin_display():
    """Display a user with admin permissions (full profile for all users)."""
    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_ADMIN_SCOPES))
    if response is not None:
        return response
    return _view_for_user(request.args.get("userId", ""), consent, elevated=True)


@bp.route("/List")
@require_login
def list_users():
    """List users with basic profile permissions (read-only UI)."""
    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_SCOPES))
    if response is not None:
        return response
    return _view_for_user_list(False, consent)


@bp.route("/AdminList")
@require_login
def admin_list():
    """List users with admin permissions; the UI offers create and delete."""
    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_ADMIN_SCOPES))
    if response is not None:
        return response
    return _view_for_user_list(True, consent)


@bp.route("/Page")
@require_login
def page():
    """Next page of a paged user list."""
    is_admin = _is_truthy(request.args.get("isAdmin"))
    page_url = request.args.get("pageUrl", "")
    if not page_url:
        return redirect(url_for("users.admin_list" if is_admin else "users.list_users"))

    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(
        consent.ensure_scopes(USER_ADMIN_SCOPES if is_admin else USER_SCOPES)
    )
    if response is not None:
        return response
    return _view_for_user_list(is_admin, consent, page_url)


@bp.get("/Create")
@require_login
def create_form():
    """New user form, pre-filled with the organization's default domain."""
    consent = graph_helpers.consent_broker()
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_ADMIN_SCOPES))
    if response is not None:
        return response

    try:
        domain = UserService(graph_helpers.graph_client()).get_default_domain()
    except GraphError as exc:
        consent_response = graph_helpers.consent_redirect_for_error(consent, exc)
        if consent_response is not None:
            return consent_response
        flash_error("Error getting organization domain", graph_helpers.error_detail(exc))
        return redirect(url_for("users.admin_list"))

    return render_template(
        "users/create.html",
        title="New user",
        domain_name=f"@{domain}" if domain else "",
    )


@bp.post("/Create")
@require_login
def create():
    """Create a user from the submitted form."""
    display_name = request.form.get("displayName")
    user_name = request.form.get("userName")
    domain_name = request.form.get("domainName")
    password = request.form.get("password")
    mobile_phone = request.form.get("mobilePhone")

    try:
        require_fields(
            displayName=display_name,
            userName=user_name,
            domainName=domain_name,
            password=password,
        )
    except ValueError:
        flash_error("Invalid data. You must supply a value for Display name, User name, and Password")
        return redirect(url_for("users.admin_list"))

    consent = graph_helpers.consent_broker(return_to=url_for("users.create_form"))
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_ADMIN_SCOPES))
    if response is not None:
        return response

    try:
        created = UserService(graph_helpers.graph_client()).create_user(
            display_name, user_name, domain_name, password, mobile_phone
        )
    except GraphError as exc:
        consent_response = graph_helpers.consent_redirect_for_error(consent, exc)
        if consent_response is not None:
            return consent_response
        flash_error("Error creating user", graph_helpers.error_detail(exc))
        return redirect(url_for("users.admin_list"))

    current_app.logger.info("Created user %s (id=%s)", created.user_principal_name, created.id)
    flash_success("User created")
    return redirect(url_for("users.admin_list"))


@bp.post("/Update")
@require_login
def update():
    """Update a user's mobile phone number."""
    user_id = request.form.get("userId", "")
    mobile_phone = request.form.get("mobilePhone", "")

    if not user_id:
        flash_error("User ID cannot be empty.")
        return redirect(url_for("home.error"))

    display_url = url_for("users.display", userId=user_id)
    consent = graph_helpers.consent_broker(return_to=display_url)
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_SCOPES))
    if response is not None:
        return response

    try:
        UserService(graph_helpers.graph_client()).update_mobile_phone(user_id, mobile_phone)
    except GraphError as exc:
        consent_response = graph_helpers.consent_redirect_for_error(consent, exc)
        if consent_response is not None:
            return consent_response

        if isinstance(exc, GraphAPIError) and exc.is_request_denied:
            flash_info_link(
                "Updating this user requires admin consent. "
                "If you are an admin, you can use this link to consent to additional permissions, "
                "then retry your request.",
                ADMIN_CONSENT_LINK_TEXT,
                url_for("users.admin_display", userId=user_id),
            )
            return redirect(display_url)

        flash_error("Error updating user", graph_helpers.error_detail(exc))
        return redirect(display_url)

    flash_success("User updated")
    return redirect(display_url)


@bp.post("/Delete")
@require_login
def delete():
    """Delete a user."""
    user_id = request.form.get("userId", "")
    if not user_id:
        flash_error("User ID cannot be empty.")
        return redirect(url_for("users.admin_list"))

    consent = graph_helpers.consent_broker(return_to=url_for("users.admin_list"))
    response = graph_helpers.consent_redirect(consent.ensure_scopes(USER_ADMIN_SCOPES))
    if response is not None:
        return response

    try:
        UserService(graph_helpers.graph_client()).delete_user(user_id)
    except GraphError as exc:
        consent_response = graph_helpers.consent_redirect_for_error(consent, exc)
        if consent_response is not None:
            return consent_response
        flash_error(f"Error deleting user with ID {user_id}", graph_helpers.error_detail(exc))
        return redirect(url_for("users.admin_list"))

    current_app.logger.info("Deleted user %s", user_id)
    flash_success("User deleted")
    return redirect(url_for("users.admin_list"))
