"""Home page and the generic error view."""
from flask import Blueprint, render_template

from app.core.session import is_authenticated, current_display_name

bp = Blueprint("home", __name__)


@bp.route("/")
def index():
    """Home page."""
    return render_template(
        "index.html",
        title="Home",
        display_name=current_display_name() if is_authenticated() else "",
    )


@bp.route("/error")
def error():
    """Generic error page; the reason arrives as a flashed alert."""
    return render_template("error.html", title="Error")
