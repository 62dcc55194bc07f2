"""
Flask decorators for authentication.

Every directory and extension page acts on behalf of the signed-in user,
so an anonymous request is sent through the OIDC login flow first and
returned to the page it asked for.
"""

import logging
from functools import wraps

from flask import redirect, request, url_for

from app.core.session import is_authenticated

logger = logging.getLogger(__name__)


def require_login(fn):
    """Redirect anonymous users to /login, coming back here afterwards."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not is_authenticated():
            next_url = request.full_path.rstrip("?") if request.method == "GET" else None
            logger.debug("Anonymous request to %s redirected to login", request.path)
            if next_url:
                return redirect(url_for("auth.login", next=next_url), code=302)
            return redirect(url_for("auth.login"), code=302)
        return fn(*args, **kwargs)
    return wrapper
