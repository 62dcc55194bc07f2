"""Error handlers for the application."""
import traceback

from flask import render_template, jsonify, redirect, request, url_for
from werkzeug.exceptions import HTTPException


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        if _wants_json():
            return jsonify({"error": "Bad Request", "message": str(error)}), 400
        return render_template(
            "errors/4xx.html",
            title="Bad Request",
            reason=getattr(error, "description", None) or "Valid request format",
        ), 400

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized errors."""
        if _wants_json():
            return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401
        return redirect(url_for("auth.login"))

    @app.errorhandler(403)
    def forbidden(error):
        """Handle 403 Forbidden errors."""
        if _wants_json():
            return jsonify({"error": "Forbidden", "message": "Insufficient permissions"}), 403
        return render_template(
            "errors/4xx.html",
            title="Forbidden",
            reason="appropriate permissions",
        ), 403

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        if _wants_json():
            return jsonify({"error": "Not Found", "message": "Resource not found"}), 404
        return render_template(
            "errors/4xx.html",
            title="Not Found",
            reason="valid URL",
        ), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        app.logger.error(f"Internal error: {error}", exc_info=True)
        return _server_error_response()

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return _server_error_response()

    def _server_error_response():
        if _wants_json():
            return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500

        # Tracebacks only in debug/demo mode, never in production
        cfg = app.config.get("APP_CONFIG")
        show_details = app.debug or bool(getattr(cfg, "demo_mode", False))

        return render_template(
            "errors/500.html",
            title="Internal Server Error",
            error_message=traceback.format_exc() if show_details else None,
            show_debug=show_details,
        ), 500


def _wants_json():
    """Check if the client wants a JSON response."""
    return request.accept_mimetypes.accept_json and \
           not request.accept_mimetypes.accept_html
