"""Graph Directory Console Flask Application Package.

To use the Flask app:
    from app.flask_app import app

To use the Microsoft Graph services:
    from app.core.graph import GraphClient, UserService, ExtensionService
"""
# Note: We don't import flask_app by default so app.core.graph stays usable
# without building the web application (and loading its settings)
