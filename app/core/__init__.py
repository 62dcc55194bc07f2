"""Core Logic Module

This module provides the directory logic behind the web UI,
independent of the route layer.

Module Structure:
    - graph/            : Microsoft Graph client, directory objects, user and extension services
    - consent.py        : Scope assurance (ConsentBroker) and permission scope sets
    - session.py        : Signed-in session helpers (token, granted scopes, refresh)
    - validators.py     : Form input validation

Usage Pattern:
    These modules are NOT auto-imported; session.py needs a Flask request
    context while graph/ does not.

    Import explicitly when needed:
        from app.core.graph import GraphClient, UserService, ExtensionService
        from app.core.consent import ConsentBroker, USER_SCOPES
        from app.core.session import is_authenticated, granted_scopes

Public APIs:
    Graph (app.core.graph):
        - GraphClient (HTTP client bound to a delegated token)
        - UserService, ExtensionService
        - Found / Absent / Failure lookup results
        - DirectoryUser and friends, as_user()
        - GraphAPIError (exception)

    Consent (app.core.consent):
        - ConsentBroker.ensure_scopes() -> ScopesGranted | ConsentRequired
        - ConsentBroker.check_error()

    Session (app.core.session):
        - is_authenticated()
        - granted_scopes()
        - is_personal_account()
        - refresh_session_token()
"""
