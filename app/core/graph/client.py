"""Low-level HTTP client for the Microsoft Graph REST API.

Handles bearer authentication, URL building, error parsing and paging.
"""
from __future__ import annotations
import logging
from typing import Optional, Dict, Any, Iterator

import requests

from .exceptions import GraphAPIError, GraphTransportError, UntrustedPageLinkError

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
REQUEST_TIMEOUT = 10
NEXT_LINK = "@odata.nextLink"


class GraphClient:
    """HTTP client for Microsoft Graph bound to one delegated access token.

    One instance lives for the duration of a single inbound request; the
    token comes from the signed-in user's session.

    Usage:
        client = GraphClient("eyJ0eXAi...")
        me = client.get("/me", params={"$select": "displayName,id"})
    """

    def __init__(self, access_token: str, base_url: Optional[str] = None, timeout: int = REQUEST_TIMEOUT):
        """Initialize Graph client.

        Args:
            access_token: Delegated access token for Graph
            base_url: Graph service root (defaults to v1.0 endpoint)
            timeout: Per-request timeout in seconds
        """
        self.base_url = (base_url or GRAPH_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._token = access_token

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self._token}", "Accept": "application/json"}
        if extra:
            headers.update(extra)
        return headers

    def url_for(self, path_or_url: str) -> str:
        """Resolve a relative API path or validate an absolute continuation link.

        Raises:
            UntrustedPageLinkError: If an absolute URL is outside the Graph service root
        """
        if path_or_url.startswith(("http://", "https://")):
            if not path_or_url.startswith(self.base_url + "/"):
                raise UntrustedPageLinkError(f"Refusing to follow link outside {self.base_url}")
            return path_or_url
        return f"{self.base_url}/{path_or_url.lstrip('/')}"

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute GET request and return the decoded JSON body.

        Args:
            path: API path (e.g. "/me") or an absolute @odata.nextLink
            params: OData query parameters ($select, $top, ...)

        Raises:
            GraphAPIError: On HTTP error
            GraphTransportError: On network failure or a body that is not JSON
        """
        resp = self._send("get", path, params=params, headers=self._headers())
        return _decode(resp)

    def get_content(self, path: str) -> tuple[bytes, str]:
        """Execute GET request for binary content (e.g. a profile photo).

        Returns:
            Tuple of (raw bytes, content type)
        """
        resp = self._send("get", path, headers=self._headers({"Accept": "*/*"}))
        return resp.content, resp.headers.get("Content-Type", "image/jpeg")

    def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute POST request; returns the created entity (or {} if no body)."""
        resp = self._send("post", path, json=json, headers=self._headers())
        return _json_or_empty(resp)

    def patch(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute PATCH request; Graph usually answers 204 No Content."""
        resp = self._send("patch", path, json=json, headers=self._headers())
        return _json_or_empty(resp)

    def delete(self, path: str) -> None:
        """Execute DELETE request."""
        self._send("delete", path, headers=self._headers())

    def iter_pages(self, path: str, params: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
        """Yield each page of a collection, following @odata.nextLink until exhausted.

        The nextLink already carries every query parameter, so params are
        only sent with the first request.
        """
        page = self.get(path, params=params)
        yield page
        while page.get(NEXT_LINK):
            page = self.get(page[NEXT_LINK])
            yield page

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """Issue one HTTP request and raise for any failure.

        Raises:
            UntrustedPageLinkError: If an absolute URL is outside the Graph service root
            GraphTransportError: If the request never produced a response
            GraphAPIError: If the response status indicates error
        """
        url = self.url_for(path)
        try:
            resp = getattr(requests, method)(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Graph request failed: method=%s url=%s error=%s", method.upper(), url, exc)
            raise GraphTransportError(f"Could not reach Microsoft Graph: {exc}", url) from exc
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            GraphAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        code, message = "", resp.text
        try:
            envelope = resp.json().get("error") or {}
            code = envelope.get("code", "")
            message = envelope.get("message", "") or message
        except (ValueError, AttributeError):
            pass

        logger.warning("Graph request failed: status=%s code=%s url=%s", resp.status_code, code, resp.url)
        raise GraphAPIError(resp.status_code, code, message, resp.url)


def _decode(resp: requests.Response) -> Dict[str, Any]:
    try:
        return resp.json()
    except ValueError as exc:
        logger.warning("Graph returned a body that is not JSON: status=%s url=%s", resp.status_code, resp.url)
        raise GraphTransportError("Microsoft Graph returned a response that is not JSON", resp.url) from exc


def _json_or_empty(resp: requests.Response) -> Dict[str, Any]:
    if resp.status_code == 204 or not resp.content:
        return {}
    return _decode(resp)
