"""Flash message helpers for redirect-with-notice responses.

Each alert is flashed as a dict so templates can render an optional debug
detail (the Graph error message) or a call-to-action link next to the text.
"""
from __future__ import annotations
from typing import Optional

from flask import flash

SUCCESS = "success"
ERROR = "error"
INFO = "info"


def _alert(message: str, debug: Optional[str] = None,
           link_text: Optional[str] = None, link_url: Optional[str] = None) -> dict:
    alert = {"message": message}
    if debug:
        alert["debug"] = debug
    if link_text and link_url:
        alert["link_text"] = link_text
        alert["link_url"] = link_url
    return alert


def flash_success(message: str, debug: Optional[str] = None) -> None:
    flash(_alert(message, debug), SUCCESS)


def flash_error(message: str, debug: Optional[str] = None) -> None:
    flash(_alert(message, debug), ERROR)


def flash_info(message: str) -> None:
    flash(_alert(message), INFO)


def flash_info_link(message: str, link_text: str, link_url: str) -> None:
    """Informational banner with an action link (e.g. "Provide admin consent")."""
    flash(_alert(message, link_text=link_text, link_url=link_url), INFO)
