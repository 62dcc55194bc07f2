"""Outcome of an optional sub-resource lookup.

Photo, manager and direct-report lookups answer one of three ways: the
resource was found, it does not exist (an expected empty state), or the
request failed. Callers dispatch on the variant instead of catching.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Union

from .exceptions import GraphAPIError


@dataclass(frozen=True)
class Found:
    value: Any


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Failure:
    error: GraphAPIError


Lookup = Union[Found, Absent, Failure]


def lookup(fetch: Callable[[], Any], is_absent: Callable[[GraphAPIError], bool]) -> Lookup:
    """Run fetch() and classify the outcome.

    Args:
        fetch: Zero-argument callable performing the Graph request
        is_absent: Predicate deciding which Graph errors mean "does not exist"
    """
    try:
        return Found(fetch())
    except GraphAPIError as exc:
        if is_absent(exc):
            return Absent()
        return Failure(exc)
