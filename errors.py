"""Upstream failure kinds and their fixed translation to client-facing errors.

Every failure the tags proxy can hit is one of the ``UpstreamFailure``
subclasses below. ``translate`` turns it into an ``ApiError`` using
``TRANSLATION_TABLE`` only; upstream bodies and exception text never reach
the caller.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Tuple

from responses import ApiError


class FailureKind(str, Enum):
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    DECODE = "decode"


TRANSLATION_TABLE: Dict[FailureKind, Tuple[int, str]] = {
    FailureKind.TRANSPORT: (500, "Something went wrong! Try again later."),
    FailureKind.NOT_FOUND: (404, "Not Found"),
    FailureKind.DECODE: (500, "Internal Server Error."),
}


class UpstreamFailure(Exception):
    kind: FailureKind


class TransportFailure(UpstreamFailure):
    """Network, DNS, connect or timeout error before a response arrived."""

    kind = FailureKind.TRANSPORT


class UpstreamNotFound(UpstreamFailure):
    """Upstream answered 404 for the user/repo pair."""

    kind = FailureKind.NOT_FOUND


class DecodeFailure(UpstreamFailure):
    """Upstream answered, but the body was not a JSON array of tags."""

    kind = FailureKind.DECODE


def translate(failure: UpstreamFailure) -> ApiError:
    status_code, message = TRANSLATION_TABLE[failure.kind]
    return ApiError(statusCode=status_code, message=message)
