"""Service error taxonomy and failure classification.

Every gateway failure ends up as a :class:`ServiceError` with one of five
kinds:

============  ==============================================  =============
Kind          Meaning                                         Retry as-is?
============  ==============================================  =============
``safety``    Content policy block; the input must change     No
``api``       Authentication, configuration or model access   No
``network``   Transport failure                               Yes
``parse``     Malformed success body (possible schema drift)  Yes
``unknown``   Anything else                                   Yes
============  ==============================================  =============

Classification is an ordered chain of ``(predicate, kind)`` pairs evaluated
first to last; the first matching predicate wins and ``unknown`` is the
fallthrough. Malformed-body failures never enter the chain, they map straight
to ``parse`` because no message content is guaranteed to be present.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import httpx
from pydantic import ValidationError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    SAFETY = "safety"
    API = "api"
    NETWORK = "network"
    PARSE = "parse"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ServiceError:
    """Immutable description of one failed gateway operation."""

    kind: ErrorKind
    message: str
    details: str | None = None

    @property
    def retryable(self) -> bool:
        return is_retryable(self)

    def to_wire(self) -> dict:
        return {"type": self.kind.value, "message": self.message, "details": self.details}

    @classmethod
    def from_wire(cls, payload: dict) -> ServiceError:
        """Build an error from a ``{type, message, details}`` envelope.

        Unrecognised types degrade to ``unknown`` rather than failing.
        """
        try:
            kind = ErrorKind(payload.get("type", "unknown"))
        except ValueError:
            kind = ErrorKind.UNKNOWN
        return cls(
            kind=kind,
            message=str(payload.get("message") or DEFAULT_MESSAGES[kind]),
            details=payload.get("details"),
        )


class GatewayError(Exception):
    """Raised by gateways for failures they have already classified."""

    def __init__(self, error: ServiceError) -> None:
        super().__init__(error.message)
        self.error = error


class MalformedResponseError(Exception):
    """Raised when a gateway returns a body that cannot be parsed."""


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.SAFETY: "Visualization blocked by safety filters.",
    ErrorKind.API: "The generation service rejected the request. Check the API key and model.",
    ErrorKind.NETWORK: "Could not reach the generation service.",
    ErrorKind.PARSE: "The generation service returned an unreadable response.",
    ErrorKind.UNKNOWN: "The generation request failed.",
}

_API_MARKERS = (
    "requested entity was not found",
    "api key not valid",
    "api_key_invalid",
    "permission_denied",
    "permission denied",
    "unauthenticated",
)
_SAFETY_MARKERS = ("safety", "blocked", "prohibited_content")
_NETWORK_MARKERS = (
    "failed to fetch",
    "network",
    "connection",
    "timed out",
    "timeout",
    "unreachable",
    "econnreset",
    "econnrefused",
)
_MALFORMED_TYPES = (json.JSONDecodeError, ValidationError, MalformedResponseError)
_TRANSPORT_TYPES = (ConnectionError, TimeoutError, httpx.TransportError)

Predicate = Callable[[str, BaseException | None], bool]


def _contains_any(markers: tuple[str, ...]) -> Predicate:
    def predicate(message: str, exc: BaseException | None) -> bool:
        lowered = message.lower()
        return any(marker in lowered for marker in markers)

    return predicate


def _is_transport_failure(message: str, exc: BaseException | None) -> bool:
    return isinstance(exc, _TRANSPORT_TYPES) or _contains_any(_NETWORK_MARKERS)(message, exc)


CLASSIFICATION_CHAIN: list[tuple[Predicate, ErrorKind]] = [
    (_contains_any(_API_MARKERS), ErrorKind.API),
    (_contains_any(_SAFETY_MARKERS), ErrorKind.SAFETY),
    (_is_transport_failure, ErrorKind.NETWORK),
]


def classify_error(failure: BaseException | str) -> ServiceError:
    """Map a gateway failure to a :class:`ServiceError`.

    Args:
        failure: The raised exception, or a bare failure message.

    Returns:
        The classified error. ``details`` holds the raw failure text.
    """
    if isinstance(failure, GatewayError):
        return failure.error

    if isinstance(failure, _MALFORMED_TYPES):
        return parse_error(str(failure))

    exc = failure if isinstance(failure, BaseException) else None
    message = str(failure) or type(failure).__name__

    kind = next(
        (kind for predicate, kind in CLASSIFICATION_CHAIN if predicate(message, exc)),
        ErrorKind.UNKNOWN,
    )
    logger.debug(f"Classified failure as {kind.value}: {message}")
    return ServiceError(kind=kind, message=DEFAULT_MESSAGES[kind], details=message)


def parse_error(details: str | None = None, message: str | None = None) -> ServiceError:
    """Build a ``parse`` error for an empty or unparsable success body."""
    return ServiceError(
        kind=ErrorKind.PARSE,
        message=message or DEFAULT_MESSAGES[ErrorKind.PARSE],
        details=details,
    )


def is_retryable(error: ServiceError) -> bool:
    """Whether retrying the same request unchanged can reasonably succeed."""
    return error.kind in (ErrorKind.NETWORK, ErrorKind.PARSE, ErrorKind.UNKNOWN)
