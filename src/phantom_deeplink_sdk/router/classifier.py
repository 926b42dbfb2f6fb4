"""Shape-based classification of inbound redirect URLs.

Wallet responses carry no message-type field; their meaning follows from which
query parameters are present. The predicates below are tried in priority
order and the first match wins.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from ..errors import MalformedUrlError


class ResponseShape(str, Enum):
    ERROR = "error"
    CONNECT = "connect"
    ENCRYPTED = "encrypted"
    UNRECOGNIZED = "unrecognized"
    EMPTY = "empty"


@dataclass(frozen=True)
class InboundResponse:
    shape: ResponseShape
    url: str
    params: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.params.get(key, default)


def _is_error(params: Mapping[str, str], has_shared_secret: bool) -> bool:
    return bool(params.get("errorCode"))


def _is_connect(params: Mapping[str, str], has_shared_secret: bool) -> bool:
    return bool(params.get("phantom_encryption_public_key") and params.get("nonce"))


def _is_encrypted(params: Mapping[str, str], has_shared_secret: bool) -> bool:
    return bool(params.get("data") and params.get("nonce") and has_shared_secret)


SHAPE_PREDICATES: list[tuple[ResponseShape, Callable[[Mapping[str, str], bool], bool]]] = [
    (ResponseShape.ERROR, _is_error),
    (ResponseShape.CONNECT, _is_connect),
    (ResponseShape.ENCRYPTED, _is_encrypted),
]


def normalize_url(value: Any) -> str | None:
    """Accept a URL string or an event carrying one in ``url``."""
    if isinstance(value, Mapping):
        value = value.get("url")
    elif value is not None and not isinstance(value, str):
        value = getattr(value, "url", None)
    if isinstance(value, str) and value:
        return value
    return None


def parse_params(url: str) -> dict[str, str] | None:
    """Parse query parameters, keeping the first value of repeated keys.

    Returns None for a URL without a query string.
    """
    try:
        parts = urlsplit(url)
    except ValueError as err:
        raise MalformedUrlError(f"Unparseable URL: {err}") from err
    if not parts.scheme:
        raise MalformedUrlError(f"URL has no scheme: {url[:50]}")
    if not parts.query:
        return None

    params: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key, value)
    return params


def classify_params(params: Mapping[str, str], has_shared_secret: bool) -> ResponseShape:
    for shape, predicate in SHAPE_PREDICATES:
        if predicate(params, has_shared_secret):
            return shape
    return ResponseShape.UNRECOGNIZED


def classify(url: str, has_shared_secret: bool) -> InboundResponse:
    """Classify an inbound URL; raises MalformedUrlError if it cannot be parsed."""
    params = parse_params(url)
    if params is None:
        return InboundResponse(shape=ResponseShape.EMPTY, url=url)
    return InboundResponse(
        shape=classify_params(params, has_shared_secret), url=url, params=params
    )
