from .classifier import (
    InboundResponse,
    ResponseShape,
    classify,
    classify_params,
    normalize_url,
    parse_params,
)
from .router import DeepLinkRouter

__all__ = [
    "DeepLinkRouter",
    "InboundResponse",
    "ResponseShape",
    "classify",
    "classify_params",
    "normalize_url",
    "parse_params",
]
