from __future__ import annotations

import logging
from collections.abc import Mapping
from urllib.parse import urlencode

from ..config import Settings
from ..types import RequestPath

logger = logging.getLogger(__name__)


class UrlBuilder:
    """Builds outbound wallet URLs and the dApp's redirect link."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def build(self, path: RequestPath | str, params: Mapping[str, str]) -> str:
        """Build an absolute wallet URL; parameters keep insertion order."""
        name = path.value if isinstance(path, RequestPath) else path
        url = f"{self.settings.base_url.rstrip('/')}/{name}"
        if params:
            url = f"{url}?{urlencode(list(params.items()))}"
        return url

    def redirect_url(self, path: str | None = None) -> str:
        """Build the redirect link the wallet sends its response to.

        Development hosts (``exp://`` bases) cannot receive the redirect, so the
        app's registered scheme is used instead.
        """
        path = self.settings.redirect_path if path is None else path
        base = self.settings.redirect_base
        if base and "exp://" not in base:
            return f"{base.rstrip('/')}/{path}"
        if base:
            logger.info("🧪 Development redirect base detected - using app scheme instead")
        return f"{self.settings.redirect_scheme}://{path}"
