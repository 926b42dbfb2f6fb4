"""OS URL dispatch collaborators.

``Linking`` is the seam between the protocol and whatever hands URLs to other
applications and delivers redirects back: an in-process implementation for
tests and development, and a desktop one backed by the system browser.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import webbrowser
from collections.abc import Awaitable, Callable
from typing import Any, Protocol
from urllib.parse import urlsplit

from ..errors import DispatchError

logger = logging.getLogger(__name__)

UrlListener = Callable[[Any], Awaitable[None] | None]


class Linking(Protocol):
    async def open_url(self, url: str) -> None: ...

    async def can_open_url(self, url: str) -> bool: ...

    async def get_initial_url(self) -> str | None: ...

    def add_listener(self, callback: UrlListener) -> Callable[[], None]: ...


class BaseLinking:
    """Listener bookkeeping shared by the linking implementations."""

    def __init__(self, initial_url: str | None = None) -> None:
        self._initial_url = initial_url
        self._listeners: list[UrlListener] = []

    async def get_initial_url(self) -> str | None:
        return self._initial_url

    def add_listener(self, callback: UrlListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)
                logger.debug("📱 Deep link listener removed")

        return remove

    async def deliver(self, url: Any) -> None:
        """Deliver an inbound URL (or URL event) to every registered listener."""
        for callback in list(self._listeners):
            result = callback(url)
            if inspect.isawaitable(result):
                await result


class MemoryLinking(BaseLinking):
    """In-process linking: records outbound URLs and loops back the app's own scheme."""

    def __init__(
        self,
        initial_url: str | None = None,
        supported_schemes: set[str] | None = None,
        loopback_schemes: set[str] | None = None,
    ) -> None:
        super().__init__(initial_url)
        self.supported_schemes = supported_schemes
        self.loopback_schemes = loopback_schemes or set()
        self.opened: list[str] = []

    async def can_open_url(self, url: str) -> bool:
        scheme = urlsplit(url).scheme
        if scheme in self.loopback_schemes:
            return True
        return self.supported_schemes is None or scheme in self.supported_schemes

    async def open_url(self, url: str) -> None:
        if not await self.can_open_url(url):
            raise DispatchError(
                f"No installed application can open '{urlsplit(url).scheme}://' links. "
                "Install the Phantom wallet app and try again."
            )
        self.opened.append(url)
        if urlsplit(url).scheme in self.loopback_schemes:
            await self.deliver(url)


class BrowserLinking(BaseLinking):
    """Desktop linking through the system browser (universal links)."""

    async def can_open_url(self, url: str) -> bool:
        try:
            webbrowser.get()
        except webbrowser.Error:
            return False
        return True

    async def open_url(self, url: str) -> None:
        try:
            opened = await asyncio.to_thread(webbrowser.open, url)
        except webbrowser.Error as err:
            raise DispatchError(f"System browser unavailable: {err}") from err
        if not opened:
            raise DispatchError(
                "The system could not open the wallet link. "
                "Check that a browser or the Phantom app is installed."
            )
