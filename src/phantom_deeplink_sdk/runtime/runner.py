from __future__ import annotations

import asyncio
import logging
import sys

from ..client import ClusterRpcClient, RequestDispatcher, UrlBuilder, cluster_api_url
from ..config import Settings
from ..db import (
    SessionStore,
    SQLAlchemyManager,
    SQLAlchemySessionStore,
    get_process_store,
    init_db,
)
from ..errors import PreconditionError
from ..events import EventRegistry, wallet
from ..logs import ActivityLog, attach_activity_log, detach_activity_log
from ..router import DeepLinkRouter
from ..security import PayloadCodec
from ..session import SessionContext
from ..transport import BrowserLinking, Linking
from ..types import ConnectionState, EventKind, SessionEvent

logger = logging.getLogger(__name__)


class DeepLinkApp:
    """Wires the protocol pieces together around one ``SessionContext``."""

    def __init__(
        self,
        settings: Settings | None = None,
        linking: Linking | None = None,
        store: SessionStore | None = None,
        events: EventRegistry | None = None,
        db_manager: SQLAlchemyManager | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.linking = linking or BrowserLinking(initial_url=self.settings.launch_url)
        self.store = store or get_process_store()
        self.events = events or EventRegistry()
        self.codec = PayloadCodec()
        self.context = SessionContext(codec=self.codec)
        self.urls = UrlBuilder(self.settings)
        self.router = DeepLinkRouter(self.context, self.codec, self.events, self.store)
        self.dispatcher = RequestDispatcher(
            self.settings, self.context, self.linking, self.codec, self.urls, self.store
        )
        self.activity = ActivityLog()
        self._remove_listener = None
        self._rpc: ClusterRpcClient | None = None
        # Owned engine, disposed in stop()
        self.db_manager = db_manager

    @property
    def state(self) -> ConnectionState:
        return self.context.state

    @property
    def wallet_public_key(self) -> str | None:
        return self.context.wallet_public_key

    @property
    def logs(self) -> list[str]:
        return self.activity.lines

    @property
    def rpc(self) -> ClusterRpcClient:
        """Cluster RPC client for building transactions, created on first use."""
        if self._rpc is None:
            self._rpc = ClusterRpcClient(
                self.settings.rpc_url or cluster_api_url(self.settings.cluster)
            )
        return self._rpc

    async def start(self) -> None:
        """Restore persisted state, listen for redirects and handle the launch URL once."""
        attach_activity_log(self.activity)

        snapshot = await self.store.load()
        if snapshot is not None:
            self.context.restore(snapshot)

        self._remove_listener = self.linking.add_listener(self.router.on_incoming_url)

        try:
            initial_url = await self.linking.get_initial_url()
        except Exception as e:
            logger.error(f"❌ Error getting initial URL: {e}")
            initial_url = None
        if initial_url:
            logger.info("🚀 App opened with initial URL")
            await self.router.on_incoming_url(initial_url)
        logger.info("💡 Ready to connect to Phantom wallet")

    async def stop(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        detach_activity_log(self.activity)
        if self.db_manager is not None:
            await self.db_manager.close()
            self.db_manager = None

    async def connect(self) -> None:
        await self.dispatcher.connect()

    async def disconnect(self) -> None:
        """Disconnect; the local session is gone even if the wallet cannot be reached."""
        if self.context.session is None:
            raise PreconditionError("No connected wallet session to disconnect")
        try:
            await self.dispatcher.disconnect()
        finally:
            await self.router.publish(SessionEvent(kind=EventKind.DISCONNECTED))

    async def sign_message(self, text: str) -> None:
        await self.dispatcher.sign_message(text)

    async def sign_and_send_transaction(self, serialized_tx_b58: str, description: str) -> None:
        await self.dispatcher.sign_and_send_transaction(serialized_tx_b58, description)


async def create_app(
    settings: Settings | None = None,
    linking: Linking | None = None,
    events: EventRegistry | None = None,
) -> DeepLinkApp:
    """Build and start an app, persisting sessions in a database when one is configured."""
    settings = settings or Settings()
    store: SessionStore | None = None
    manager: SQLAlchemyManager | None = None
    if settings.session_db_url:
        manager = await init_db(settings, settings.session_db_url)
        store = SQLAlchemySessionStore(manager)
    app = DeepLinkApp(settings, linking, store, events, db_manager=manager)
    await app.start()
    return app


def _launch_url_from_argv(argv: list[str]) -> str | None:
    for arg in argv[1:]:
        if "://" in arg:
            return arg
    return None


async def _run_async_server() -> None:
    """Serve the HTTP redirect receiver until interrupted."""
    settings = Settings()
    if not settings.launch_url:
        settings.launch_url = _launch_url_from_argv(sys.argv)
    if not settings.redirect_base:
        settings.redirect_base = f"http://{settings.host}:{settings.port}"

    app = await create_app(settings, BrowserLinking(initial_url=settings.launch_url), wallet)

    from ..api.server import init_api, set_ready

    api = init_api(app)
    await set_ready()

    import uvicorn

    if settings.dev_mode:
        logger.info(f"🔧 DEV MODE: Starting redirect receiver on {settings.host}:{settings.port}")

    config = uvicorn.Config(api, host=settings.host, port=settings.port)
    server = uvicorn.Server(config)
    try:
        await server.serve()
    finally:
        await app.stop()


def run() -> None:
    """Main entry point: run the redirect receiver for a desktop host."""
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_run_async_server())
