import asyncio

from phantom_deeplink_sdk import (
    ConnectionState,
    DeepLinkApp,
    EventKind,
    MemoryLinking,
    SessionEvent,
    Settings,
)
from phantom_deeplink_sdk.dev import probe_linking, simulate_connect_response


async def main():
    # Loop our own scheme back so simulated redirects reach the router
    linking = MemoryLinking(loopback_schemes={"phantomtestapp"})
    app = DeepLinkApp(Settings(), linking)

    @app.events.on_connected()
    async def connected(event: SessionEvent):
        print(f"✅ Connected: {event.data['public_key']}")

    @app.events.on_signature()
    def signed(event: SessionEvent):
        print(f"✍️ Signature: {event.data['signature']}")

    @app.events.on(EventKind.INFORMATIONAL)
    def informational(event: SessionEvent):
        print(f"📍 {event.url}")

    await app.start()
    print(await probe_linking(app))

    await app.connect()
    print(f"Outbound connect URL: {linking.opened[-1]}")

    # No wallet on this host; answer the request ourselves
    await simulate_connect_response(app)
    assert app.state is ConnectionState.CONNECTED

    await app.sign_message("Hello from the dApp")
    print(f"Outbound sign URL: {linking.opened[-1]}")

    blockhash = app.rpc.get_latest_blockhash()
    print(f"Latest {app.settings.cluster} blockhash: {blockhash.blockhash}")

    await app.disconnect()

    for line in app.logs:
        print(line)
    await app.stop()


if __name__ == "__main__":
    asyncio.run(main())
