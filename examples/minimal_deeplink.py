from phantom_deeplink_sdk import SessionEvent, run, wallet


@wallet.on_connected()
async def on_connected(event: SessionEvent):
    print(f"Connected wallet: {event.data['public_key']}")


@wallet.on_error()
def on_error(event: SessionEvent):
    print(f"Phantom error: {event.error}")


if __name__ == "__main__":
    run()
