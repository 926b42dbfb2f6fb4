"""Development helpers for checking redirect registration and simulating responses."""

import logging
import time
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from ..errors import DispatchError
from ..security import KeyPairProvider, b58encode

if TYPE_CHECKING:
    from ..runtime.runner import DeepLinkApp

logger = logging.getLogger(__name__)


async def check_redirect_url(app: "DeepLinkApp") -> bool:
    """Open a test redirect URL to confirm the app's scheme is registered."""
    path = f"{app.settings.redirect_path}?test=true&timestamp={int(time.time() * 1000)}"
    test_url = app.urls.redirect_url(path)
    logger.info(f"🧪 Testing redirect URL: {test_url}")

    if not await app.linking.can_open_url(test_url):
        logger.warning("❌ Cannot open redirect URL - scheme may not be registered")
        return False
    try:
        await app.linking.open_url(test_url)
    except DispatchError as e:
        logger.error(f"❌ Redirect URL test failed: {e}")
        return False
    logger.info("✅ Successfully opened test redirect URL")
    return True


async def probe_linking(app: "DeepLinkApp") -> dict[str, bool]:
    """Report which of the URLs the SDK relies on can be opened on this host."""
    logger.info("🔍 Testing linking capabilities...")
    urls = [
        app.urls.redirect_url("test"),
        app.urls.redirect_url(),
        app.settings.app_url,
        "phantom://v1/connect",
    ]
    report: dict[str, bool] = {}
    for url in urls:
        try:
            report[url] = await app.linking.can_open_url(url)
        except Exception as e:
            logger.error(f"❌ {url}: Error - {e}")
            report[url] = False
        logger.info(f"{'✅' if report[url] else '❌'} {url}")

    initial_url = await app.linking.get_initial_url()
    logger.info(f"📱 Initial URL: {initial_url or 'None'}")
    return report


async def simulate_connect_response(app: "DeepLinkApp", wallet_public_key: str | None = None) -> str:
    """Deliver a well-formed connect response for the current attempt's key pair.

    The response is sealed with a throwaway wallet key pair, so the full key
    exchange runs exactly as it would for a real wallet.
    """
    dapp_key_pair = app.context.require_key_pair()
    wallet_keys = KeyPairProvider().generate()
    phantom_public_key = b58encode(wallet_keys.public_key)
    shared_secret = app.codec.derive_shared_secret(
        b58encode(dapp_key_pair.public_key), wallet_keys.secret_key
    )
    if wallet_public_key is None:
        wallet_public_key = b58encode(KeyPairProvider().generate().public_key)
    nonce, ciphertext = app.codec.encrypt({"public_key": wallet_public_key}, shared_secret)

    params = {
        "phantom_encryption_public_key": phantom_public_key,
        "nonce": b58encode(nonce),
        "data": b58encode(ciphertext),
    }
    url = f"{app.urls.redirect_url()}?{urlencode(params)}"
    logger.info(f"🎭 Simulated URL: {url[:100]}...")

    await app.router.on_incoming_url(url)
    return url
