from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

import requests

CLUSTER_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}


def cluster_api_url(cluster: str) -> str:
    try:
        return CLUSTER_URLS[cluster]
    except KeyError:
        raise ValueError(f"Unknown cluster: {cluster}") from None


@dataclass
class LatestBlockhash:
    blockhash: str
    last_valid_block_height: int


class ClusterRpcClient:
    """Minimal JSON-RPC client for the block reference transaction builders need."""

    def __init__(self, rpc_url: str, timeout: float = 10.0) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._session = requests.Session()

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        body = {"jsonrpc": "2.0", "id": str(uuid.uuid4()), "method": method, "params": params or []}
        resp = self._session.post(self.rpc_url, json=body, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        if data.get("error"):
            err = data["error"]
            raise RuntimeError(f"RPC error {err.get('code')}: {err.get('message')}")
        return data.get("result")

    def get_latest_blockhash(self, commitment: str = "finalized") -> LatestBlockhash:
        result = self.call("getLatestBlockhash", [{"commitment": commitment}])
        value = result["value"]
        return LatestBlockhash(
            blockhash=value["blockhash"],
            last_valid_block_height=value["lastValidBlockHeight"],
        )
