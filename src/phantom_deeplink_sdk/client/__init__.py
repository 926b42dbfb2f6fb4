from .dispatcher import RequestDispatcher
from .rpc import ClusterRpcClient, LatestBlockhash, cluster_api_url
from .urls import UrlBuilder

__all__ = [
    "RequestDispatcher",
    "UrlBuilder",
    "ClusterRpcClient",
    "LatestBlockhash",
    "cluster_api_url",
]
