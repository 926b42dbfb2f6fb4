from .server import init_api, set_ready

__all__ = ["init_api", "set_ready"]
