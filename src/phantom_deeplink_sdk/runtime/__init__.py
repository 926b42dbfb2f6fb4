from .runner import DeepLinkApp, create_app, run

__all__ = ["DeepLinkApp", "create_app", "run"]
