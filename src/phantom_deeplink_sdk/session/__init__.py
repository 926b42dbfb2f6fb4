from .context import SessionContext

__all__ = ["SessionContext"]
