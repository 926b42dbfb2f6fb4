from .decorators import EventHandler, EventRegistry, wallet

__all__ = ["EventRegistry", "EventHandler", "wallet"]
