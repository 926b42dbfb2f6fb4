from .linking import BaseLinking, BrowserLinking, Linking, MemoryLinking

__all__ = ["Linking", "BaseLinking", "MemoryLinking", "BrowserLinking"]
