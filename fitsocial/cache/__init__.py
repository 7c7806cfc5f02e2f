from .local_cache import LocalCache

__all__ = ["LocalCache"]
