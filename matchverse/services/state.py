from __future__ import annotations

from ..storage import Store

# The store shared by API requests. Created lazily so ``DATABASE_URL`` can be
# changed before first use; tests override :func:`get_store` instead.
_store: Store | None = None


def get_store() -> Store:
    global _store
    if _store is None:
        _store = Store()
    return _store


def reset_store() -> None:
    """Forget the shared store so the next call reads the config again."""
    global _store
    _store = None
