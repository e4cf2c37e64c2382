"""
Base Repository Protocol
========================

Minimal contracts shared by the IrriSync repositories. They use
``typing.Protocol`` (structural subtyping) so repository facades satisfy them
without inheriting from anything.

Every table here is scoped to a single device or command key, so the shared
read contract is ``get(key)`` returning a domain object or ``None``. Reads
never raise for a missing key.

Usage in service type hints::

    from infrastructure.database.repositories.base import ReadRepository


    class MyService:
        def __init__(self, repo: ReadRepository) -> None: ...
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BaseRepository(Protocol):
    """Marker contract: every repository wraps a ``_backend`` handler."""

    _backend: Any


@runtime_checkable
class ReadRepository(Protocol):
    """Repository that supports reading a single record by key."""

    def get(self, key: str) -> Any | None:
        """Return the record for ``key`` or ``None`` when it does not exist."""
        ...


__all__ = [
    "BaseRepository",
    "ReadRepository",
]
