"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase)
- Logger reference
- A read wrapper that maps store failures to a typed default
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, TypeVar

from supabase import AsyncClient

from internhub.database import DatabaseManager
from internhub.logger import StructuredLogger

T = TypeVar("T")


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> AsyncClient:
        """Returns the Supabase client (raises when running demo-only)."""
        return self._db.supabase

    async def _execute_read(
        self,
        op: Callable[[], Awaitable[Optional[T]]],
        default_factory: Callable[[], T],
        *,
        operation_name: str,
    ) -> T:
        """Run a read against the store, never raising.

        Returns the result of ``op()`` when it is not ``None``; otherwise,
        or when the store raises, returns ``default_factory()``.  Failures
        are logged as warnings so that callers can fall back quietly.

        Parameters
        ----------
        op:
            Zero-argument coroutine function performing the query.
        default_factory:
            Produces the typed default when the store has no answer.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"get_role (utilisateur)"``.
        """
        try:
            result = await op()
            if result is not None:
                return result
        except Exception as exc:
            self._logger.warning(
                "Store unavailable for %s: %s", operation_name, exc
            )
        return default_factory()
