"""
Database Access Layer.

Owns the connection to the remote identity/data store (Supabase).  The
session core only ever reaches the store through repositories; this
module only manages the raw client and contains no query logic.

When Supabase credentials are missing the client is **not** created and
the application runs with demo accounts only.  Every repository wraps
its store calls, so the ``BackendUnavailableError`` raised by the
``supabase`` property is handled by the existing error paths.

Usage (dependency injection at app startup)::

    from internhub.database import DatabaseManager
    from internhub.logger import StructuredLogger

    db = await DatabaseManager.create(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

from typing import Optional

from supabase import AsyncClient, acreate_client

from internhub.logger import StructuredLogger


class BackendUnavailableError(RuntimeError):
    """Raised when a store call is attempted without a configured backend."""


class DatabaseManager:
    """Holds the async Supabase client for the lifetime of the process.

    Parameters
    ----------
    client:
        An initialised ``AsyncClient``, or ``None`` to run demo-only.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        client: Optional[AsyncClient],
        logger: StructuredLogger,
    ) -> None:
        self._supabase: Optional[AsyncClient] = client
        self._logger: StructuredLogger = logger

    @classmethod
    async def create(
        cls,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
    ) -> "DatabaseManager":
        """Build a manager, creating the Supabase client when credentials exist."""
        client: Optional[AsyncClient] = None
        if supabase_url and supabase_key:
            try:
                client = await acreate_client(supabase_url, supabase_key)
                logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                logger.warning(
                    "Supabase credential format error: %s. Running demo-only.",
                    exc,
                )
            except Exception as exc:
                logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Running demo-only.",
                    exc,
                    exc_info=True,
                )
        else:
            logger.warning(
                "Supabase credentials not configured; running demo-only."
            )
        return cls(client, logger)

    @property
    def supabase(self) -> AsyncClient:
        """Return the initialised Supabase client.

        Raises
        ------
        BackendUnavailableError
            If the client was not initialised.
        """
        if self._supabase is None:
            raise BackendUnavailableError(
                "Supabase client is not initialised. "
                "Only demo accounts are available."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None
