"""
Profile Repository.

Handles role lookups and profile reads/writes against the Supabase
tables.  Keyed everywhere by the identity id (column ``id_utilisateur``).

Read methods never raise: store failures are logged and reported as
"absent" (``None``), which is exactly what the resolvers fall back on.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from internhub.config import AppConfig
from internhub.database import DatabaseManager
from internhub.logger import StructuredLogger
from internhub.models.auth_models import OperationResult
from internhub.models.enums import UserRole
from internhub.repositories.base_repository import BaseRepository

Record = dict[str, Any]

_KEY_COLUMN: str = "id_utilisateur"


@runtime_checkable
class ProfileStore(Protocol):
    """Contract of the role/profile store."""

    async def get_role(self, user_id: str) -> Optional[str]:
        """Return the stored role label, or ``None`` when absent."""
        ...

    async def get_base_profile(self, user_id: str) -> Optional[Record]:
        ...

    async def get_extension(self, role: UserRole, user_id: str) -> Optional[Record]:
        ...

    async def update_base_profile(self, user_id: str, fields: Record) -> OperationResult:
        ...


class ProfileRepository(BaseRepository):
    """Data access layer for users and their role-specific records."""

    def __init__(
        self,
        db: DatabaseManager,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(db, logger)
        self._user_table: str = config.USER_TABLE
        self._extension_tables: dict[UserRole, str] = {
            UserRole.STUDENT: config.STUDENT_TABLE,
            UserRole.COMPANY: config.COMPANY_TABLE,
            UserRole.ADMIN: config.ADMIN_TABLE,
        }

    async def _single(self, table: str, columns: str, user_id: str) -> Optional[Record]:
        response = await (
            self.supabase.table(table)
            .select(columns)
            .eq(_KEY_COLUMN, user_id)
            .maybe_single()
            .execute()
        )
        if response is None or not response.data:
            return None
        return dict(response.data)

    async def get_role(self, user_id: str) -> Optional[str]:
        async def _lookup() -> Optional[str]:
            row = await self._single(self._user_table, "role", user_id)
            return row.get("role") if row else None

        return await self._execute_read(
            _lookup,
            lambda: None,
            operation_name=f"get_role ({self._user_table})",
        )

    async def get_base_profile(self, user_id: str) -> Optional[Record]:
        return await self._execute_read(
            lambda: self._single(self._user_table, "*", user_id),
            lambda: None,
            operation_name=f"get_base_profile ({self._user_table})",
        )

    async def get_extension(self, role: UserRole, user_id: str) -> Optional[Record]:
        table = self._extension_tables[role]
        return await self._execute_read(
            lambda: self._single(table, "*", user_id),
            lambda: None,
            operation_name=f"get_extension ({table})",
        )

    async def update_base_profile(self, user_id: str, fields: Record) -> OperationResult:
        """Write *fields* (store column names) to the user row."""
        try:
            await (
                self.supabase.table(self._user_table)
                .update(fields)
                .eq(_KEY_COLUMN, user_id)
                .execute()
            )
        except Exception as exc:
            self._logger.error(
                "Failed to update %s row for %s: %s", self._user_table, user_id, exc
            )
            return OperationResult(success=False, error=getattr(exc, "message", None) or str(exc))

        self._logger.info("Base profile updated: %s", user_id)
        return OperationResult(success=True)
