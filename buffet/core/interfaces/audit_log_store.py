"""Abstract interface for audit log queries."""

from abc import ABC, abstractmethod
from datetime import datetime

from buffet.core.entities.audit_log import AuditLogEntry


class IAuditLogStore(ABC):
    """
    Read side of the append-only audit log.

    All queries return entries in ascending ``created_at`` order. Appends
    happen only inside a unit of work.
    """

    @abstractmethod
    async def query_after(
        self, material_id: str, cutoff: datetime
    ) -> list[AuditLogEntry]:
        """Entries for a material with created_at strictly after cutoff."""
        pass

    @abstractmethod
    async def query_range(
        self,
        material_id: str | None,
        start: datetime,
        end: datetime,
    ) -> list[AuditLogEntry]:
        """Entries with start <= created_at <= end, optionally for one material."""
        pass

    @abstractmethod
    async def list_entries(
        self, material_id: str | None = None, limit: int | None = None
    ) -> list[AuditLogEntry]:
        """The full ledger, optionally for one material."""
        pass
