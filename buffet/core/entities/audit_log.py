"""Audit log domain entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AuditLogType(str, Enum):
    """Cause of a stock change."""

    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"


class AuditLogEntry(BaseModel):
    """
    One signed stock delta for a material.

    Entries are immutable once written. ``material_name`` is a snapshot taken
    at write time so renaming a material never rewrites history.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    material_id: str
    material_name: str
    change: float  # positive increases stock
    type: AuditLogType
    related_id: str  # purchase order, drink order or inventory count id
    created_at: datetime
