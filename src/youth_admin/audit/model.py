from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEntry:
    user_id: int
    action: AuditAction
    entity_type: str
    entity_id: int
    before: Optional[Any] = None
    after: Optional[Any] = None
    created_at: Optional[datetime] = None
    audit_id: Optional[int] = None
