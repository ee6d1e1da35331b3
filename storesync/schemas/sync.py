from typing import Any, Dict, List, Optional

from storesync.core.enums import ResourceType

from .base import BaseSchema


class SyncSummaryRead(BaseSchema):
    success: bool = True
    resource_type: ResourceType
    total: int
    synced: int
    failed: int
    pages: int
    errors: List[str] = []
    duration_seconds: float = 0.0

    @classmethod
    def from_summary(cls, summary) -> "SyncSummaryRead":
        return cls(
            resource_type=summary.resource_type,
            total=summary.fetched,
            synced=summary.reconciled,
            failed=summary.failed,
            pages=summary.pages,
            errors=summary.errors,
            duration_seconds=summary.duration_seconds,
        )


class SyncAllRead(BaseSchema):
    success: bool = True
    results: List[SyncSummaryRead]


class ConnectionTestRead(BaseSchema):
    success: bool
    shop: Optional[Dict[str, Any]] = None
