from __future__ import annotations

from typing import Protocol

from ...schemas.audit_log import ActionLog


class AuditSink(Protocol):
    """Append-only destination for audit entries."""

    async def append(self, entry: ActionLog) -> None:
        ...
