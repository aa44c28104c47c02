"""
Audit Service - records every authorization decision and its outcome.

Entries are always written to the ``chapel.audit`` logger as JSON and then
handed to each configured sink (database table, test collectors).

Audit failures must never block or fail the guarded action: every sink call
is isolated and its errors are logged, not propagated.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from ...domain.ports.audit import AuditSink
from ...schemas.audit_log import ActionLog

logger = logging.getLogger("chapel.audit")


class AuditService:
    """Fire-and-forget audit logger."""

    def __init__(self, sinks: Iterable[AuditSink] = ()) -> None:
        self.sinks = list(sinks)

    async def record(self, entry: ActionLog) -> None:
        """
        Record one audit entry.

        Never raises. A failing sink is logged and skipped so the remaining
        sinks still receive the entry.

        Args:
            entry: The ActionLog describing the decision and its outcome
        """
        try:
            payload = entry.model_dump(mode="json")
            logger.info(
                "AUDIT: %s",
                json.dumps(payload, ensure_ascii=False),
                extra={"audit_entry": payload},
            )
        except Exception:
            logger.error("Audit serialization failed for action %s", entry.action, exc_info=True)

        for sink in self.sinks:
            try:
                await sink.append(entry)
            except Exception as exc:
                logger.error(
                    "Audit sink %s failed for action %s: %s",
                    type(sink).__name__,
                    entry.action,
                    exc,
                    exc_info=True,
                )
