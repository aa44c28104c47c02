import json
import logging

import pytest

from chapel.schemas.audit_log import ActionLog, AuditActor, AuditTarget, Outcome
from chapel.services.audit.audit_service import AuditService
from tests.fakes import CollectingAuditSink, FailingAuditSink


def _entry() -> ActionLog:
    return ActionLog(
        action="post.delete",
        outcome=Outcome.DENIED,
        actor=AuditActor(email="reader@chapel.org", name=None, role="reader"),
        target=AuditTarget(type="post", id="p1"),
        ip="203.0.113.7",
        error="forbidden",
    )


@pytest.mark.anyio
async def test_record_writes_json_line_to_audit_logger(caplog: pytest.LogCaptureFixture) -> None:
    service = AuditService()

    with caplog.at_level(logging.INFO, logger="chapel.audit"):
        await service.record(_entry())

    records = [record for record in caplog.records if record.name == "chapel.audit"]
    assert len(records) == 1
    message = records[0].getMessage()
    assert message.startswith("AUDIT: ")
    payload = json.loads(message[len("AUDIT: "):])
    assert payload["action"] == "post.delete"
    assert payload["outcome"] == "denied"
    assert payload["actor"]["email"] == "reader@chapel.org"
    assert payload["error"] == "forbidden"


@pytest.mark.anyio
async def test_failing_sink_is_swallowed_and_others_still_receive(
    caplog: pytest.LogCaptureFixture,
) -> None:
    collector = CollectingAuditSink()
    service = AuditService(sinks=[FailingAuditSink(), collector])

    with caplog.at_level(logging.ERROR, logger="chapel.audit"):
        await service.record(_entry())

    assert len(collector.entries) == 1
    assert "Audit sink FailingAuditSink failed for action post.delete" in caplog.text
