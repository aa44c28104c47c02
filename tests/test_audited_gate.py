import pytest

from chapel.auth.context import ActorContext
from chapel.auth.gate import Action, Target
from chapel.auth.guard import AuditedGate, RequestMeta
from chapel.auth.roles import Role
from chapel.errors import AccessDeniedError, AuthError
from chapel.schemas.audit_log import Outcome
from chapel.services.audit.audit_service import AuditService
from tests.fakes import CollectingAuditSink, FailingAuditSink

WRITER = ActorContext(email="author@chapel.org", role=Role.WRITER, name="Ruth")
READER = ActorContext(email="reader@chapel.org", role=Role.READER)


def _gate(*sinks) -> AuditedGate:
    return AuditedGate(AuditService(sinks=sinks))


class Operation:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.calls = 0
        self.result = result
        self.error = error

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.anyio
async def test_allowed_action_records_one_success_entry() -> None:
    sink = CollectingAuditSink()
    operation = Operation(result={"id": "p1"})

    result = await _gate(sink).run(
        Action.POST_CREATE,
        WRITER,
        Target(type="post"),
        operation,
        request=RequestMeta(ip="203.0.113.7", user_agent="pytest"),
        meta={"title": "Advent"},
        success_meta=lambda value: {"post_id": value["id"]},
    )

    assert result == {"id": "p1"}
    assert operation.calls == 1
    assert len(sink.entries) == 1
    entry = sink.entries[0]
    assert entry.action == "post.create"
    assert entry.outcome is Outcome.SUCCESS
    assert entry.actor is not None and entry.actor.email == "author@chapel.org"
    assert entry.actor.role == "writer"
    assert entry.ip == "203.0.113.7"
    assert entry.user_agent == "pytest"
    assert entry.meta == {"title": "Advent", "post_id": "p1"}
    assert entry.error is None


@pytest.mark.anyio
async def test_denied_action_records_before_side_effect() -> None:
    sink = CollectingAuditSink()
    operation = Operation()

    with pytest.raises(AccessDeniedError) as exc_info:
        await _gate(sink).run(Action.POST_CREATE, READER, Target(type="post"), operation)

    assert exc_info.value.reason == "insufficient-permissions"
    assert exc_info.value.status_code == 403
    assert operation.calls == 0
    assert len(sink.entries) == 1
    assert sink.entries[0].outcome is Outcome.DENIED
    assert sink.entries[0].error == "insufficient-permissions"
    assert sink.entries[0].ip == "unknown"


@pytest.mark.anyio
async def test_anonymous_denial_raises_auth_error() -> None:
    sink = CollectingAuditSink()

    with pytest.raises(AuthError):
        await _gate(sink).run(
            Action.COMMENT_CREATE, ActorContext.anonymous(), Target(type="comment"), Operation()
        )

    assert len(sink.entries) == 1
    assert sink.entries[0].actor is None
    assert sink.entries[0].error == "unauthenticated"


@pytest.mark.anyio
async def test_failing_operation_records_error_and_reraises() -> None:
    sink = CollectingAuditSink()

    with pytest.raises(RuntimeError, match="disk full"):
        await _gate(sink).run(
            Action.POST_CREATE, WRITER, Target(type="post"), Operation(error=RuntimeError("disk full"))
        )

    assert len(sink.entries) == 1
    assert sink.entries[0].outcome is Outcome.ERROR
    assert sink.entries[0].error == "disk full"


@pytest.mark.anyio
async def test_audit_failure_never_fails_the_action() -> None:
    operation = Operation(result="done")

    result = await _gate(FailingAuditSink()).run(
        Action.POST_CREATE, WRITER, Target(type="post"), operation
    )

    assert result == "done"
    assert operation.calls == 1


@pytest.mark.anyio
async def test_broken_success_meta_still_records_success() -> None:
    sink = CollectingAuditSink()

    def explode(_value):
        raise KeyError("id")

    await _gate(sink).run(
        Action.POST_CREATE, WRITER, Target(type="post"), Operation(result={}), success_meta=explode
    )

    assert [entry.outcome for entry in sink.entries] == [Outcome.SUCCESS]


@pytest.mark.anyio
async def test_ensure_authenticated_only_records_denials() -> None:
    sink = CollectingAuditSink()
    gate = _gate(sink)

    await gate.ensure_authenticated(Action.POST_EDIT, WRITER, Target(type="post", id="p1"))
    assert sink.entries == []

    with pytest.raises(AuthError):
        await gate.ensure_authenticated(
            Action.POST_EDIT, ActorContext.anonymous(), Target(type="post", id="p1")
        )
    assert len(sink.entries) == 1
    assert sink.entries[0].target is not None and sink.entries[0].target.id == "p1"


@pytest.mark.parametrize(
    ("headers", "client_host", "expected"),
    [
        ({"x-forwarded-for": "198.51.100.1, 10.0.0.1"}, "10.0.0.2", "198.51.100.1"),
        ({"x-real-ip": "198.51.100.9"}, "10.0.0.2", "198.51.100.9"),
        ({}, "10.0.0.2", "10.0.0.2"),
        ({}, None, "unknown"),
        ({"x-forwarded-for": "2001:db8::1"}, "10.0.0.2", "2001:db8::1"),
        ({"x-forwarded-for": "x" * 60}, "10.0.0.2", "10.0.0.2"),
        ({"x-forwarded-for": "not-an-ip", "x-real-ip": "198.51.100.9"}, "10.0.0.2", "198.51.100.9"),
        ({"x-real-ip": "999.1.1.1"}, "10.0.0.2", "10.0.0.2"),
        ({}, "h" * 60, "h" * 45),
    ],
)
def test_request_meta_client_ip(headers: dict[str, str], client_host: str | None, expected: str) -> None:
    assert RequestMeta.from_headers(headers, client_host).ip == expected


@pytest.mark.anyio
async def test_oversized_target_id_is_clipped_not_rejected() -> None:
    sink = CollectingAuditSink()
    operation = Operation(result="done")
    long_id = "p" * 400

    result = await _gate(sink).run(
        Action.POST_EDIT,
        WRITER,
        Target(type="post", id=long_id, post_author_email=WRITER.email),
        operation,
    )

    assert result == "done"
    assert operation.calls == 1
    assert len(sink.entries) == 1
    entry = sink.entries[0]
    assert entry.outcome is Outcome.SUCCESS
    assert entry.target is not None and entry.target.id == long_id[:320]


@pytest.mark.anyio
async def test_oversized_target_id_on_anonymous_call_still_raises_auth_error() -> None:
    sink = CollectingAuditSink()

    with pytest.raises(AuthError):
        await _gate(sink).ensure_authenticated(
            Action.POST_DELETE, ActorContext.anonymous(), Target(type="post", id="p" * 400)
        )

    assert [entry.outcome for entry in sink.entries] == [Outcome.DENIED]


@pytest.mark.anyio
async def test_entry_that_cannot_be_built_does_not_fail_the_action(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    sink = CollectingAuditSink()
    operation = Operation(result="done")

    def broken_entry(*args, **kwargs):
        raise ValueError("bad entry")

    monkeypatch.setattr(AuditedGate, "_entry", staticmethod(broken_entry))

    with caplog.at_level("ERROR", logger="chapel.auth.guard"):
        result = await _gate(sink).run(Action.POST_CREATE, WRITER, Target(type="post"), operation)

    assert result == "done"
    assert operation.calls == 1
    assert sink.entries == []
    assert "Could not build audit entry for action post.create" in caplog.text
