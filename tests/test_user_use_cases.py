from datetime import datetime, timedelta, timezone

import pytest

from chapel.auth.allowlist import StaticAdminAllowlist
from chapel.auth.resolver import RoleResolver
from chapel.auth.roles import Role
from chapel.domain.users import Identity, UserRecord
from chapel.errors import NotFoundError, StoreUnavailableError
from chapel.use_cases.users.manage_users import (
    delete_user,
    list_users,
    update_role,
    user_stats,
    writer_emails,
)
from chapel.use_cases.users.upsert_on_authentication import upsert_on_authentication
from tests.fakes import FakeUserStore

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _resolver(store: FakeUserStore) -> RoleResolver:
    return RoleResolver(store, StaticAdminAllowlist(["pastor@chapel.org"]))


def _record(email: str, role: Role, created_at: datetime = T0) -> UserRecord:
    return UserRecord(email=email, role=role, last_login=created_at, created_at=created_at)


@pytest.mark.anyio
async def test_first_login_creates_record_with_initial_role() -> None:
    store = FakeUserStore()
    resolver = _resolver(store)

    admin = await upsert_on_authentication(
        store, resolver, Identity("pastor@chapel.org", "Pastor", "https://img/p.png"), now=T0
    )
    reader = await upsert_on_authentication(store, resolver, Identity("visitor@chapel.org"), now=T0)

    assert admin.role is Role.ADMIN
    assert admin.image == "https://img/p.png"
    assert admin.created_at == admin.last_login == T0
    assert reader.role is Role.READER
    assert store.commits == 2


@pytest.mark.anyio
async def test_repeated_login_keeps_role_and_updates_last_login() -> None:
    store = FakeUserStore()
    resolver = _resolver(store)
    identity = Identity("visitor@chapel.org", "Visitor")

    first = await upsert_on_authentication(store, resolver, identity, now=T0)
    await update_role(store, identity.email, Role.WRITER)
    later = T0 + timedelta(days=2)
    second = await upsert_on_authentication(
        store, resolver, Identity("visitor@chapel.org", "Visitor Renamed"), now=later
    )

    assert second.role is Role.WRITER
    assert second.last_login == later
    assert second.created_at == first.created_at
    assert second.name == "Visitor Renamed"
    assert len(store.records) == 1


@pytest.mark.anyio
async def test_allowlisted_admin_demoted_stays_demoted_after_login() -> None:
    store = FakeUserStore(records={"pastor@chapel.org": _record("pastor@chapel.org", Role.BANNED)})

    record = await upsert_on_authentication(
        store, _resolver(store), Identity("pastor@chapel.org"), now=T0 + timedelta(hours=1)
    )

    assert record.role is Role.BANNED


class DemotedDuringLoginStore(FakeUserStore):
    """Applies an admin's demotion right after the login has read the record."""

    async def find_by_email(self, email: str) -> UserRecord | None:
        record = await super().find_by_email(email)
        if record is not None:
            self.records[email] = record.with_role(Role.BANNED)
        return record


@pytest.mark.anyio
async def test_demotion_committed_during_login_is_not_reverted() -> None:
    store = DemotedDuringLoginStore(
        records={"author@chapel.org": _record("author@chapel.org", Role.WRITER)}
    )

    record = await upsert_on_authentication(
        store, _resolver(store), Identity("author@chapel.org", "Ruth"), now=T0 + timedelta(hours=1)
    )

    assert record.role is Role.BANNED
    assert store.records["author@chapel.org"].role is Role.BANNED
    assert store.records["author@chapel.org"].name == "Ruth"


@pytest.mark.anyio
async def test_upsert_failure_rolls_back_and_propagates() -> None:
    store = FakeUserStore(fail_writes=True)

    with pytest.raises(StoreUnavailableError):
        await upsert_on_authentication(store, _resolver(store), Identity("visitor@chapel.org"), now=T0)

    assert store.rollbacks == 1
    assert store.commits == 0


@pytest.mark.anyio
async def test_update_role_and_delete_missing_user_raise_not_found() -> None:
    store = FakeUserStore()

    with pytest.raises(NotFoundError):
        await update_role(store, "ghost@chapel.org", Role.WRITER)
    with pytest.raises(NotFoundError):
        await delete_user(store, "ghost@chapel.org")

    assert store.rollbacks == 2


@pytest.mark.anyio
async def test_delete_user_removes_record() -> None:
    store = FakeUserStore(records={"reader@chapel.org": _record("reader@chapel.org", Role.READER)})

    await delete_user(store, "reader@chapel.org")

    assert store.records == {}
    assert store.commits == 1


@pytest.mark.anyio
async def test_listing_stats_and_writer_emails() -> None:
    store = FakeUserStore(
        records={
            "b@chapel.org": _record("b@chapel.org", Role.WRITER, T0 + timedelta(days=1)),
            "a@chapel.org": _record("a@chapel.org", Role.ADMIN, T0),
            "c@chapel.org": _record("c@chapel.org", Role.READER, T0 + timedelta(days=2)),
            "d@chapel.org": _record("d@chapel.org", Role.WRITER, T0 + timedelta(days=3)),
            "e@chapel.org": _record("e@chapel.org", Role.BANNED, T0 + timedelta(days=4)),
        }
    )

    users = await list_users(store)
    stats = user_stats(users)

    assert [user.email for user in users] == [
        "a@chapel.org",
        "b@chapel.org",
        "c@chapel.org",
        "d@chapel.org",
        "e@chapel.org",
    ]
    assert stats.to_dict() == {"total": 5, "admins": 1, "writers": 2, "readers": 1, "banned": 1}
    assert writer_emails(users) == ["b@chapel.org", "d@chapel.org"]
