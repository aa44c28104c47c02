import pytest

from chapel.auth.context import ActorContext
from chapel.auth.gate import RULES, Action, DenyReason, Target, authorize
from chapel.auth.roles import Role

ADMIN = ActorContext(email="pastor@chapel.org", role=Role.ADMIN)
WRITER = ActorContext(email="author@chapel.org", role=Role.WRITER)
OTHER_WRITER = ActorContext(email="other@chapel.org", role=Role.WRITER)
READER = ActorContext(email="reader@chapel.org", role=Role.READER)
BANNED = ActorContext(email="banned@chapel.org", role=Role.BANNED)
ANONYMOUS = ActorContext.anonymous()

POST = Target(type="post", id="p1", post_author_email="author@chapel.org")
COMMENT = Target(
    type="comment",
    id="c1",
    post_author_email="author@chapel.org",
    comment_author_email="commenter@chapel.org",
)


def test_every_action_has_a_rule() -> None:
    assert set(RULES) == set(Action)


@pytest.mark.parametrize("action", list(Action))
def test_anonymous_is_always_unauthenticated(action: Action) -> None:
    decision = authorize(action, ANONYMOUS, Target(type="any", user_email="x@chapel.org"))

    assert not decision.allowed
    assert decision.reason is DenyReason.UNAUTHENTICATED


@pytest.mark.parametrize("actor", [ADMIN, ActorContext(email="a@x.com", role=Role.READER)])
def test_self_targeting_is_rejected_regardless_of_role(actor: ActorContext) -> None:
    target = Target(type="user", id=actor.email, user_email=actor.email)

    for action in (Action.USER_ROLE_UPDATE, Action.USER_DELETE):
        decision = authorize(action, actor, target)
        assert decision.reason is DenyReason.FORBIDDEN_SELF_TARGET


def test_admin_may_manage_other_users() -> None:
    target = Target(type="user", id="reader@chapel.org", user_email="reader@chapel.org")

    assert authorize(Action.USER_ROLE_UPDATE, ADMIN, target).allowed
    assert authorize(Action.USER_DELETE, ADMIN, target).allowed


def test_non_admin_cannot_manage_users() -> None:
    target = Target(type="user", id="reader@chapel.org", user_email="reader@chapel.org")

    decision = authorize(Action.USER_ROLE_UPDATE, WRITER, target)

    assert decision.reason is DenyReason.INSUFFICIENT_PERMISSIONS


def test_comment_deletion_post_author_override() -> None:
    assert authorize(Action.COMMENT_DELETE, WRITER, COMMENT).allowed

    decision = authorize(Action.COMMENT_DELETE, OTHER_WRITER, COMMENT)
    assert not decision.allowed
    assert decision.reason is DenyReason.FORBIDDEN


def test_comment_author_and_admin_may_delete_comment() -> None:
    commenter = ActorContext(email="commenter@chapel.org", role=Role.READER)

    assert authorize(Action.COMMENT_DELETE, commenter, COMMENT).allowed
    assert authorize(Action.COMMENT_DELETE, ADMIN, COMMENT).allowed


def test_reader_cannot_create_post() -> None:
    decision = authorize(Action.POST_CREATE, READER, Target(type="post"))

    assert decision.reason is DenyReason.INSUFFICIENT_PERMISSIONS
    assert authorize(Action.POST_CREATE, WRITER, Target(type="post")).allowed


def test_banned_cannot_comment() -> None:
    decision = authorize(Action.COMMENT_CREATE, BANNED, Target(type="comment"))

    assert not decision.allowed
    assert decision.reason is DenyReason.INSUFFICIENT_PERMISSIONS
    assert authorize(Action.COMMENT_CREATE, READER, Target(type="comment")).allowed


def test_post_edit_is_author_or_admin_only() -> None:
    assert authorize(Action.POST_EDIT, WRITER, POST).allowed
    assert authorize(Action.POST_EDIT, ADMIN, POST).allowed
    assert authorize(Action.POST_EDIT, OTHER_WRITER, POST).reason is DenyReason.FORBIDDEN


def test_post_delete_by_author_or_delete_permission() -> None:
    assert authorize(Action.POST_DELETE, WRITER, POST).allowed
    assert authorize(Action.POST_DELETE, ADMIN, POST).allowed
    assert authorize(Action.POST_DELETE, READER, POST).reason is DenyReason.FORBIDDEN


def test_ownership_uses_exact_email_match() -> None:
    shouting = ActorContext(email="AUTHOR@chapel.org", role=Role.WRITER)

    assert not authorize(Action.POST_EDIT, shouting, POST).allowed


def test_admin_console_actions_require_delete_permission() -> None:
    for action in (Action.USER_LIST, Action.AUDIT_VIEW):
        assert authorize(action, ADMIN, Target(type="user")).allowed
        assert authorize(action, WRITER, Target(type="user")).reason is DenyReason.INSUFFICIENT_PERMISSIONS


def test_authorize_accepts_action_tags() -> None:
    assert authorize("post.create", WRITER, Target(type="post")).allowed
