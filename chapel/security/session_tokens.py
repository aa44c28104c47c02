from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from ..config import settings
from ..domain.users import Identity


class InvalidTokenError(Exception):
    """Raised when a token cannot be parsed or is malformed."""


class ExpiredTokenError(Exception):
    """Raised when a token has expired."""


def issue_session_token(
    identity: Identity,
    *,
    now: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a session token for ``identity``.

    Only identity claims go into the token. Role and permissions are resolved
    from the user store on every request so that a role change takes effect
    without a new sign-in.
    """
    issued_at = now or datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.session_expire_minutes)
    payload: Dict[str, Any] = {
        "sub": identity.email,
        "name": identity.name,
        "picture": identity.avatar_url,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def _parse_token_payload(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError from exc


def validate_session_token(token: str) -> Dict[str, Any]:
    if not token or not isinstance(token, str):
        raise InvalidTokenError()
    payload = _parse_token_payload(token)

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise InvalidTokenError()

    return payload


def identity_from_claims(claims: Dict[str, Any]) -> Identity:
    name = claims.get("name")
    picture = claims.get("picture")
    return Identity(
        email=claims["sub"],
        name=name if isinstance(name, str) else None,
        avatar_url=picture if isinstance(picture, str) else None,
    )
