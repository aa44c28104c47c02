from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ..domain.users import Identity
from ..errors import AuthError

logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
_VALID_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})


class IdentityProvider(Protocol):
    async def verify(self, id_token: str) -> Identity:
        ...


class GoogleIdentityProvider:
    """Verifies Google ID tokens against the tokeninfo endpoint."""

    def __init__(
        self,
        client_id: str | None,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        tokeninfo_url: str = GOOGLE_TOKENINFO_URL,
    ) -> None:
        self._client_id = client_id
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._tokeninfo_url = tokeninfo_url

    async def verify(self, id_token: str) -> Identity:
        if not self._client_id:
            raise AuthError("Google sign-in is not configured")
        if not id_token:
            raise AuthError("Missing ID token")

        claims = await self._fetch_claims(id_token)

        if claims.get("aud") != self._client_id:
            raise AuthError("ID token was issued for another client")
        issuer = claims.get("iss")
        if issuer is not None and issuer not in _VALID_ISSUERS:
            raise AuthError("ID token issuer is not trusted")
        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise AuthError("ID token has no email")
        if str(claims.get("email_verified", "")).lower() != "true":
            raise AuthError("Email address is not verified")

        return Identity(
            email=email,
            name=claims.get("name") or None,
            avatar_url=claims.get("picture") or None,
        )

    async def _fetch_claims(self, id_token: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.get(
                    self._tokeninfo_url, params={"id_token": id_token}
                )
        except httpx.RequestError as exc:
            logger.warning("tokeninfo request failed: %s", exc)
            raise AuthError("Identity provider unavailable") from exc

        if response.status_code != 200:
            raise AuthError("Invalid ID token")
        try:
            claims = response.json()
        except ValueError as exc:
            raise AuthError("Invalid ID token") from exc
        if not isinstance(claims, dict):
            raise AuthError("Invalid ID token")
        return claims
