"""Security helpers for password hashing and bearer token signing."""
from __future__ import annotations

import hashlib
import re
import time
from dataclasses import dataclass
from typing import Any, Callable

from itsdangerous import BadData, BadSignature, URLSafeSerializer
from passlib.context import CryptContext

# <payload>.<signature>; compressed payloads carry a leading "."
_SIGNED_TOKEN = re.compile(r"\.?[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")


class PasswordHasher:
    """Hash and verify user passwords using bcrypt with a tunable cost."""

    def __init__(self, rounds: int = 10) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__default_rounds=rounds,
            bcrypt__min_desired_rounds=rounds,
            bcrypt__max_desired_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str | None) -> bool:
        """Check ``password`` against ``hashed``; malformed digests simply fail."""

        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self) -> None:
        """Spend the time of a real verify so unknown usernames are not observable."""

        self._context.dummy_verify()

    def needs_rehash(self, hashed: str) -> bool:
        try:
            return self._context.needs_update(hashed)
        except (ValueError, TypeError):
            return False


class TokenError(Exception):
    """Raised when a bearer token cannot be trusted."""


class MalformedTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class TokenExpiredError(TokenError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    issued_at: int
    expires_at: int


class TokenService:
    """Issue and verify signed, time-bound bearer tokens.

    Tokens are itsdangerous URL-safe payloads ``{"sub", "iat", "exp"}`` signed
    with HMAC-SHA256 under the server secret. Verification is stateless: a
    correctly signed, unexpired token is sufficient on its own.
    """

    def __init__(
        self,
        secret_key: str,
        expires_in: int = 3600,
        salt: str = "profile-api-token",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._serializer = URLSafeSerializer(
            secret_key,
            salt=salt,
            signer_kwargs={"digest_method": hashlib.sha256},
        )
        self._expires_in = expires_in
        self._clock = clock

    def issue(self, user_id: int) -> str:
        issued_at = int(self._clock())
        return self._serializer.dumps(
            {"sub": user_id, "iat": issued_at, "exp": issued_at + self._expires_in}
        )

    def decode(self, token: str) -> TokenClaims:
        if not isinstance(token, str) or not token:
            raise MalformedTokenError("Token is empty")

        try:
            payload = self._serializer.loads(token)
        except BadSignature as exc:
            if exc.payload is None or not _SIGNED_TOKEN.fullmatch(token):
                raise MalformedTokenError("Token could not be parsed") from exc
            raise InvalidSignatureError("Token signature does not match") from exc
        except BadData as exc:
            raise MalformedTokenError("Token could not be parsed") from exc

        claims = _parse_claims(payload)
        if self._clock() > claims.expires_at:
            raise TokenExpiredError("Token has expired")
        return claims

    def verify(self, token: str) -> int:
        """Return the user id carried by ``token`` or raise a ``TokenError``."""

        return self.decode(token).user_id


def _parse_claims(payload: Any) -> TokenClaims:
    if not isinstance(payload, dict):
        raise MalformedTokenError("Token payload is not an object")
    try:
        user_id, issued_at, expires_at = payload["sub"], payload["iat"], payload["exp"]
    except KeyError as exc:
        raise MalformedTokenError(f"Token is missing claim {exc.args[0]!r}") from exc
    for value in (user_id, issued_at, expires_at):
        if not isinstance(value, int) or isinstance(value, bool):
            raise MalformedTokenError("Token claims must be integers")
    return TokenClaims(user_id=user_id, issued_at=issued_at, expires_at=expires_at)
