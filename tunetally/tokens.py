"""Signed, self-contained session tokens.

Tokens are HS256 JSON Web Tokens carrying the user id as ``sub`` plus
``iat``/``exp`` timestamps. Nothing is stored server-side: a token is valid
until it expires and cannot be revoked.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(days=30)


class InvalidToken(Exception):
    """Base class for every reason a token is rejected."""


class InvalidSignature(InvalidToken):
    pass


class MalformedToken(InvalidToken):
    pass


class TokenExpired(InvalidToken):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and validate session tokens with a process-wide secret.

    The secret is handed in once at startup and never changes afterwards.
    ``clock`` only affects issuance; validation always compares against the
    real current time.
    """

    def __init__(
        self,
        secret: str,
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.lifetime = lifetime
        self._clock = clock

    def issue(self, user_id: int) -> str:
        now = self._clock()
        claims = {"sub": str(user_id), "iat": now, "exp": now + self.lifetime}
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def validate(self, token: str) -> int:
        """Return the user id a token was issued for.

        :raises InvalidSignature: The token was not signed with our secret.
        :raises TokenExpired: The signature is good but ``exp`` has passed.
        :raises MalformedToken: Anything else: undecodable, missing claims,
            a subject that is not a user id.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpired("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignature("Token signature does not match") from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken(str(e)) from e

        try:
            return int(claims["sub"])
        except (TypeError, ValueError) as e:
            raise MalformedToken("Token subject is not a user id") from e
