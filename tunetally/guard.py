"""Authentication and authorization checks for protected views.

Checks escalate: a bearer token is validated, its subject is loaded, then a
role or ownership requirement is applied. The first failing step raises and
aborts the request.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Iterable

from flask import current_app, g
from flask_login import current_user, login_required
from sqlalchemy import select

from init import db
from models import Role, Song, User
from tunetally.errors import AuthFailure, Forbidden, Unauthenticated
from tunetally.tokens import InvalidSignature, InvalidToken, TokenExpired, TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthorizationGuard:
    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def authenticate(self, authorization: str | None) -> int:
        """Return the user id behind an ``Authorization: Bearer <token>`` value."""
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise Unauthenticated("Unauthorized", AuthFailure.MISSING_TOKEN)
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise Unauthenticated("Unauthorized", AuthFailure.MISSING_TOKEN)

        try:
            return self.tokens.validate(token)
        except TokenExpired as e:
            raise Unauthenticated("Token has expired", AuthFailure.EXPIRED) from e
        except InvalidSignature as e:
            raise Unauthenticated("Invalid token", AuthFailure.INVALID_SIGNATURE) from e
        except InvalidToken as e:
            raise Unauthenticated("Invalid token", AuthFailure.MALFORMED_TOKEN) from e

    def load_user(self, user_id: int) -> User:
        """Load the token subject. A deleted user is treated as unauthenticated."""
        user = db.session.get(User, user_id)
        if user is None:
            raise Unauthenticated("Unauthorized", AuthFailure.UNKNOWN_SUBJECT)
        return user

    def require_role(self, user_id: int, role: Role) -> User:
        user = self.load_user(user_id)
        if user.role is not role:
            logger.warning("User %s (%s) denied: %s role required", user.id, user.role.value, role.value)
            raise Forbidden(f"User does not have the {role.value.lower()} role")
        return user

    def require_ownership(self, user_id: int, owner_id: int) -> None:
        if user_id != owner_id:
            logger.warning("User %s denied: resource belongs to user %s", user_id, owner_id)
            raise Forbidden("User is not the owner of the resource")

    def require_ownership_of_all(self, user_id: int, song_ids: Iterable[int]) -> None:
        """Verify that every song in the batch belongs to ``user_id``.

        The owned rows are locked for the rest of the caller's transaction
        (where the database supports ``FOR UPDATE``), so they cannot vanish
        between this check and a following delete. Unknown ids count as not
        owned.
        """
        wanted = set(song_ids)
        owned = set(
            db.session.scalars(
                select(Song.id)
                .where(Song.id.in_(wanted), Song.artist_id == user_id)
                .with_for_update()
            )
        )
        if owned != wanted:
            logger.warning("User %s denied: does not own songs %s", user_id, sorted(wanted - owned))
            raise Forbidden("User is not the owner of one or more songs")


def current_guard() -> AuthorizationGuard:
    return current_app.extensions["tunetally.guard"]


def install_login_hooks(login_manager):
    """Resolve Flask-Login's ``current_user`` from bearer tokens."""

    @login_manager.request_loader
    def load_user_from_request(request):
        guard = current_guard()
        try:
            return guard.load_user(guard.authenticate(request.headers.get("Authorization")))
        except Unauthenticated as e:
            logger.info("Authentication failed for %s %s: %s", request.method, request.path, e.cause.value)
            g.auth_failure = e
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        raise g.pop("auth_failure", None) or Unauthenticated()


def role_required(role: Role):
    """Like ``login_required``, and the caller must also hold ``role``."""

    def decorator(view):
        @wraps(view)
        @login_required
        def wrapper(*args, **kwargs):
            current_guard().require_role(current_user.id, role)
            return view(*args, **kwargs)

        return wrapper

    return decorator
