"""Registration and credential verification."""

import logging

from init import db
from models import User
from tunetally.errors import AuthFailure, Conflict, Unauthenticated
from tunetally.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password."


def register_user(username, password, email, role):
    if User.query.filter_by(username=username).first():
        raise Conflict("Username is already taken")

    user = User(username=username, email=email, role=role, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s (%s) as %s", user.id, username, role.value)
    return user


def login(tokens, username, password):
    """Verify credentials and issue a session token for the matching user."""
    user = User.query.filter_by(username=username).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Rejected login for %r", username)
        raise Unauthenticated(INVALID_CREDENTIALS, AuthFailure.BAD_CREDENTIALS)
    return tokens.issue(user.id)
