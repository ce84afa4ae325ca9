"""Environment-driven settings for the TuneTally API."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Any, Mapping

from dotenv import load_dotenv
from sqlalchemy.engine import make_url

DEFAULT_DATABASE_URL = "sqlite:///tunetally.db"


def database_url(env: Mapping[str, str]) -> str:
    """Return the database URL, with separately configured credentials merged in."""
    url = make_url(env.get("TUNETALLY_DATABASE_URL", DEFAULT_DATABASE_URL))
    user = env.get("TUNETALLY_DB_USER")
    password = env.get("TUNETALLY_DB_PASSWORD")
    if user:
        url = url.set(username=user)
    if password:
        url = url.set(password=password)
    return url.render_as_string(hide_password=False)


def load_settings(env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Read process settings into ``app.config`` keys.

    Reads ``os.environ`` (after loading a ``.env`` file) unless an explicit
    mapping is given.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    return {
        "SQLALCHEMY_DATABASE_URI": database_url(env),
        "TOKEN_SECRET": env.get("TUNETALLY_TOKEN_SECRET", ""),
        "TOKEN_LIFETIME": timedelta(days=int(env.get("TUNETALLY_TOKEN_LIFETIME_DAYS", "30"))),
        "LOG_LEVEL": env.get("TUNETALLY_LOG_LEVEL", "INFO").upper(),
        "PORT": int(env.get("TUNETALLY_PORT", "7070")),
    }
