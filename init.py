import logging
import sqlite3

from flask import Flask
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from werkzeug.exceptions import HTTPException

from tunetally.config import load_settings

# Shared extensions. Models import `db` from here, never from app.py.
db = SQLAlchemy()
login_manager = LoginManager()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_updates=None):
    """
    Build the TuneTally application.

    Settings come from the environment first, then from `config_updates`
    (tests pass their own database URI and token secret here).

    :param config_updates: Extra values for ``app.config``.
    :return: A configured Flask application with the schema created.
    :raises RuntimeError: If no token secret is configured.
    """
    app = Flask(__name__)

    app.config.update(load_settings())
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    if config_updates:
        app.config.update(config_updates)

    if not app.config.get("TOKEN_SECRET"):
        raise RuntimeError("TUNETALLY_TOKEN_SECRET is not configured")

    logging.getLogger("tunetally").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    login_manager.init_app(app)

    # Imported here so that models and views can import `db` from this module.
    import models  # noqa: F401
    from app import IdConverter, api
    from tunetally.guard import AuthorizationGuard, install_login_hooks
    from tunetally.tokens import TokenService

    tokens = TokenService(app.config["TOKEN_SECRET"], lifetime=app.config["TOKEN_LIFETIME"])
    guard = AuthorizationGuard(tokens)
    app.extensions["tunetally.tokens"] = tokens
    app.extensions["tunetally.guard"] = guard
    install_login_hooks(login_manager)

    app.url_map.converters["id"] = IdConverter
    app.register_blueprint(api)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error.description, error.code, {"Content-Type": "text/plain; charset=utf-8"}

    with app.app_context():
        db.create_all()

    return app
