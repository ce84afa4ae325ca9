"""HTTP-facing error taxonomy.

Each error is a Werkzeug ``HTTPException`` so views can simply raise it; the
application's error handler renders ``description`` as a plain-text body.
"""

import enum

from werkzeug import exceptions


class AuthFailure(enum.Enum):
    """Internal reason behind an ``Unauthenticated`` error. Never sent to clients."""
    MISSING_TOKEN = "missing_token"
    INVALID_SIGNATURE = "invalid_signature"
    MALFORMED_TOKEN = "malformed_token"
    EXPIRED = "expired"
    UNKNOWN_SUBJECT = "unknown_subject"
    BAD_CREDENTIALS = "bad_credentials"


class Unauthenticated(exceptions.Unauthorized):
    def __init__(self, description="Unauthorized", cause=AuthFailure.MISSING_TOKEN):
        super().__init__(description)
        self.cause = cause


class Forbidden(exceptions.Forbidden):
    pass


class NotFound(exceptions.NotFound):
    pass


class Malformed(exceptions.BadRequest):
    pass


class Conflict(exceptions.Conflict):
    pass
