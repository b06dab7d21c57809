"""Error taxonomy shared by the webhook relay, command handlers and the store.

Each error carries the HTTP status and the short public code used when it
ends a webhook request. The message of the exception is for logs only and is
never sent back to a webhook caller.
"""


class YarrbotError(Exception):
    status: int = 500
    code: str = "internal_error"


class AuthenticationError(YarrbotError):
    status = 401
    code = "unauthorized"


class AuthorizationError(YarrbotError):
    status = 403
    code = "forbidden"


class NotFoundError(YarrbotError):
    status = 404
    code = "not_found"


class ValidationError(YarrbotError):
    status = 400
    code = "bad_request"


class PayloadTooLargeError(ValidationError):
    status = 413
    code = "payload_too_large"


class TransientInfraError(YarrbotError):
    """The datastore or the homeserver could not be reached."""

    status = 500
    code = "internal_error"


class ProtocolError(YarrbotError):
    """The homeserver rejected an operation, e.g. a join."""

    status = 500
    code = "internal_error"
