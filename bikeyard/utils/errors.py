"""
bikeyard/utils/errors.py
------------------------
HTTP-facing exceptions. Raise them anywhere inside a request; the handlers
registered in create_app() turn them into the JSON envelope.
"""


class ApiError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details


class ValidationFailed(ApiError):
    """400 with per-field detail: `errors` is {field: message}."""
    status_code = 400
    message = 'Validation failed'

    def __init__(self, errors, message=None):
        details = [{'field': f, 'message': m} for f, m in errors.items()]
        super().__init__(message, details)
        self.errors = errors


class BadRequest(ApiError):
    status_code = 400
    message = 'Bad request'


class Unauthorized(ApiError):
    status_code = 401
    message = 'Unauthorized'


class Forbidden(ApiError):
    status_code = 403
    message = 'Forbidden: Insufficient permissions'


class NotFound(ApiError):
    status_code = 404
    message = 'Not found'


class Conflict(ApiError):
    status_code = 409
    message = 'Conflict'
