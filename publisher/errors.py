# publisher/errors.py
"""Domain errors raised by the stores and services.

Each error carries the HTTP status code the API answers with; the handlers in
``publisher_service`` turn them into ``{"error": message}`` bodies.
"""


class PublisherError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PublisherError):
    """Malformed or empty required field."""
    status_code = 400


class AuthenticationError(PublisherError):
    status_code = 401


class PermissionDeniedError(PublisherError):
    status_code = 403


class NotFoundError(PublisherError):
    """Referenced id is absent."""
    status_code = 404


class ConflictError(PublisherError):
    status_code = 409


class DuplicateNameError(ConflictError):
    """Unique-name constraint violated."""


class CategoryInUseError(ConflictError):
    """Category is still referenced by articles."""


class InternalError(PublisherError):
    status_code = 500
