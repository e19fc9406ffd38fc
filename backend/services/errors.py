"""
Service-layer exceptions.

Every service raises a ``ServiceError`` subclass; the API layer turns it into
a JSON body and uses ``code`` as the HTTP status.
"""


class ServiceError(Exception):
    code = 400

    def __init__(self, message, code=None, errors=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.errors = errors

    def to_dict(self):
        body = {'error': self.message, 'type': type(self).__name__}
        if self.errors:
            body['errors'] = self.errors
        return body


class ValidationError(ServiceError):
    """Malformed or missing input."""
    code = 400


class AuthorizationError(ServiceError):
    """The actor is not allowed to perform this operation."""
    code = 403


class NotFoundError(ServiceError):
    code = 404


class ConflictError(ServiceError):
    """Illegal state transition, duplicate or lost race."""
    code = 409
