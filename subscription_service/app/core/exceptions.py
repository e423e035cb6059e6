"""Exception types shared by the store, the request mapping and the routes."""


class AppError(Exception):
    """Base app exception."""


class ValidationError(AppError):
    """Malformed or missing client input."""


class InvalidFormat(ValidationError):
    """A month token did not match the ``MM-YYYY`` pattern."""


class NotFoundError(AppError):
    """No subscription exists with the requested id."""


class PersistenceError(AppError):
    """The database rejected or failed to execute a statement."""


class DeadlineExceeded(PersistenceError):
    """The request deadline elapsed before the statement finished."""
