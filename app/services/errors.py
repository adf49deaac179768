class LifecycleError(Exception):
    """Base class for errors raised by the lifecycle service."""


class ValidationError(LifecycleError):
    """Input the caller has to fix (HTTP 400)."""


class NotFoundError(LifecycleError):
    """A referenced record does not exist in the caller's gym (HTTP 404)."""
