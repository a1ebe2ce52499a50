"""Error taxonomy shared by the engine and the dashboard services."""


class SignalEngineError(Exception):
    """Base class for all signal engine errors."""


class ValidationError(SignalEngineError, ValueError):
    """Malformed alert rule or client state field. Raised before any mutation."""


class NotConfigured(SignalEngineError):
    """Durable backend selected but missing or unreachable."""


class TransientIOError(SignalEngineError):
    """Backend temporarily unavailable; the whole call is safe to retry."""


class NotFound(SignalEngineError, KeyError):
    """Internal lookup miss. Never raised by ClientStateStore.get."""


class AuthError(SignalEngineError):
    """Account binding failure."""


class UsernameTaken(AuthError):
    pass


class InvalidCredentials(AuthError):
    pass


class NotAuthenticated(AuthError):
    pass
