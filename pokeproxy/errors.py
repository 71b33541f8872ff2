"""
Domain error taxonomy.

The fetch client classifies upstream outcomes into these errors, the
service layer validates caller input with them, and the HTTP/CLI
boundaries map them onto status codes and exit codes.
"""


class PokeProxyError(Exception):
    """Base class for every error raised by pokeproxy."""
    pass


class ValidationError(PokeProxyError):
    """Caller-supplied data is malformed. Never retried."""
    pass


class InvalidInputError(ValidationError):
    pass


class InvalidLimitError(ValidationError):
    def __init__(self, message: str = "invalid limit: must be between 1 and 100"):
        super().__init__(message)


class InvalidOffsetError(ValidationError):
    def __init__(self, message: str = "invalid offset: must be non-negative"):
        super().__init__(message)


class NotFoundError(PokeProxyError):
    """Upstream confirmed the resource does not exist."""

    def __init__(self, message: str = "pokemon not found"):
        super().__init__(message)


class UpstreamError(PokeProxyError):
    """
    The upstream API could not be reached or kept failing.

    Raised after the retry budget is exhausted; the last transient
    failure is chained as ``__cause__``.
    """
    pass


class RequestCancelledError(UpstreamError):
    """The caller's context was cancelled or its deadline expired."""
    pass


class UnexpectedError(PokeProxyError):
    """Programming or decoding fault. Details are logged, never exposed."""
    pass


class ConfigError(PokeProxyError):
    """Invalid runtime configuration."""
    pass
