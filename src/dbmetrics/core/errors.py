"""Error types raised by the dbmetrics core.

Every failure propagates to the caller of the top-level operation. Nothing in
the core retries or recovers locally, so a caller either gets a complete
collection or one of these errors.
"""


class DbMetricsError(RuntimeError):
    """Base class for all dbmetrics errors."""


class ConfigError(DbMetricsError):
    """Raised when settings are missing or invalid."""


class TransportError(DbMetricsError):
    """Raised when a single HTTP request fails."""

    def __init__(self, path: str, message: str, status: int | None = None):
        self.path = path
        self.status = status
        prefix = f"GET {path}"
        if status is not None:
            prefix = f"{prefix}: HTTP {status}"
        super().__init__(f"{prefix}: {message}")


class DecodeError(DbMetricsError):
    """Raised when a response body cannot be decoded into records."""


class FetchError(DbMetricsError):
    """
    Raised when a logical fetch operation fails.

    Attributes:
        operation: Name of the operation that was running.
        ident: Identifier being fetched (job id, cluster id, pipeline id,
               application id), or None for listing calls.
    """

    def __init__(self, operation: str, message: str, ident: str | int | None = None):
        self.operation = operation
        self.ident = ident
        super().__init__(f"{operation}: {message}")


class UnsupportedOperationError(DbMetricsError):
    """Raised by services that do not provide an operation of the shared interface."""

    def __init__(self, service: str, operation: str):
        self.service = service
        self.operation = operation
        super().__init__(f"{service} does not support {operation}()")
