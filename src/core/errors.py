"""
Error types for the reconciliation pipeline.

ConfigurationError is always fatal. Source errors are handled according to
the pipeline's failure policy. SinkWriteError is always fatal.
"""


class ReconError(Exception):
    """Base class for all reconciliation errors."""
    pass


class ConfigurationError(ReconError):
    """Raised when a required setting (credential, URL) is missing or invalid."""
    pass


class SourceError(ReconError):
    """
    Raised when an external system cannot deliver a usable response.

    Attributes:
        source: Name of the external system (e.g. "modern_treasury")
        key: Query key being fetched when the error occurred
        status: Upstream HTTP status, if any
    """

    def __init__(
        self,
        message: str,
        source: str,
        key: str | None = None,
        status: int | None = None,
    ):
        self.message = message
        self.source = source
        self.key = key
        self.status = status
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [f"[{self.source}]"]
        if self.key is not None:
            parts.append(f"key={self.key}")
        if self.status is not None:
            parts.append(f"status={self.status}")
        parts.append(self.message)
        return " ".join(parts)


class SourceUnavailable(SourceError):
    """The remote system is unreachable or returned a non-success status."""
    pass


class SourceDataInvalid(SourceError):
    """The response is malformed or missing required fields."""
    pass


class SinkWriteError(ReconError):
    """Raised when an output file cannot be created or written."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Cannot write {path}: {message}")
