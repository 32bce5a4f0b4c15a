"""Exceptions raised by the curation pipeline."""


class CuratorError(Exception):
    """Base class for all curation errors."""


class ConfigurationError(CuratorError):
    """Raised when the run configuration is unusable, before any I/O happens."""


class IngestionError(CuratorError):
    """Raised when a single feed source cannot be fetched or parsed."""

    def __init__(self, source_url: str, message: str):
        super().__init__(f"{source_url}: {message}")
        self.source_url = source_url


class BackendError(CuratorError):
    """Raised when the search index fails to reset, index or query."""


class PublishError(CuratorError):
    """Raised when the digest payload cannot be written to its destination."""
