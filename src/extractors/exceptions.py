"""
Exceptions for asset sources and the extraction engine.
"""


class ExtractorError(Exception):
    """Base exception for extractor errors."""
    pass


class HeaderNotFoundError(ExtractorError):
    """Raised when none of a category's signatures occur in a buffer."""
    pass


class AssetNotFoundError(ExtractorError):
    """Raised when an asset id does not exist in a source."""

    def __init__(self, name: str, source: str = ""):
        self.name = name
        self.source = source
        message = f"Asset '{name}' not found"
        if source:
            message += f" in {source}"
        super().__init__(message)


class StorageError(ExtractorError):
    """Raised when a backing store cannot be read or written."""
    pass


class NoConnectionError(StorageError):
    """Raised when the database backend has no open connection."""
    pass


class ConfigurationError(ExtractorError):
    """Raised when no storage location can be resolved and the operator declined."""
    pass
