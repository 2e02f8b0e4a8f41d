"""Custom exceptions for release-metadata."""


class ReleaseMetadataError(Exception):
    """Base exception for all release-metadata operations."""


class ConfigurationError(ReleaseMetadataError):
    """Raised when configuration validation fails."""


class DocumentNotFoundError(ReleaseMetadataError):
    """Raised when a required release-notes document does not exist."""


class DocumentValidationError(ReleaseMetadataError):
    """Raised when a document does not match its schema."""


class APIError(ReleaseMetadataError):
    """Raised when HTTP operations fail."""


class FileProcessingError(ReleaseMetadataError):
    """Raised when file operations fail."""
