"""Exceptions raised by the configuration store and API."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration service errors."""

    status_code: int = 500

    def __init__(self, message: str, code: str = "CONFIGURATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationValidationError(ConfigurationError):
    """Raised when a request or entry is missing or carries an invalid field."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR")


class ConfigurationNotFoundError(ConfigurationError):
    """Raised when a lookup by id or name matches no row."""

    status_code = 404

    def __init__(self, message: str = "Configuration entry not found"):
        super().__init__(message, "NOT_FOUND")


class ConfigurationStorageError(ConfigurationError):
    """Raised when the database connection or a query fails."""

    status_code = 500

    def __init__(self, message: str, code: str = "STORAGE_ERROR", operation: str | None = None):
        self.operation = operation
        super().__init__(message, code)


class ConfigurationParseError(ConfigurationStorageError):
    """Raised when stored data does not match its declared data type."""

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message, "PARSE_ERROR")
