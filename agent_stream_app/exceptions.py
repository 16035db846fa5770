"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class AgentStreamError(Exception):
    """Base exception for all application-specific errors."""


class ValidationError(AgentStreamError):
    """Raised for a wrong file extension, an empty derived name or a malformed segment."""


class NotFoundError(AgentStreamError):
    """Raised when a flow, file, directory or agent definition does not exist."""


class ConflictError(AgentStreamError):
    """Raised when a rename or insert would overwrite an existing flow."""


class StorageError(AgentStreamError):
    """Raised when creating, reading, writing or removing a file fails."""


class ParseError(AgentStreamError):
    """Raised for malformed flow documents or settings content."""


class ConfigurationError(AgentStreamError):
    """Raised for issues related to application configuration loading or validation."""
