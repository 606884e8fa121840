"""
Custom application exceptions.

Centralised exception definitions for clean error handling
across all layers of the application.
"""


class DomainAgentError(Exception):
    """Base exception for the domain acquisition service."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(DomainAgentError):
    """Raised at startup when a required setting is missing or invalid."""

    def __init__(self, setting: str, reason: str = "Invalid value"):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for '{setting}': {reason}")


class RegistrarError(DomainAgentError):
    """Raised when a registrar API call cannot be completed."""

    def __init__(self, operation: str, reason: str = "Unknown error"):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Registrar call '{operation}' failed: {reason}")


class RegistrarTransportError(RegistrarError):
    """
    The request never produced an HTTP response.

    Examples: connection refused, DNS failure, read timeout.
    """
    pass


class RegistrarResponseError(RegistrarError):
    """
    The registrar answered, but the body could not be understood.

    Examples: invalid JSON, a JSON document of the wrong shape.
    """
    pass


class DatabaseError(DomainAgentError):
    """Raised when a database operation fails."""

    def __init__(self, operation: str, reason: str = "Unknown error"):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Database error during '{operation}': {reason}")


class IngestionError(DomainAgentError):
    """Raised when a drop-list file cannot be read."""

    def __init__(self, reason: str = "Unreadable drop list"):
        self.reason = reason
        super().__init__(f"Drop list ingestion failed: {reason}")


class RunInProgressError(DomainAgentError):
    """Raised when a purchase run is requested while another is active."""

    def __init__(self):
        super().__init__("A purchase run is already in progress")
