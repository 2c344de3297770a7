"""Error types raised while building and using a discovery service model."""


class DiscoveryError(Exception):
    """Base class for all errors raised by api_discovery."""


class ValidationError(DiscoveryError):
    """A required input is missing or has the wrong shape."""


class NotFoundError(DiscoveryError):
    """An unknown resource, method or schema name was requested."""


class ParseError(DiscoveryError):
    """Text could not be parsed as JSON or deserialized into the target type."""


class ServerError(DiscoveryError):
    """The server populated the error field of its response."""

    def __init__(self, message: str, error=None):
        super().__init__(message)
        self.error = error


class SchemaResolutionError(DiscoveryError):
    """The schemas of a discovery document are inconsistent."""


class ProtocolError(DiscoveryError):
    """A legacy response envelope parsed but carries no data."""
