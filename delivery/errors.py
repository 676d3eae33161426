"""Exceptions raised by the delivery integration."""


class DeliveryError(Exception):
    """Base class for every failure of the delivery proxy."""


class ConfigurationError(DeliveryError):
    """A required key or secret is not configured."""

    def __init__(self, name: str):
        super().__init__(f"Missing required setting {name}")
        self.name = name


class ValidationError(DeliveryError):
    """A request field is missing or malformed."""

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"Missing or invalid field: {field}")
        self.field = field


class UpstreamError(DeliveryError):
    """The delivery API answered with a non-2xx status or an unreadable body."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Upstream error {status_code}")
        self.status_code = status_code
        self.body = body


class TransportError(DeliveryError):
    """The delivery API could not be reached."""
