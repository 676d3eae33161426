"""Client for the last-mile delivery API used by the storefront."""

from delivery.client import DeliveryClient
from delivery.errors import (
    ConfigurationError,
    DeliveryError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from delivery.models import Coordinates, DeliveryOrderResult, Quote, StoreConfig, StoreContact
from delivery.secrets import SecretProvider

__all__ = [
    "ConfigurationError",
    "Coordinates",
    "DeliveryClient",
    "DeliveryError",
    "DeliveryOrderResult",
    "Quote",
    "SecretProvider",
    "StoreConfig",
    "StoreContact",
    "TransportError",
    "UpstreamError",
    "ValidationError",
]
