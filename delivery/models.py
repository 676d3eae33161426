"""Data models shared by the delivery client and its callers."""

from __future__ import annotations

import math
from dataclasses import dataclass

from delivery.errors import ValidationError


def parse_coordinate(value, field: str) -> float:
    """Coerce ``value`` to a finite float or raise ValidationError."""
    if value is None or isinstance(value, bool) or value == "":
        raise ValidationError(field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f"{field} must be a number") from None
    if not math.isfinite(number):
        raise ValidationError(field, f"{field} must be a finite number")
    return number


def parse_flag(value, default: bool = True) -> bool:
    """Interpret booleans sent as JSON values or as ``"true"``/``"false"`` strings."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"false", "0", "no", "off", ""}
    return bool(value)


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class StoreContact:
    """The part of a store needed to place an order against a quotation."""

    market: str
    sandbox: bool
    store_name: str
    store_phone: str

    @classmethod
    def from_payload(cls, data: dict) -> "StoreContact":
        values = {}
        for field in ("market", "storeName", "storePhone"):
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(field)
            values[field] = value.strip()
        return cls(
            market=values["market"],
            sandbox=parse_flag(data.get("sandbox"), default=False),
            store_name=values["storeName"],
            store_phone=values["storePhone"],
        )


@dataclass(frozen=True)
class StoreConfig:
    """Pickup point identity and location for one store or branch."""

    market: str
    service_type: str
    sandbox: bool
    store_name: str
    store_phone: str
    store_address: str
    store_latitude: float
    store_longitude: float

    @classmethod
    def from_payload(cls, data: dict) -> "StoreConfig":
        """Build a config from a camelCase request body.

        Raises:
            ValidationError: naming the first missing or malformed field.
        """
        strings = {}
        for field in ("market", "serviceType", "storeName", "storePhone", "storeAddress"):
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(field)
            strings[field] = value.strip()

        return cls(
            market=strings["market"],
            service_type=strings["serviceType"],
            sandbox=parse_flag(data.get("sandbox"), default=False),
            store_name=strings["storeName"],
            store_phone=strings["storePhone"],
            store_address=strings["storeAddress"],
            store_latitude=parse_coordinate(data.get("storeLatitude"), "storeLatitude"),
            store_longitude=parse_coordinate(data.get("storeLongitude"), "storeLongitude"),
        )

    @property
    def contact(self) -> StoreContact:
        return StoreContact(
            market=self.market,
            sandbox=self.sandbox,
            store_name=self.store_name,
            store_phone=self.store_phone,
        )

    def to_payload(self) -> dict:
        return {
            "market": self.market,
            "serviceType": self.service_type,
            "sandbox": self.sandbox,
            "storeName": self.store_name,
            "storePhone": self.store_phone,
            "storeAddress": self.store_address,
            "storeLatitude": self.store_latitude,
            "storeLongitude": self.store_longitude,
        }


@dataclass
class Quote:
    """Normalized ``/quotations`` response. Missing fields stay ``None``."""

    quotation_id: str | None
    price: float | None
    currency: str | None
    expires_at: str | None

    def to_payload(self) -> dict:
        return {
            "quotationId": self.quotation_id,
            "price": self.price,
            "currency": self.currency,
            "expiresAt": self.expires_at,
        }


@dataclass
class DeliveryOrderResult:
    """Normalized ``/orders`` response."""

    order_id: str | None
    status: str | None
    share_link: str | None
    driver_id: str | None = None

    def to_payload(self) -> dict:
        return {
            "orderId": self.order_id,
            "status": self.status,
            "shareLink": self.share_link,
            "driverId": self.driver_id,
        }
