"""Stop payloads for the delivery API."""

from __future__ import annotations

from delivery.models import Coordinates, StoreConfig

# The provider keys addresses by locale; this store only operates in one.
ADDRESS_LOCALE = "en_PH"


def format_coordinate(value: float) -> str:
    """Decimal string as the upstream expects it (``121`` rather than ``121.0``)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _stop(lat: float, lng: float, address: str, market: str, contact_name: str) -> dict:
    return {
        "location": {
            "lat": format_coordinate(lat),
            "lng": format_coordinate(lng),
        },
        "addresses": {
            ADDRESS_LOCALE: {
                "displayString": address,
                "country": market,
            }
        },
        "contactName": contact_name,
    }


def build_stops(config: StoreConfig, address: str, coordinates: Coordinates) -> list[dict]:
    """Return ``[pickup, drop_off]`` for a quotation.

    Both stops use the store name as contact; the recipient is named when
    the order is placed, not when it is quoted.
    """
    return [
        _stop(
            config.store_latitude,
            config.store_longitude,
            config.store_address,
            config.market,
            config.store_name,
        ),
        _stop(
            coordinates.lat,
            coordinates.lng,
            address,
            config.market,
            config.store_name,
        ),
    ]
