"""Site settings and the store configuration derived from them."""

from __future__ import annotations

from typing import Optional

from app.models import db, Branch, SiteSetting
from delivery import StoreConfig, ValidationError
from delivery.models import parse_coordinate

# (key, default value, type, description)
DEFAULT_SETTINGS = [
    ("site_name", "Storefront", "text", "Name shown in the header"),
    ("site_logo", "", "image", "Logo URL"),
    ("site_description", "", "text", "Short tagline"),
    ("currency", "₱", "text", "Currency symbol"),
    ("currency_code", "PHP", "text", "ISO currency code"),
    ("lalamove_market", "PH", "text", "Delivery market code"),
    ("lalamove_service_type", "MOTORCYCLE", "text", "Delivery vehicle type"),
    ("lalamove_sandbox", "true", "boolean", "Use the delivery sandbox"),
    ("lalamove_store_name", "", "text", "Pickup contact name"),
    ("lalamove_store_phone", "", "text", "Pickup contact phone"),
    ("lalamove_store_address", "", "text", "Pickup address"),
    ("lalamove_store_latitude", "", "number", "Pickup latitude"),
    ("lalamove_store_longitude", "", "number", "Pickup longitude"),
]
SETTING_KEYS = {key for key, *_ in DEFAULT_SETTINGS}


def seed_default_settings() -> int:
    """Insert any missing default settings. Returns how many were added."""
    added = 0
    for key, value, kind, description in DEFAULT_SETTINGS:
        if db.session.get(SiteSetting, key) is None:
            db.session.add(SiteSetting(id=key, value=value, type=kind, description=description))
            added += 1
    db.session.commit()
    return added


def get_site_settings() -> dict:
    settings = {key: value for key, value, *_ in DEFAULT_SETTINGS}
    for row in SiteSetting.query.all():
        settings[row.id] = row.value or ""
    return settings


def update_settings(values: dict) -> Optional[str]:
    """Update known keys. Returns an error message on failure."""
    if not isinstance(values, dict) or not values:
        return "No settings provided."
    unknown = sorted(set(values) - SETTING_KEYS)
    if unknown:
        return f"Unknown setting(s): {', '.join(unknown)}"

    defaults = {key: (kind, description) for key, _, kind, description in DEFAULT_SETTINGS}
    for key, value in values.items():
        row = db.session.get(SiteSetting, key)
        if row is None:
            kind, description = defaults[key]
            row = SiteSetting(id=key, type=kind, description=description)
            db.session.add(row)
        row.value = "" if value is None else str(value)
    db.session.commit()
    return None


def _read_number(value) -> Optional[float]:
    try:
        return parse_coordinate(value, "coordinate")
    except ValidationError:
        return None


def build_store_config(settings: dict, branch: Optional[Branch] = None) -> Optional[StoreConfig]:
    """Resolve the pickup store, preferring ``branch`` over the global settings.

    Returns None when any field is missing, which disables delivery quotes.
    """
    if not settings:
        return None

    market = (settings.get("lalamove_market") or "").strip()
    service_type = (settings.get("lalamove_service_type") or "").strip()
    # Only an explicit "false" switches to production.
    sandbox = (settings.get("lalamove_sandbox") or "").strip().lower() != "false"

    if branch is not None:
        store_name = (branch.name or "").strip()
        store_phone = (branch.phone or "").strip()
        store_address = (branch.address or "").strip()
        latitude = _read_number(branch.latitude)
        longitude = _read_number(branch.longitude)
    else:
        store_name = (settings.get("lalamove_store_name") or "").strip()
        store_phone = (settings.get("lalamove_store_phone") or "").strip()
        store_address = (settings.get("lalamove_store_address") or "").strip()
        latitude = _read_number(settings.get("lalamove_store_latitude"))
        longitude = _read_number(settings.get("lalamove_store_longitude"))

    if not all([market, service_type, store_name, store_phone, store_address]):
        return None
    if latitude is None or longitude is None:
        return None

    return StoreConfig(
        market=market,
        service_type=service_type,
        sandbox=sandbox,
        store_name=store_name,
        store_phone=store_phone,
        store_address=store_address,
        store_latitude=latitude,
        store_longitude=longitude,
    )


def resolve_store_config(branch_id: Optional[str] = None) -> Optional[StoreConfig]:
    branch = db.session.get(Branch, branch_id) if branch_id else None
    if branch_id and (branch is None or not branch.is_active):
        return None
    return build_store_config(get_site_settings(), branch)
