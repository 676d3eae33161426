"""Order management: placement, filtering, status changes and delivery dispatch."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from app.models import db, Branch, Order, OrderItem, ORDER_STATUSES, SERVICE_TYPES, utcnow
from delivery import DeliveryClient, DeliveryError
from services.settings import resolve_store_config

UUID_PREFIX = re.compile(
    r"^([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})", re.IGNORECASE
)
DELIVERY_FIELDS = ("lalamove_order_id", "lalamove_status", "lalamove_tracking_url")
ORDER_NUMBER_ATTEMPTS = 3


class InvalidOrder(ValueError):
    """Raised for order input that should be answered with a 400."""


class OrderNumberConflict(RuntimeError):
    """Concurrent checkouts kept claiming the same order number."""


def normalize_phone_number(phone: Optional[str]) -> Optional[str]:
    """Normalize a Philippine mobile number to ``+63`` form."""
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone.strip())
    if not digits:
        return None
    if digits.startswith("63"):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+63{digits[1:]}"
    return f"+63{digits}"


def extract_menu_item_id(cart_item_id) -> Optional[str]:
    """Cart ids are ``<menu item uuid>-<variation/add-on suffix>``."""
    if not cart_item_id:
        return None
    match = UUID_PREFIX.match(str(cart_item_id))
    return match.group(1) if match else None


def _parse_datetime(value: str, field: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidOrder(f"Invalid {field}") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_filters(args) -> dict:
    """Validate list filters taken from a query string."""
    filters = {}
    status = (args.get("status") or "").strip()
    if status:
        if status not in ORDER_STATUSES:
            raise InvalidOrder(f"Invalid status: {status}")
        filters["status"] = status
    service_type = (args.get("service_type") or "").strip()
    if service_type:
        if service_type not in SERVICE_TYPES:
            raise InvalidOrder(f"Invalid service_type: {service_type}")
        filters["service_type"] = service_type
    for field in ("date_from", "date_to"):
        value = (args.get(field) or "").strip()
        if value:
            filters[field] = _parse_datetime(value, field)
    search = (args.get("search") or "").strip()
    if search:
        filters["search"] = search
    return filters


def list_orders(filters: Optional[dict] = None) -> list[Order]:
    filters = filters or {}
    query = Order.query
    if "status" in filters:
        query = query.filter(Order.status == filters["status"])
    if "service_type" in filters:
        query = query.filter(Order.service_type == filters["service_type"])
    if "date_from" in filters:
        query = query.filter(Order.created_at >= filters["date_from"])
    if "date_to" in filters:
        query = query.filter(Order.created_at <= filters["date_to"])
    if "search" in filters:
        term = f"%{filters['search'].lower()}%"
        query = query.filter(
            or_(
                Order.order_number.ilike(term),
                Order.customer_name.ilike(term),
                Order.contact_number.ilike(term),
            )
        )
    return query.order_by(Order.created_at.desc()).all()


def get_order(order_id: str) -> Optional[Order]:
    return db.session.get(Order, order_id)


def next_order_number(now: Optional[datetime] = None) -> str:
    """``ORD-YYYYMMDD-NNNN``, numbered per UTC day."""
    now = now or utcnow()
    prefix = f"ORD-{now:%Y%m%d}-"
    latest = (
        db.session.query(func.max(Order.order_number))
        .filter(Order.order_number.like(f"{prefix}%"))
        .scalar()
    )
    sequence = int(latest[len(prefix):]) + 1 if latest else 1
    return f"{prefix}{sequence:04d}"


def _number(value, field: str, minimum: float = 0) -> float:
    if value is None or isinstance(value, bool) or value == "":
        raise InvalidOrder(f"Invalid {field}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidOrder(f"Invalid {field}") from None
    if number < minimum:
        raise InvalidOrder(f"Invalid {field}")
    return number


def _text(data: dict, field: str) -> Optional[str]:
    value = data.get(field)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise InvalidOrder(f"Invalid {field}")
    return value


def _insert_with_order_number(order: Order) -> None:
    """Commit ``order`` under the next free number, retrying if another insert took it."""
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        order.order_number = next_order_number()
        db.session.add(order)
        try:
            db.session.commit()
            return
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning("Order number %s already taken; retrying", order.order_number)
    raise OrderNumberConflict("Could not allocate an order number, please retry")


def _build_items(cart_items: list) -> list[OrderItem]:
    items = []
    for entry in cart_items:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or not entry["name"]:
            raise InvalidOrder("Each cart item needs a name")
        quantity = int(_number(entry.get("quantity", 1), "quantity", minimum=1))
        unit_price = _number(entry.get("totalPrice"), "totalPrice")
        items.append(
            OrderItem(
                menu_item_id=extract_menu_item_id(entry.get("id")),
                menu_item_name=entry["name"],
                quantity=quantity,
                unit_price=unit_price,
                total_price=unit_price * quantity,
                selected_variation=entry.get("selectedVariation") or None,
                selected_add_ons=entry.get("selectedAddOns") or None,
            )
        )
    return items


def create_order(payload: dict, client_ip: Optional[str] = None) -> Order:
    """Validate a checkout payload and persist the order with its items.

    Raises:
        InvalidOrder: if the cart is empty or a required field is missing.
        OrderNumberConflict: if no free order number could be claimed.
    """
    if not isinstance(payload, dict):
        raise InvalidOrder("Missing body")

    cart_items = payload.get("cartItems")
    if not isinstance(cart_items, list) or not cart_items:
        raise InvalidOrder("Cart items are required")

    required = ("customerName", "contactNumber", "serviceType", "paymentMethod")
    if any(not payload.get(field) for field in required) or payload.get("total") is None:
        raise InvalidOrder("Missing required fields")
    customer_name, contact_number, service_type, payment_method = (
        _text(payload, field) for field in required
    )
    if service_type not in SERVICE_TYPES:
        raise InvalidOrder(f"Invalid serviceType: {service_type}")

    options = payload.get("options") or {}
    if not isinstance(options, dict):
        raise InvalidOrder("Invalid options")
    branch_id = _text(options, "branchId")
    if branch_id and db.session.get(Branch, branch_id) is None:
        raise InvalidOrder(f"Unknown branch: {branch_id}")

    delivery_fee = options.get("deliveryFee")
    party_size = options.get("partySize")
    order = Order(
        customer_name=customer_name,
        contact_number=contact_number,
        service_type=service_type,
        address=_text(options, "address"),
        landmark=_text(options, "landmark"),
        pickup_time=_text(options, "pickupTime"),
        party_size=int(_number(party_size, "partySize", minimum=1)) if party_size else None,
        dine_in_time=_text(options, "dineInTime"),
        payment_method=payment_method,
        reference_number=_text(options, "referenceNumber"),
        status="pending",
        total=_number(payload["total"], "total"),
        delivery_fee=_number(delivery_fee, "deliveryFee") if delivery_fee is not None else None,
        lalamove_quotation_id=_text(options, "lalamoveQuotationId"),
        notes=_text(options, "notes"),
        customer_ip=client_ip,
        branch_id=branch_id,
    )
    order.items = _build_items(cart_items)
    _insert_with_order_number(order)
    current_app.logger.info(
        "Order %s created service_type=%s total=%.2f",
        order.order_number,
        order.service_type,
        order.total,
    )
    return order


def dispatch_delivery(order: Order, options: dict, client: DeliveryClient) -> Order:
    """Book the courier for a delivery order placed against a quotation.

    Failures are logged and leave the order in place without tracking fields.
    """
    if order.service_type != "delivery" or not order.lalamove_quotation_id:
        return order

    config = resolve_store_config(order.branch_id)
    if config is None:
        current_app.logger.warning(
            "Order %s has a quotation but no usable store config; skipping delivery booking",
            order.order_number,
        )
        return order

    recipient_phone = normalize_phone_number(order.contact_number) or order.contact_number
    metadata = {
        "orderId": order.id,
        "deliveryAddress": options.get("address"),
        "deliveryLat": options.get("deliveryLat"),
        "deliveryLng": options.get("deliveryLng"),
    }
    try:
        result = client.create_order(
            order.lalamove_quotation_id,
            order.customer_name,
            recipient_phone,
            config,
            metadata=metadata,
        )
    except DeliveryError as exc:
        current_app.logger.error(
            "Delivery booking failed for order %s: %s", order.order_number, exc
        )
        return order

    order.lalamove_order_id = result.order_id
    order.lalamove_status = result.status
    order.lalamove_tracking_url = result.share_link
    db.session.commit()
    current_app.logger.info(
        "Order %s booked for delivery lalamove_order_id=%s",
        order.order_number,
        result.order_id,
    )
    return order


def _apply_status(order: Order, status: str) -> None:
    order.status = status
    if status == "completed":
        order.completed_at = order.completed_at or utcnow()


def update_order(order_id: str, data: dict) -> Optional[Order]:
    """Apply a partial update. Returns None if the order does not exist."""
    if not isinstance(data, dict) or not data:
        raise InvalidOrder("Nothing to update")
    status = data.get("status")
    if status is not None and status not in ORDER_STATUSES:
        raise InvalidOrder(f"Invalid status: {status}")

    order = get_order(order_id)
    if order is None:
        return None
    if status is not None:
        _apply_status(order, status)
    for field in DELIVERY_FIELDS + ("notes",):
        if field in data:
            setattr(order, field, data[field] or None)
    if "delivery_fee" in data:
        fee = data["delivery_fee"]
        order.delivery_fee = _number(fee, "delivery_fee") if fee is not None else None
    db.session.commit()
    return order


def bulk_update_status(ids: list, status: str) -> int:
    if not isinstance(ids, list) or not ids:
        raise InvalidOrder("ids must be a non-empty list")
    if status not in ORDER_STATUSES:
        raise InvalidOrder(f"Invalid status: {status}")
    orders = Order.query.filter(Order.id.in_(ids)).all()
    for order in orders:
        _apply_status(order, status)
    db.session.commit()
    return len(orders)


def delete_order(order_id: str) -> bool:
    order = get_order(order_id)
    if order is None:
        return False
    db.session.delete(order)
    db.session.commit()
    return True


def order_stats(now: Optional[datetime] = None) -> dict:
    """Dashboard counters. "Today" is the current UTC day."""
    now = now or utcnow()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)

    def count(*criteria):
        return Order.query.filter(*criteria).count()

    today = (Order.created_at >= start, Order.created_at < end)
    revenue = (
        db.session.query(func.coalesce(func.sum(Order.total), 0.0))
        .filter(*today, Order.status != "cancelled")
        .scalar()
    )
    return {
        "total_orders": Order.query.count(),
        "pending_orders": count(Order.status == "pending"),
        "today_orders": count(*today),
        "today_revenue": float(revenue or 0),
        "completed_orders": count(Order.status == "completed"),
        "cancelled_orders": count(Order.status == "cancelled"),
    }
