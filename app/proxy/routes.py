# app/proxy/routes.py
"""Public delivery proxy: ``POST /api/delivery/quote`` and ``POST /api/delivery/order``."""
import os

from flask import current_app, jsonify, request

from delivery import (
    ConfigurationError,
    Coordinates,
    DeliveryClient,
    DeliveryError,
    SecretProvider,
    StoreConfig,
    StoreContact,
    UpstreamError,
    ValidationError,
)
from delivery.models import parse_coordinate
from . import proxy_bp

ACTIONS = ("quote", "order")
# Every method is routed here so that anything but POST gets a JSON 405.
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_client() -> DeliveryClient:
    secrets = SecretProvider(current_app.config, os.environ)
    return DeliveryClient(secrets, timeout=current_app.config.get("DELIVERY_TIMEOUT", 20))


@proxy_bp.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = current_app.config.get(
        "DELIVERY_CORS_ORIGIN", "*"
    )
    response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    return response


def _error_response(exc: DeliveryError, action: str, forward_upstream_status: bool):
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400

    if isinstance(exc, ConfigurationError):
        current_app.logger.error("Delivery %s failed: %s is not configured", action, exc.name)
        return jsonify({"error": "Delivery service is not configured"}), 500

    status = 500
    if isinstance(exc, UpstreamError):
        current_app.logger.error(
            "Delivery %s rejected upstream status=%s body=%s", action, exc.status_code, exc.body
        )
        if forward_upstream_status and 400 <= exc.status_code < 600:
            status = exc.status_code
    else:
        current_app.logger.error("Delivery %s failed: %s", action, exc)

    message = "Delivery fee unavailable" if action == "quote" else "Delivery order failed"
    return jsonify({"error": message}), status


def _quote(body: dict):
    address = body.get("deliveryAddress")
    if (
        not isinstance(address, str)
        or not address.strip()
        or body.get("deliveryLat") is None
        or body.get("deliveryLng") is None
    ):
        return jsonify({"error": "Missing delivery details"}), 400

    try:
        coordinates = Coordinates(
            lat=parse_coordinate(body["deliveryLat"], "deliveryLat"),
            lng=parse_coordinate(body["deliveryLng"], "deliveryLng"),
        )
        config = StoreConfig.from_payload(body)
        quote = build_client().request_quote(config, address.strip(), coordinates)
    except DeliveryError as exc:
        return _error_response(exc, "quote", forward_upstream_status=True)

    return jsonify(quote.to_payload())


def _order(body: dict):
    if not body.get("quotationId") or not body.get("recipientName") or not body.get("recipientPhone"):
        return jsonify({"error": "Missing order details"}), 400

    metadata = body.get("metadata")
    try:
        contact = StoreContact.from_payload(body)
        result = build_client().create_order(
            body["quotationId"],
            body["recipientName"],
            body["recipientPhone"],
            contact,
            metadata=metadata if isinstance(metadata, dict) else {},
            remarks=body.get("recipientRemarks") or "",
            sender_stop_id=body.get("senderStopId"),
            recipient_stop_id=body.get("recipientStopId"),
        )
    except DeliveryError as exc:
        return _error_response(exc, "order", forward_upstream_status=False)

    return jsonify(result.to_payload())


@proxy_bp.route("/<action>", methods=ROUTED_METHODS)
def proxy(action):
    if request.method == "OPTIONS":
        return "", 204
    if request.method != "POST" or action not in ACTIONS:
        return jsonify({"error": "Method Not Allowed"}), 405

    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not body:
        return jsonify({"error": "Missing body"}), 400

    if action == "quote":
        return _quote(body)
    return _order(body)
