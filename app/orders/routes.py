# app/orders/routes.py
from flask import current_app, jsonify, request

from . import orders_bp
from ..auth import admin_required_json
from ..proxy import routes as proxy_routes
from services import orders as order_service


def _client_ip():
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr


@orders_bp.get("")
@admin_required_json
def list_orders():
    """GET /api/orders?status=&service_type=&date_from=&date_to=&search="""
    try:
        filters = order_service.parse_filters(request.args)
    except order_service.InvalidOrder as e:
        return jsonify({"error": str(e)}), 400
    orders = order_service.list_orders(filters)
    return jsonify({"orders": [o.to_dict() for o in orders]})


@orders_bp.post("")
def place_order():
    """POST /api/orders  -> 201 { "order": {...} }"""
    data = request.get_json(silent=True)
    try:
        order = order_service.create_order(data, client_ip=_client_ip())
    except order_service.InvalidOrder as e:
        return jsonify({"error": str(e)}), 400
    except order_service.OrderNumberConflict as e:
        current_app.logger.error("Order rejected: %s", e)
        return jsonify({"error": str(e)}), 409

    options = data.get("options") or {}
    if order.service_type == "delivery" and order.lalamove_quotation_id:
        order = order_service.dispatch_delivery(order, options, proxy_routes.build_client())
    return jsonify({"order": order.to_dict()}), 201


@orders_bp.get("/stats")
@admin_required_json
def stats():
    return jsonify({"stats": order_service.order_stats()})


@orders_bp.patch("/bulk")
@admin_required_json
def bulk_update():
    """PATCH /api/orders/bulk  { "ids": [...], "status": "preparing" }"""
    data = request.get_json(silent=True) or {}
    try:
        updated = order_service.bulk_update_status(data.get("ids"), data.get("status"))
    except order_service.InvalidOrder as e:
        return jsonify({"error": str(e)}), 400
    current_app.logger.info("Bulk status update to %s for %d order(s)", data.get("status"), updated)
    return jsonify({"success": True, "updated": updated})


@orders_bp.get("/<order_id>")
@admin_required_json
def get_order(order_id):
    order = order_service.get_order(order_id)
    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict()})


@orders_bp.patch("/<order_id>")
@admin_required_json
def update_order(order_id):
    """PATCH /api/orders/<id>  { "status": ..., "lalamove_order_id": ..., ... }"""
    try:
        order = order_service.update_order(order_id, request.get_json(silent=True))
    except order_service.InvalidOrder as e:
        return jsonify({"error": str(e)}), 400
    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict()})


@orders_bp.delete("/<order_id>")
@admin_required_json
def delete_order(order_id):
    if not order_service.delete_order(order_id):
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"message": f"Order {order_id} deleted."})
