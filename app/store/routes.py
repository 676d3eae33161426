# app/store/routes.py
from flask import jsonify, request

from . import store_bp
from ..auth import admin_required_json
from services import branches as branch_service
from services import settings as settings_service


@store_bp.get("/settings")
def get_settings():
    return jsonify({"settings": settings_service.get_site_settings()})


@store_bp.patch("/settings")
@admin_required_json
def update_settings():
    """PATCH /api/settings  { "lalamove_market": "PH", ... }"""
    err = settings_service.update_settings(request.get_json(silent=True))
    if err:
        return jsonify({"error": err}), 400
    return jsonify({"settings": settings_service.get_site_settings()})


@store_bp.get("/settings/delivery")
def delivery_config():
    """Store config the checkout page sends along with quote requests."""
    config = settings_service.resolve_store_config(request.args.get("branch_id"))
    if config is None:
        return jsonify({"error": "Delivery is not available"}), 404
    return jsonify({"config": config.to_payload()})


@store_bp.get("/branches")
def list_branches():
    return jsonify({"branches": [b.to_dict() for b in branch_service.list_branches()]})


@store_bp.post("/branches")
@admin_required_json
def create_branch():
    branch, err = branch_service.create_branch(request.get_json(silent=True))
    if err:
        return jsonify({"error": err}), 400
    return jsonify({"branch": branch.to_dict()}), 201


@store_bp.patch("/branches/<branch_id>")
@admin_required_json
def update_branch(branch_id):
    branch = branch_service.get_branch(branch_id)
    if branch is None:
        return jsonify({"error": "Branch not found."}), 404
    branch, err = branch_service.update_branch(branch, request.get_json(silent=True))
    if err:
        return jsonify({"error": err}), 400
    return jsonify({"branch": branch.to_dict()})


@store_bp.delete("/branches/<branch_id>")
@admin_required_json
def delete_branch(branch_id):
    if not branch_service.delete_branch(branch_id):
        return jsonify({"error": "Branch not found."}), 404
    return jsonify({"message": f"Branch {branch_id} deleted."})
