# app/auth.py
from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from services.auth import authenticate

auth_bp = Blueprint("auth", __name__)


def admin_required_json(f):
    @wraps(f)
    def wrap(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "Authentication required."}), 401
        if not current_user.is_admin:
            return jsonify({"error": "Admin role required."}), 403
        return f(*args, **kwargs)
    return wrap


@auth_bp.get("/csrf")
def csrf_token():
    """GET /api/admin/csrf  -> token for the X-CSRFToken header"""
    return jsonify({"csrfToken": generate_csrf()})


@auth_bp.post("/login")
def login():
    """POST /api/admin/login  { "email": ..., "password": ... }"""
    data = request.get_json(silent=True) or {}
    user, err = authenticate(data.get("email", ""), data.get("password", ""))
    if err:
        current_app.logger.warning("Admin login rejected for %s: %s", data.get("email"), err)
        return jsonify({"error": "Invalid credentials"}), 401
    login_user(user)
    return jsonify({"user": user.to_dict()})


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"message": "Logged out"})


@auth_bp.get("/me")
@admin_required_json
def me():
    return jsonify({"user": current_user.to_dict()})
