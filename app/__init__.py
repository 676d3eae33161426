# app/__init__.py
import os

from flask import Flask, jsonify
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect, CSRFError

from delivery import SecretProvider
from delivery.client import API_KEY_NAME, API_SECRET_NAME
from .models import db, User

login_manager = LoginManager()
csrf = CSRFProtect()


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Authentication required."}), 401


def create_app(config_class="config.Config"):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)

    # Blueprints
    from .auth import auth_bp
    from .orders import orders_bp
    from .orders.routes import place_order
    from .store import store_bp
    from .proxy import proxy_bp

    app.register_blueprint(auth_bp, url_prefix="/api/admin")
    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    app.register_blueprint(store_bp, url_prefix="/api")
    app.register_blueprint(proxy_bp, url_prefix="/api/delivery")

    # Storefront endpoints are called anonymously from the checkout page
    csrf.exempt(proxy_bp)
    csrf.exempt(place_order)

    @app.errorhandler(CSRFError)
    def csrf_error(e):
        return jsonify({"error": e.description}), 400

    if not SecretProvider(app.config, os.environ).is_configured(API_KEY_NAME, API_SECRET_NAME):
        app.logger.warning(
            "Delivery credentials are not configured; quote and order proxy calls will fail"
        )

    @app.route("/")
    def index():
        return "Storefront API is running"

    return app
