#init_db.py
"""Create tables, seed default site settings and the first admin.

Usage: ``ADMIN_EMAIL=... ADMIN_PASSWORD=... python init_db.py``
"""
from sqlalchemy import inspect

from app import create_app
from app.models import db
from services.auth import create_admin
from services.settings import seed_default_settings


def init_db(app):
    with app.app_context():
        tables = inspect(db.engine).get_table_names()
        db.create_all()
        if "orders" not in tables:
            app.logger.info("Database schema initialized.")
        else:
            app.logger.info("Tables already exist; created any missing ones.")

        added = seed_default_settings()
        app.logger.info("Seeded %d default setting(s).", added)

        admin_email = app.config.get("ADMIN_EMAIL")
        admin_password = app.config.get("ADMIN_PASSWORD")
        if not (admin_email and admin_password):
            app.logger.info("ADMIN_EMAIL or ADMIN_PASSWORD not set. Skipping admin user creation.")
            return

        user, err = create_admin(admin_email, admin_password)
        if err:
            app.logger.warning("Admin user not created: %s", err)
        else:
            app.logger.info("Default admin user %s created.", user.email)


if __name__ == "__main__":
    init_db(create_app())
