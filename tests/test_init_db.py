from conftest import TestConfig
from app import create_app
from app.models import db, SiteSetting, User
from init_db import init_db


class SeedConfig(TestConfig):
    ADMIN_EMAIL = "owner@example.com"
    ADMIN_PASSWORD = "StrongPass!1234"


def test_init_db_seeds_settings_and_admin():
    app = create_app(SeedConfig)
    init_db(app)
    init_db(app)

    with app.app_context():
        assert SiteSetting.query.count() > 0
        admins = User.query.filter_by(is_admin=True).all()
        assert [u.email for u in admins] == ["owner@example.com"]
        db.drop_all()


def test_init_db_skips_admin_without_credentials():
    app = create_app(TestConfig)
    init_db(app)

    with app.app_context():
        assert User.query.count() == 0
        db.drop_all()
