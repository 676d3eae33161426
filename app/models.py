# app/models.py
import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "preparing",
    "ready",
    "out_for_delivery",
    "completed",
    "cancelled",
)
SERVICE_TYPES = ("dine-in", "pickup", "delivery")


def utcnow():
    # Naive UTC, matching what SQLite hands back.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    name = db.Column(db.String(120))
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    def set_password(self, raw_password):
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password):
        return check_password_hash(self.password_hash, raw_password)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "is_admin": bool(self.is_admin),
        }


class SiteSetting(db.Model):
    __tablename__ = "site_settings"
    id = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, default="")
    type = db.Column(db.String(20), default="text")  # text | image | boolean | number
    description = db.Column(db.String(255))
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)


class Branch(db.Model):
    __tablename__ = "branches"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=False)
    latitude = db.Column(db.String(32), nullable=False)  # decimal strings
    longitude = db.Column(db.String(32), nullable=False)
    is_main = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "is_main": bool(self.is_main),
            "is_active": bool(self.is_active),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Order(db.Model):
    __tablename__ = "orders"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_number = db.Column(db.String(32), unique=True, nullable=False)
    customer_name = db.Column(db.String(120), nullable=False)
    contact_number = db.Column(db.String(50), nullable=False)
    service_type = db.Column(db.String(20), nullable=False)  # dine-in | pickup | delivery
    address = db.Column(db.Text)
    landmark = db.Column(db.String(255))
    pickup_time = db.Column(db.String(64))
    party_size = db.Column(db.Integer)
    dine_in_time = db.Column(db.String(64))
    payment_method = db.Column(db.String(32), nullable=False)
    reference_number = db.Column(db.String(64))
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    total = db.Column(db.Float, default=0.0)
    notes = db.Column(db.Text)
    customer_ip = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    completed_at = db.Column(db.DateTime)
    delivery_fee = db.Column(db.Float)
    lalamove_quotation_id = db.Column(db.String(64))
    lalamove_order_id = db.Column(db.String(64))
    lalamove_status = db.Column(db.String(32))
    lalamove_tracking_url = db.Column(db.String(512))
    branch_id = db.Column(db.String(36), db.ForeignKey("branches.id"))
    branch = db.relationship("Branch")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )

    def to_dict(self, include_items=True):
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "customer_name": self.customer_name,
            "contact_number": self.contact_number,
            "service_type": self.service_type,
            "address": self.address,
            "landmark": self.landmark,
            "pickup_time": self.pickup_time,
            "party_size": self.party_size,
            "dine_in_time": self.dine_in_time,
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "status": self.status,
            "total": float(self.total or 0),
            "notes": self.notes,
            "customer_ip": self.customer_ip,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "completed_at": _iso(self.completed_at),
            "delivery_fee": float(self.delivery_fee) if self.delivery_fee is not None else None,
            "lalamove_quotation_id": self.lalamove_quotation_id,
            "lalamove_order_id": self.lalamove_order_id,
            "lalamove_status": self.lalamove_status,
            "lalamove_tracking_url": self.lalamove_tracking_url,
            "branch_id": self.branch_id,
        }
        if include_items:
            data["order_items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = db.Column(db.String(36))
    menu_item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Float, default=0.0)
    total_price = db.Column(db.Float, default=0.0)
    selected_variation = db.Column(db.JSON)
    selected_add_ons = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=utcnow)
    order = db.relationship("Order", back_populates="items")

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "menu_item_id": self.menu_item_id,
            "menu_item_name": self.menu_item_name,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price or 0),
            "total_price": float(self.total_price or 0),
            "selected_variation": self.selected_variation,
            "selected_add_ons": self.selected_add_ons,
            "created_at": _iso(self.created_at),
        }
