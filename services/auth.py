import re
from typing import Optional, Tuple

from app.models import db, User


def is_valid_password(password: str) -> bool:
    """Validate password complexity or passphrase length."""
    if (
        len(password) >= 14
        and re.search(r"[A-Z]", password)
        and re.search(r"[a-z]", password)
        and re.search(r"[0-9]", password)
        and re.search(r"[^a-zA-Z0-9]", password)
    ):
        return True
    if len(password) >= 24 and password.isalpha():
        return True
    return False


def authenticate(email: str, password: str) -> Tuple[Optional[User], Optional[str]]:
    """Return the admin if credentials are valid, otherwise an error message."""
    email = (email or "").strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password or ""):
        return None, "Invalid credentials"
    if not user.is_active:
        return None, "Account disabled"
    if not user.is_admin:
        return None, "Admin role required"
    return user, None


def create_admin(email: str, password: str, name: str = "Admin") -> Tuple[Optional[User], Optional[str]]:
    """Create an admin account. Returns (user, None) or (None, error message)."""
    email = (email or "").strip().lower()
    if not email:
        return None, "Email is required."
    if not is_valid_password(password or ""):
        return None, "Password does not meet complexity requirements."
    if User.query.filter_by(email=email).first():
        return None, "Email already registered."
    user = User(email=email, name=name, is_admin=True, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user, None
