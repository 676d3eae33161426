from typing import Optional, Tuple

from app.models import db, Branch, Order
from delivery import ValidationError
from delivery.models import parse_coordinate

REQUIRED_FIELDS = ("name", "address", "phone", "latitude", "longitude")


def list_branches(include_inactive: bool = False):
    query = Branch.query
    if not include_inactive:
        query = query.filter(Branch.is_active.is_(True))
    return query.order_by(Branch.is_main.desc(), Branch.name).all()


def _clean(data: dict, partial: bool) -> Tuple[dict, Optional[str]]:
    values = {}
    for field in REQUIRED_FIELDS:
        if field not in data:
            if partial:
                continue
            return {}, f"Missing '{field}'."
        value = str(data[field] or "").strip()
        if not value:
            return {}, f"Missing '{field}'."
        if field in ("latitude", "longitude"):
            try:
                parse_coordinate(value, field)
            except ValidationError as exc:
                return {}, str(exc)
        values[field] = value
    for flag in ("is_main", "is_active"):
        if flag in data:
            values[flag] = bool(data[flag])
    return values, None


def _demote_other_mains(branch: Branch) -> None:
    Branch.query.filter(Branch.id != branch.id, Branch.is_main.is_(True)).update(
        {"is_main": False}, synchronize_session=False
    )


def create_branch(data: dict) -> Tuple[Optional[Branch], Optional[str]]:
    values, err = _clean(data or {}, partial=False)
    if err:
        return None, err
    branch = Branch(**values)
    db.session.add(branch)
    db.session.flush()
    if branch.is_main:
        _demote_other_mains(branch)
    db.session.commit()
    return branch, None


def get_branch(branch_id: str) -> Optional[Branch]:
    return db.session.get(Branch, branch_id)


def update_branch(branch: Branch, data: dict) -> Tuple[Optional[Branch], Optional[str]]:
    values, err = _clean(data or {}, partial=True)
    if err:
        return None, err
    for key, value in values.items():
        setattr(branch, key, value)
    if values.get("is_main"):
        _demote_other_mains(branch)
    db.session.commit()
    return branch, None


def delete_branch(branch_id: str) -> bool:
    branch = db.session.get(Branch, branch_id)
    if branch is None:
        return False
    # Orders keep their history; only the link is cleared.
    for order in Order.query.filter_by(branch_id=branch_id).all():
        order.branch_id = None
    db.session.delete(branch)
    db.session.commit()
    return True
