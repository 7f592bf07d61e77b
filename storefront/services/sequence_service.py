# Overview: Atomic sequential id allocation per entity namespace.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Counter

NAMESPACES = (
    "products", "offers", "coupons", "receipts",
    "companies", "employees", "users", "reviews", "catalogs",
)


class SequenceError(Exception):
    """Raised when counter operations fail."""


def next_id(namespace: str) -> int:
    """
    Atomically allocate the next id for a namespace.

    Single UPDATE ... SET next_value = next_value + 1, then read back inside the
    same transaction; the row lock taken by the UPDATE serializes allocators.
    Does not commit: the caller commits together with the entity insert.
    """
    if namespace not in NAMESPACES:
        raise SequenceError(f"Unknown sequence namespace: {namespace}")

    stmt = (
        update(Counter)
        .where(Counter.name == namespace)
        .values(next_value=Counter.next_value + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        return db.session.query(Counter.next_value).filter_by(name=namespace).scalar()

    db.session.add(Counter(name=namespace, next_value=1))
    try:
        db.session.flush()
        return 1
    except IntegrityError:
        # Another transaction created the row first
        db.session.rollback()
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise
        return db.session.query(Counter.next_value).filter_by(name=namespace).scalar()


def current_value(namespace: str) -> int:
    """Last allocated id for a namespace (0 if none yet)."""
    value = db.session.query(Counter.next_value).filter_by(name=namespace).scalar()
    return value or 0
