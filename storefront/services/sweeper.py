# Overview: Offer expiry sweep and the background thread that runs it on an interval.

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from flask import Flask, current_app

from ..extensions import db
from ..models import Offer, Product
from storefront.time_utils import utcnow
from .concurrency import begin_write, lock_for_update
from .offers_service import restore_product_price


@dataclass
class SweepResult:
    expired: list[int] = field(default_factory=list)
    restored: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"expired": self.expired, "restored": self.restored, "failed": self.failed}


def _expire_one(offer_id: int, now: datetime) -> tuple[bool, bool]:
    """Deactivate one offer in its own transaction. Returns (expired, price_restored)."""
    begin_write()
    offer = lock_for_update(db.session.query(Offer).filter_by(id=offer_id)).first()
    # Re-check under the lock: an API call may have changed it since the scan
    if offer is None or not offer.active or offer.end_date >= now:
        db.session.rollback()
        return False, False

    offer.active = False
    product = lock_for_update(db.session.query(Product).filter_by(id=offer.product_id)).first()
    restored = False
    if product is not None and product.original_price_cents is not None:
        restored = restore_product_price(product)

    db.session.commit()
    return True, restored


def sweep_expired_offers(now: datetime | None = None) -> SweepResult:
    """
    Deactivate every active offer whose end_date has passed and put its
    product back on the original price.

    Each offer is its own transaction; a failure is logged and the sweep moves on.
    """
    now = now or utcnow()
    result = SweepResult()

    offer_ids = [
        row[0]
        for row in db.session.query(Offer.id)
        .filter(Offer.active.is_(True), Offer.end_date < now)
        .order_by(Offer.id.asc())
        .all()
    ]
    db.session.rollback()

    for offer_id in offer_ids:
        try:
            expired, restored = _expire_one(offer_id, now)
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Failed to expire offer %s", offer_id)
            result.failed.append(offer_id)
            continue
        if expired:
            result.expired.append(offer_id)
        if restored:
            result.restored.append(offer_id)

    if result.expired or result.failed:
        current_app.logger.info(
            "Offer sweep: expired=%d restored=%d failed=%d",
            len(result.expired), len(result.restored), len(result.failed),
        )
    return result


class OfferSweeper:
    """
    Runs sweep_expired_offers every interval_seconds in a daemon thread.

    The thread lives for the whole process; stop() exists for tests and the CLI.
    """

    def __init__(self, app: Flask, interval_seconds: int = 3600):
        self.app = app
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SweepResult:
        with self.app.app_context():
            try:
                return sweep_expired_offers()
            finally:
                db.session.remove()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception:
                self.app.logger.exception("Offer sweep pass failed")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="offer-sweeper", daemon=True)
        self._thread.start()
        self.app.logger.info("Offer sweeper started (interval=%ss)", self.interval_seconds)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
