# Overview: Thread-based concurrency checks against a file-backed SQLite database.

"""
Concurrency tests for id allocation, cart increments and stock decrements.

Each worker runs in its own app context (and therefore its own session and
connection) against a temporary SQLite file.
"""
import os
import tempfile
import threading
import unittest

from storefront import create_app
from storefront.extensions import db
from storefront.services import accounts_service, cart_service, checkout_service, products_service
from storefront.services.products_service import InsufficientStockError


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "OFFER_SWEEP_ENABLED": False,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            company = accounts_service.create_company({"name": "Concurrency Co", "email": "c@example.com"})
            self.company_id = company["id"]
            product = products_service.create_product(
                patch={"name": "Limited Mug", "price_cents": 1000, "stock": 3},
                company_id=self.company_id,
            )
            self.product_id = product["id"]

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_threads(self, target, args_list):
        results = []
        lock = threading.Lock()

        def worker(*args):
            with self.app.app_context():
                try:
                    value = target(*args)
                    with lock:
                        results.append(value)
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=args) for args in args_list]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def test_concurrent_creates_get_distinct_dense_ids(self):
        def create(i):
            return products_service.create_product(
                patch={"name": f"Product {i}", "price_cents": 100},
                company_id=self.company_id,
            )["id"]

        results = self._run_threads(create, [(i,) for i in range(8)])

        errors = [r for r in results if isinstance(r, Exception)]
        self.assertFalse(errors)
        # The seeded product already took id 1
        self.assertEqual(sorted(results), list(range(2, 10)))

    def test_concurrent_adds_merge_into_one_line(self):
        user_id = 7

        def add():
            cart = cart_service.add_item(user_id, self.product_id, 1)
            return cart.id

        results = self._run_threads(add, [() for _ in range(5)])

        self.assertFalse([r for r in results if isinstance(r, Exception)])
        self.assertEqual(len(set(results)), 1)
        with self.app.app_context():
            cart = cart_service.get_cart(user_id)
            self.assertEqual([(line.product_id, line.quantity) for line in cart.lines], [(self.product_id, 5)])

    def test_concurrent_checkout_never_oversells(self):
        def buy(user_id):
            receipt = checkout_service.finalize_checkout(
                user_id, line_items=[{"product_id": self.product_id, "quantity": 1}]
            )
            return receipt.id

        results = self._run_threads(buy, [(user_id,) for user_id in range(1, 7)])

        receipt_ids = [r for r in results if isinstance(r, int)]
        failures = [r for r in results if isinstance(r, Exception)]
        self.assertEqual(sorted(receipt_ids), [1, 2, 3])
        self.assertEqual(len(failures), 3)
        self.assertTrue(all(isinstance(f, InsufficientStockError) for f in failures))

        with self.app.app_context():
            self.assertEqual(products_service.get_product(self.product_id)["stock"], 0)


if __name__ == "__main__":
    unittest.main()
