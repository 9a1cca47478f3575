import os
import tempfile
import unittest
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import aiosqlite

from cinco.db import crud
from cinco.db import database as db_database
from cinco.db.models import CartLine, LoginAttempt, Session, User
from cinco.db.storage import (
    CART_KEY,
    FEEDBACK_KEY,
    ORDERS_KEY,
    USERS_KEY,
    LocalStorage,
)


class CrudTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the store to a temporary file
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self.storage = LocalStorage(self.db_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    # ---------- raw key/value store ----------

    async def test_set_get_remove_item(self):
        self.assertIsNone(await self.storage.get_item("missing"))

        await self.storage.set_item("greeting", "kamusta")
        self.assertEqual(await self.storage.get_item("greeting"), "kamusta")

        # overwrite, last writer wins
        await self.storage.set_item("greeting", "hello")
        self.assertEqual(await self.storage.get_item("greeting"), "hello")
        self.assertEqual(await self.storage.keys(), ["greeting"])

        await self.storage.remove_item("greeting")
        self.assertIsNone(await self.storage.get_item("greeting"))

    async def test_json_helpers_and_corrupt_value(self):
        await self.storage.set_json("doc", {"a": [1, 2]})
        self.assertEqual(await self.storage.get_json("doc"), {"a": [1, 2]})

        await self.storage.set_item("doc", "{not json")
        self.assertEqual(await self.storage.get_json("doc", {}), {})
        self.assertEqual(await self.storage.get_json("absent", []), [])

    async def test_clear(self):
        await self.storage.set_item("a", "1")
        await self.storage.set_item("b", "2")
        await self.storage.clear()
        self.assertEqual(await self.storage.keys(), [])

    async def test_write_errors_are_swallowed(self):
        @asynccontextmanager
        async def broken_connect(path=None):
            raise aiosqlite.OperationalError("disk I/O error")
            yield  # pragma: no cover

        orig_connect = db_database.connect
        try:
            db_database.connect = broken_connect  # type: ignore
            # none of these should raise
            await self.storage.set_item("k", "v")
            await self.storage.remove_item("k")
            await self.storage.clear()
        finally:
            db_database.connect = orig_connect  # restore

        self.assertIsNone(await self.storage.get_item("k"))

    # ---------- users ----------

    async def test_users_case_insensitive(self):
        self.assertTrue(await crud.email_available(self.storage, "Maria@Example.com"))
        await crud.save_user(
            self.storage, User("Maria@Example.com", "Maria", "hash")
        )

        self.assertFalse(await crud.email_available(self.storage, "maria@example.com"))
        self.assertEqual(
            await crud.find_user_key(self.storage, "  MARIA@example.COM "),
            "Maria@Example.com",
        )
        user = await crud.get_user(self.storage, "maria@example.com")
        self.assertEqual(user.name, "Maria")
        self.assertEqual(user.password_hash, "hash")
        self.assertIsNone(await crud.get_user(self.storage, "nobody@example.com"))

        # stored layout: email -> {name, password}
        raw = await self.storage.get_json(USERS_KEY)
        self.assertEqual(raw, {"Maria@Example.com": {"name": "Maria", "password": "hash"}})

    # ---------- sessions ----------

    async def test_session_record(self):
        self.assertIsNone(await crud.get_session_record(self.storage))
        now = datetime(2026, 3, 1, 9, 0, 0)
        session = Session("a@example.com", "tok", now, now, now + timedelta(minutes=30))
        await crud.save_session_record(self.storage, session)
        self.assertEqual(await crud.get_session_record(self.storage), session)

        await crud.remove_session_record(self.storage)
        self.assertIsNone(await crud.get_session_record(self.storage))

    # ---------- carts ----------

    async def test_carts_are_per_user(self):
        a_line = CartLine("cc-01", "Americano", 70.0, "12oz", 2)
        b_line = CartLine("cc-07", "Matcha Latte", 110.0, "16oz", 1)
        await crud.save_cart(self.storage, "a@example.com", [a_line])
        await crud.save_cart(self.storage, "b@example.com", [b_line])

        self.assertEqual(await crud.get_cart(self.storage, "a@example.com"), [a_line])
        self.assertEqual(await crud.get_cart(self.storage, "b@example.com"), [b_line])
        self.assertEqual(await crud.get_cart(self.storage, "c@example.com"), [])

        # empty cart drops the user's entry
        await crud.remove_cart(self.storage, "a@example.com")
        carts = await self.storage.get_json(CART_KEY)
        self.assertNotIn("a@example.com", carts)
        self.assertIn("b@example.com", carts)

    async def test_cart_line_with_garbage_price_reads_as_zero(self):
        await self.storage.set_json(
            CART_KEY,
            {"a@example.com": [{"name": "Americano", "unit_price": "free", "quantity": "x"}]},
        )
        [line] = await crud.get_cart(self.storage, "a@example.com")
        self.assertEqual(line.unit_price, 0.0)
        self.assertEqual(line.quantity, 0)

    async def test_cart_total(self):
        self.assertIsNone(await crud.get_cart_total(self.storage))
        await crud.set_cart_total(self.storage, 140)
        self.assertEqual(await self.storage.get_item("cincoCoffeeTotal"), "140.00")
        self.assertEqual(await crud.get_cart_total(self.storage), 140.0)
        await crud.remove_cart_total(self.storage)
        self.assertIsNone(await crud.get_cart_total(self.storage))

    # ---------- logs ----------

    async def test_malformed_log_entries_are_skipped(self):
        await self.storage.set_json(
            FEEDBACK_KEY,
            ["junk", None, {"id": "f1", "name": "Ana", "timestamp": "not a date"}],
        )
        [entry] = await crud.list_feedback(self.storage)
        self.assertEqual(entry.id, "f1")
        self.assertEqual(entry.subject, "")
        self.assertEqual(entry.timestamp, datetime.min)

        await self.storage.set_json(
            ORDERS_KEY,
            [
                42,
                ["not", "an", "order"],
                {
                    "order_number": 12345,
                    "user_id": "a@example.com",
                    "lines": [{"name": "Americano", "unit_price": 70, "quantity": 1}, "x"],
                    "shipping": {"first_name": "Juan", "nickname": "J"},
                },
                {"order_number": 23456, "user_id": "a@example.com", "shipping": "none"},
            ],
        )
        orders = await crud.list_orders(self.storage, "a@example.com")
        self.assertEqual([o.order_number for o in orders], [12345, 23456])
        self.assertEqual(len(orders[0].lines), 1)
        self.assertEqual(orders[0].shipping.first_name, "Juan")
        self.assertEqual(orders[0].shipping.zip_code, "")
        self.assertEqual(orders[1].shipping.first_name, "")
        self.assertEqual(orders[1].lines, ())

        self.assertEqual((await crud.get_order(self.storage, 23456)).user_id, "a@example.com")
        self.assertEqual(await crud.order_numbers(self.storage), {12345, 23456})

    # ---------- login attempts ----------

    async def test_login_attempt_keyed_by_lower_email(self):
        now = datetime(2026, 3, 1, 9, 0, 0)
        record = LoginAttempt(2, now, now + timedelta(seconds=5))
        await crud.save_login_attempt(self.storage, "Jo@Example.com", record)

        self.assertEqual(
            await crud.get_login_attempt(self.storage, "jo@example.com"), record
        )
        await crud.save_login_attempt(self.storage, "JO@EXAMPLE.COM", None)
        self.assertIsNone(await crud.get_login_attempt(self.storage, "jo@example.com"))
