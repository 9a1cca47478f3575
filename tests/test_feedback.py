import os
import tempfile
import unittest
from datetime import datetime, timedelta

from cinco.db.storage import LocalStorage
from cinco.shop.errors import ValidationError
from cinco.shop.feedback import list_feedback, submit_feedback

NOW = datetime(2026, 3, 1, 9, 0, 0)


class FeedbackTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.storage = LocalStorage(os.path.join(self.temp_dir.name, "test.sqlite"))

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_submit_and_list(self):
        first = await submit_feedback(
            self.storage,
            "Ana",
            "ana@example.com",
            "Great coffee",
            "The Spanish Latte was <script>x</script>lovely today.",
            now=NOW,
        )
        self.assertEqual(len(first.id), 32)
        self.assertNotIn("<script>", first.message)

        second = await submit_feedback(
            self.storage,
            "Ben",
            "ben@example.com",
            "Delivery time",
            "My order arrived a little late.",
            now=NOW + timedelta(hours=1),
        )

        entries = await list_feedback(self.storage)
        self.assertEqual([e.id for e in entries], [first.id, second.id])
        self.assertEqual(entries[0], first)

    async def test_rejects_bad_input(self):
        cases = [
            ("", "ana@example.com", "Great coffee", "Lovely drinks all round."),
            ("Ana", "ana-at-example", "Great coffee", "Lovely drinks all round."),
            ("Ana", "ana@example.com", "Hi", "Lovely drinks all round."),
            ("Ana", "ana@example.com", "Great coffee", "Too short"),
            ("Ana", "ana@example.com", "Great coffee", "x" * 1001),
        ]
        for name, email, subject, message in cases:
            with self.subTest(name=name, email=email, subject=subject):
                with self.assertRaises(ValidationError):
                    await submit_feedback(self.storage, name, email, subject, message, now=NOW)
        self.assertEqual(await list_feedback(self.storage), [])
