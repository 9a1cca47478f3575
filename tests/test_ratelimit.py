import os
import tempfile
import unittest
from datetime import datetime, timedelta

from cinco.db.models import LoginAttempt
from cinco.db.storage import LocalStorage
from cinco.shop.ratelimit import (
    LockoutPolicy,
    LoginRateLimiter,
    check_lock,
    register_failure,
)

NOW = datetime(2026, 3, 1, 9, 0, 0)
POLICY = LockoutPolicy(
    max_attempts=5, lockout=timedelta(minutes=15), window=timedelta(minutes=15)
)


class LockoutRulesTestCase(unittest.TestCase):
    """The pure functions, no store involved."""

    def fail_times(self, n, start=NOW, step=timedelta(seconds=10)):
        record = None
        for i in range(n):
            record = register_failure(record, start + i * step, POLICY)
        return record

    def test_locks_on_fifth_failure(self):
        record = self.fail_times(4)
        self.assertEqual(record.count, 4)
        self.assertIsNone(record.locked_until)
        self.assertFalse(check_lock(record, NOW + timedelta(seconds=40)).locked)

        fifth_at = NOW + timedelta(seconds=40)
        record = register_failure(record, fifth_at, POLICY)
        self.assertEqual(record.count, 5)
        self.assertEqual(record.locked_until, fifth_at + POLICY.lockout)

    def test_lock_elapses_and_clears(self):
        record = self.fail_times(5)
        locked_until = record.locked_until

        status = check_lock(record, locked_until - timedelta(minutes=1))
        self.assertTrue(status.locked)
        self.assertEqual(status.remaining, timedelta(minutes=1))
        self.assertIs(status.record, record)

        status = check_lock(record, locked_until)
        self.assertFalse(status.locked)
        self.assertIsNone(status.record)

    def test_failure_after_lockout_starts_over(self):
        record = self.fail_times(5)
        record = register_failure(record, record.locked_until, POLICY)
        self.assertEqual(record.count, 1)
        self.assertIsNone(record.locked_until)

    def test_failure_while_locked_keeps_lock(self):
        record = self.fail_times(5)
        again = register_failure(record, NOW + timedelta(minutes=1), POLICY)
        self.assertEqual(again.count, 6)
        self.assertEqual(again.locked_until, record.locked_until)

    def test_old_failures_fall_out_of_window(self):
        record = self.fail_times(4)
        record = register_failure(record, NOW + timedelta(minutes=16), POLICY)
        self.assertEqual(record.count, 1)
        self.assertEqual(record.first_at, NOW + timedelta(minutes=16))

    def test_no_record_is_unlocked(self):
        status = check_lock(None, NOW)
        self.assertFalse(status.locked)
        self.assertEqual(status.remaining, timedelta(0))
        unlocked = LoginAttempt(3, NOW, NOW)
        self.assertIs(check_lock(unlocked, NOW).record, unlocked)


class LoginRateLimiterTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.storage = LocalStorage(os.path.join(self.temp_dir.name, "test.sqlite"))
        self.limiter = LoginRateLimiter(self.storage, POLICY)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_lockout_then_auto_reset(self):
        email = "kape@example.com"
        for i in range(5):
            await self.limiter.record_failed_login(email, NOW + timedelta(seconds=i))
        self.assertEqual(await self.limiter.attempts(email), 5)

        status = await self.limiter.is_locked(email, NOW + timedelta(minutes=10))
        self.assertTrue(status.locked)

        status = await self.limiter.is_locked(email, NOW + timedelta(minutes=16))
        self.assertFalse(status.locked)
        self.assertEqual(await self.limiter.attempts(email), 0)

    async def test_policy_is_per_email(self):
        for i in range(5):
            await self.limiter.record_failed_login("a@example.com", NOW)
        self.assertTrue((await self.limiter.is_locked("A@Example.com", NOW)).locked)
        self.assertFalse((await self.limiter.is_locked("b@example.com", NOW)).locked)

    async def test_reset(self):
        await self.limiter.record_failed_login("a@example.com", NOW)
        await self.limiter.record_failed_login("a@example.com", NOW)
        self.assertEqual(await self.limiter.attempts("a@example.com"), 2)
        await self.limiter.reset_login_attempts("a@example.com")
        self.assertEqual(await self.limiter.attempts("a@example.com"), 0)
