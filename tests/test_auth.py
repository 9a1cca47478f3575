import asyncio
import os
import tempfile
import unittest
from datetime import datetime, timedelta
from unittest import mock

from cinco.db import crud
from cinco.db.storage import LocalStorage
from cinco.shop.auth import AuthService, check_password, hash_password
from cinco.shop.captcha import BotCheck
from cinco.shop.errors import (
    AccountLocked,
    BotCheckFailed,
    EmailTaken,
    InvalidCredentials,
    ValidationError,
)
from cinco.shop.session import SessionManager

NOW = datetime(2026, 3, 1, 9, 0, 0)
HUMAN = BotCheck("challenge-token")


class PasswordHashTestCase(unittest.TestCase):
    def test_hash_and_check(self):
        hashed = hash_password("kape1234", rounds=4)
        self.assertTrue(hashed.startswith("$2"))
        self.assertNotIn("kape1234", hashed)
        self.assertTrue(check_password("kape1234", hashed))
        self.assertFalse(check_password("kape12345", hashed))

    def test_salted(self):
        self.assertNotEqual(hash_password("same-pw", rounds=4), hash_password("same-pw", rounds=4))

    def test_non_bcrypt_hash_never_matches(self):
        self.assertFalse(check_password("kape1234", "kape1234"))


class AuthServiceTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.storage = LocalStorage(os.path.join(self.temp_dir.name, "test.sqlite"))
        self.sessions = SessionManager(self.storage)
        self.auth = AuthService(self.storage, self.sessions)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_signup_logs_in(self):
        session = await self.auth.signup(
            "Ana Santos", "Ana@Example.com", "kape1234", HUMAN, now=NOW
        )
        self.assertEqual(session.user_id, "Ana@Example.com")

        user = await self.auth.current_user(NOW)
        self.assertEqual(user.name, "Ana Santos")
        self.assertNotEqual(user.password_hash, "kape1234")
        self.assertTrue(check_password("kape1234", user.password_hash))

    async def test_signup_sanitizes_name(self):
        await self.auth.signup("<b>Ana</b>", "ana@example.com", "kape1234", HUMAN, now=NOW)
        user = await crud.get_user(self.storage, "ana@example.com")
        self.assertEqual(user.name, "Ana")

    async def test_signup_duplicate_email_any_case(self):
        await self.auth.signup("Ana", "ana@example.com", "kape1234", HUMAN, now=NOW)
        with self.assertRaises(EmailTaken):
            await self.auth.signup("Other", "ANA@example.com", "other123", HUMAN, now=NOW)

    async def test_signup_rejects_bad_input(self):
        cases = [
            ("", "ana@example.com", "kape1234"),
            ("A", "ana@example.com", "kape1234"),
            ("Ana", "not-an-email", "kape1234"),
            ("Ana", "ana@example.com", "short"),
            ("Ana", "ana@example.com", "semi;colon"),
        ]
        for name, email, pwd in cases:
            with self.subTest(name=name, email=email, pwd=pwd):
                with self.assertRaises(ValidationError):
                    await self.auth.signup(name, email, pwd, HUMAN, now=NOW)
        self.assertEqual(await crud.get_users(self.storage), {})

    async def test_signup_requires_bot_check(self):
        with self.assertRaises(BotCheckFailed):
            await self.auth.signup("Ana", "ana@example.com", "kape1234", None, now=NOW)
        with self.assertRaises(BotCheckFailed):
            await self.auth.signup(
                "Ana", "ana@example.com", "kape1234", BotCheck("tok", score=0.1), now=NOW
            )
        self.assertIsNone(await crud.get_user(self.storage, "ana@example.com"))

    async def test_login_and_logout(self):
        await self.auth.signup("Ana", "ana@example.com", "kape1234", HUMAN, now=NOW)
        await self.auth.logout()
        self.assertIsNone(await self.auth.current_user(NOW))

        session = await self.auth.login("ANA@example.com", "kape1234", HUMAN, now=NOW)
        self.assertEqual(session.user_id, "ana@example.com")
        self.assertEqual((await self.auth.current_user(NOW)).email, "ana@example.com")

    async def test_wrong_password_counts_attempt(self):
        await self.auth.signup("Ana", "ana@example.com", "kape1234", HUMAN, now=NOW)
        await self.auth.logout()

        with self.assertRaises(InvalidCredentials):
            await self.auth.login("ana@example.com", "wrong-pw", HUMAN, now=NOW)
        self.assertEqual(await self.auth.limiter.attempts("ana@example.com"), 1)

        # unknown accounts are throttled the same way
        with self.assertRaises(InvalidCredentials):
            await self.auth.login("ghost@example.com", "whatever", HUMAN, now=NOW)
        self.assertEqual(await self.auth.limiter.attempts("ghost@example.com"), 1)

        # success resets the counter
        await self.auth.login("ana@example.com", "kape1234", HUMAN, now=NOW)
        self.assertEqual(await self.auth.limiter.attempts("ana@example.com"), 0)

    async def test_lockout_after_five_failures(self):
        await self.auth.signup("Ana", "ana@example.com", "kape1234", HUMAN, now=NOW)
        await self.auth.logout()

        for i in range(4):
            with self.assertRaises(InvalidCredentials):
                await self.auth.login(
                    "ana@example.com", "wrong-pw", HUMAN, now=NOW + timedelta(seconds=i)
                )
        with self.assertRaises(AccountLocked) as ctx:
            await self.auth.login(
                "ana@example.com", "wrong-pw", HUMAN, now=NOW + timedelta(seconds=4)
            )
        self.assertIn("15 minute", ctx.exception.message)

        # the right password does not get through while locked
        with self.assertRaises(AccountLocked):
            await self.auth.login(
                "ana@example.com", "kape1234", HUMAN, now=NOW + timedelta(minutes=1)
            )

        later = NOW + timedelta(minutes=16)
        session = await self.auth.login("ana@example.com", "kape1234", HUMAN, now=later)
        self.assertEqual(session.created_at, later)
        self.assertEqual(await self.auth.limiter.attempts("ana@example.com"), 0)

    async def test_hashing_runs_in_worker_thread(self):
        with mock.patch(
            "cinco.shop.auth.asyncio.to_thread", wraps=asyncio.to_thread
        ) as to_thread:
            await self.auth.signup("Ana", "ana@example.com", "kape1234", HUMAN, now=NOW)
            await self.auth.login("ana@example.com", "kape1234", HUMAN, now=NOW)

        called = [c.args[0] for c in to_thread.call_args_list]
        self.assertEqual(called, [hash_password, check_password])

    async def test_login_requires_bot_check(self):
        await self.auth.signup("Ana", "ana@example.com", "kape1234", HUMAN, now=NOW)
        await self.auth.logout()
        with self.assertRaises(BotCheckFailed):
            await self.auth.login("ana@example.com", "kape1234", BotCheck(""), now=NOW)
        # a failed bot check is not a failed password
        self.assertEqual(await self.auth.limiter.attempts("ana@example.com"), 0)

    async def test_login_missing_fields(self):
        with self.assertRaises(ValidationError):
            await self.auth.login("", "kape1234", HUMAN, now=NOW)
        with self.assertRaises(ValidationError):
            await self.auth.login("ana@example.com", "", HUMAN, now=NOW)
