import unittest

from cinco.shop import validation as v


class SanitizeTestCase(unittest.TestCase):
    def test_strips_markup(self):
        self.assertEqual(v.sanitize_input("  <b>Hello</b> "), "Hello")
        self.assertEqual(v.sanitize_input("javascript:alert(1)"), "alert(1)")
        self.assertEqual(v.sanitize_input("x onclick=steal()"), "x steal()")
        self.assertEqual(v.sanitize_input(None), "")
        self.assertEqual(v.sanitize_input(42), "")


class ValidatorsTestCase(unittest.TestCase):
    def test_email(self):
        self.assertTrue(v.validate_email("ana@example.com"))
        self.assertFalse(v.validate_email("ana@example"))
        self.assertFalse(v.validate_email("ana @example.com"))
        self.assertFalse(v.validate_email("a" * 250 + "@x.ph"))
        self.assertFalse(v.validate_email(None))

    def test_password(self):
        self.assertTrue(v.validate_password("kape12"))
        self.assertTrue(v.validate_password("x" * 128))
        self.assertFalse(v.validate_password("kape1"))
        self.assertFalse(v.validate_password("x" * 129))
        for ch in "'\";\\":
            with self.subTest(ch=ch):
                self.assertFalse(v.validate_password("kape12" + ch))

    def test_name(self):
        self.assertTrue(v.validate_name("Mary-Ann O'Neil"))
        self.assertFalse(v.validate_name("J"))
        self.assertFalse(v.validate_name("R2D2"))

    def test_phone(self):
        self.assertTrue(v.validate_phone_number("(02) 8123-4567"))
        self.assertFalse(v.validate_phone_number("123"))
        self.assertFalse(v.validate_phone_number("call me"))

    def test_address(self):
        self.assertTrue(v.validate_address("12 Mabini St."))
        self.assertFalse(v.validate_address("1234"))
        self.assertFalse(v.validate_address("12 Mabini {St}"))

    def test_price(self):
        self.assertTrue(v.validate_price("95.50"))
        self.assertTrue(v.validate_price(70))
        self.assertFalse(v.validate_price("95.505"))
        self.assertFalse(v.validate_price("-1"))

    def test_quantity(self):
        self.assertTrue(v.validate_quantity(1))
        self.assertTrue(v.validate_quantity("999"))
        self.assertFalse(v.validate_quantity(0))
        self.assertFalse(v.validate_quantity(1000))
        self.assertFalse(v.validate_quantity("a few"))

    def test_textarea_and_zip(self):
        self.assertTrue(v.validate_textarea("Hello"))
        self.assertFalse(v.validate_textarea("Hey"))
        self.assertTrue(v.validate_textarea("0123456789", 10, 10))
        self.assertTrue(v.validate_zip("1000"))
        self.assertTrue(v.validate_zip("SW1A 1AA"))
        self.assertFalse(v.validate_zip("10"))
