"""Unit tests for app.core.sanitize."""

import unittest

from app.core.sanitize import is_valid_email, sanitize_email, sanitize_text


class TestSanitizeText(unittest.TestCase):
    def test_plain_text_unchanged(self) -> None:
        self.assertEqual(sanitize_text("Ada Lovelace"), "Ada Lovelace")

    def test_strips_tags_keeps_text(self) -> None:
        self.assertEqual(sanitize_text("<b>Ada</b>"), "Ada")

    def test_drops_script_contents(self) -> None:
        self.assertEqual(sanitize_text("<script>alert(1)</script>Ada"), "Ada")

    def test_trims_whitespace(self) -> None:
        self.assertEqual(sanitize_text("   Ada  "), "Ada")

    def test_non_string(self) -> None:
        self.assertEqual(sanitize_text(None), "")


class TestSanitizeEmail(unittest.TestCase):
    def test_lower_cases(self) -> None:
        self.assertEqual(sanitize_email("Student@Example.COM"), "student@example.com")

    def test_removes_markup_and_unsafe_chars(self) -> None:
        self.assertEqual(sanitize_email(" <i>bob</i>@example.com "), "bob@example.com")
        self.assertEqual(sanitize_email("bo b@exa mple.com"), "bob@example.com")

    def test_keeps_plus_dot_dash(self) -> None:
        self.assertEqual(sanitize_email("first.last+tag@my-host.org"), "first.last+tag@my-host.org")


class TestIsValidEmail(unittest.TestCase):
    def test_valid(self) -> None:
        self.assertTrue(is_valid_email("student@example.com"))

    def test_invalid(self) -> None:
        for value in ("", "no-at-sign", "two@@example.com", "a@b", "@example.com"):
            self.assertFalse(is_valid_email(value), value)


if __name__ == "__main__":
    unittest.main()
