"""Unit tests for app.core.tokens: access/refresh token minting and verification."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.config import get_settings
from app.core.permissions import Role
from app.core.tokens import TokenService, get_token_service

ACCESS_SECRET = "a" * 40
REFRESH_SECRET = "r" * 40


def _service(**kwargs) -> TokenService:
    return TokenService(ACCESS_SECRET, REFRESH_SECRET, **kwargs)


def _tamper_signature(token: str) -> str:
    header, payload, signature = token.split(".")
    mid = len(signature) // 2
    replacement = "A" if signature[mid] != "A" else "B"
    return ".".join([header, payload, signature[:mid] + replacement + signature[mid + 1 :]])


class TestCreateAndVerify(unittest.TestCase):
    def setUp(self) -> None:
        self.tokens = _service()

    def test_access_token_round_trip(self) -> None:
        token = self.tokens.create_access_token(42, Role.TEACHER)
        result = self.tokens.verify_token(token, "access")
        self.assertTrue(result.valid)
        self.assertIsNone(result.reason)
        self.assertEqual(result.payload.user_id, 42)
        self.assertEqual(result.payload.role, Role.TEACHER)
        self.assertEqual(result.payload.type, "access")

    def test_refresh_token_round_trip(self) -> None:
        token = self.tokens.create_refresh_token("7", "admin")
        result = self.tokens.verify_token(token, "refresh")
        self.assertTrue(result.valid)
        self.assertEqual(result.payload.user_id, 7)
        self.assertEqual(result.payload.role, Role.ADMIN)

    def test_default_kind_is_access(self) -> None:
        token = self.tokens.create_access_token(1, Role.STUDENT)
        self.assertTrue(self.tokens.verify_token(token).valid)

    def test_claims_on_the_wire(self) -> None:
        token = self.tokens.create_access_token(5, Role.STUDENT)
        claims = jwt.decode(token, ACCESS_SECRET, algorithms=["HS256"])
        self.assertEqual(claims["sub"], "5")
        self.assertEqual(claims["role"], "STUDENT")
        self.assertEqual(claims["type"], "access")
        self.assertIn("iat", claims)
        self.assertIn("exp", claims)

    def test_default_lifetimes(self) -> None:
        access = self.tokens.verify_token(self.tokens.create_access_token(1, Role.STUDENT))
        refresh = self.tokens.verify_token(
            self.tokens.create_refresh_token(1, Role.STUDENT), "refresh"
        )
        access_life = access.payload.expires_at - access.payload.issued_at
        refresh_life = refresh.payload.expires_at - refresh.payload.issued_at
        self.assertEqual(access_life, timedelta(minutes=15))
        self.assertEqual(refresh_life, timedelta(days=7))
        self.assertEqual(self.tokens.refresh_ttl, timedelta(days=7))

    def test_custom_expiry(self) -> None:
        token = self.tokens.create_access_token(1, Role.STUDENT, expires_in=timedelta(minutes=1))
        payload = self.tokens.verify_token(token).payload
        self.assertEqual(payload.expires_at - payload.issued_at, timedelta(minutes=1))
        self.assertGreater(payload.expires_at, datetime.now(UTC))

    def test_unknown_role_cannot_be_signed(self) -> None:
        with self.assertRaises(ValueError):
            self.tokens.create_access_token(1, "SUPERUSER")

    def test_repr_hides_secrets(self) -> None:
        self.assertNotIn(ACCESS_SECRET, repr(self.tokens))
        self.assertNotIn(REFRESH_SECRET, repr(self.tokens))


class TestRejection(unittest.TestCase):
    """Bad tokens yield valid=False with a reason; verify_token never raises."""

    def setUp(self) -> None:
        self.tokens = _service()

    def test_missing(self) -> None:
        for token in (None, ""):
            result = self.tokens.verify_token(token)
            self.assertFalse(result.valid)
            self.assertIsNone(result.payload)
            self.assertEqual(result.reason, "missing")

    def test_expired(self) -> None:
        token = self.tokens.create_access_token(1, Role.STUDENT, expires_in=timedelta(seconds=-1))
        result = self.tokens.verify_token(token)
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "expired")

    def test_tampered_signature(self) -> None:
        token = self.tokens.create_access_token(1, Role.STUDENT)
        result = self.tokens.verify_token(_tamper_signature(token))
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "invalid")

    def test_tampered_payload(self) -> None:
        token = self.tokens.create_access_token(1, Role.STUDENT)
        forged = jwt.encode(
            {"sub": "1", "role": "ADMIN", "type": "access", "iat": 0, "exp": 9999999999},
            "not-the-secret-" * 3,
            algorithm="HS256",
        )
        header, _, signature = token.split(".")
        mixed = ".".join([header, forged.split(".")[1], signature])
        self.assertFalse(self.tokens.verify_token(mixed).valid)

    def test_garbage(self) -> None:
        for token in ("not-a-token", "a.b.c", "...."):
            result = self.tokens.verify_token(token)
            self.assertFalse(result.valid)
            self.assertEqual(result.reason, "invalid")

    def test_refresh_token_is_not_an_access_token(self) -> None:
        refresh = self.tokens.create_refresh_token(1, Role.ADMIN)
        self.assertFalse(self.tokens.verify_token(refresh, "access").valid)

    def test_access_token_is_not_a_refresh_token(self) -> None:
        access = self.tokens.create_access_token(1, Role.ADMIN)
        self.assertFalse(self.tokens.verify_token(access, "refresh").valid)

    def test_type_claim_checked_even_with_matching_secret(self) -> None:
        same = TokenService("s" * 40, "s" * 40)
        refresh = same.create_refresh_token(1, Role.STUDENT)
        result = same.verify_token(refresh, "access")
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "wrong_type")

    def test_other_secret_rejected(self) -> None:
        other = TokenService("b" * 40, "q" * 40)
        token = other.create_access_token(1, Role.STUDENT)
        self.assertEqual(self.tokens.verify_token(token).reason, "invalid")

    def test_unknown_role_claim(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "1", "role": "ROOT", "type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            ACCESS_SECRET,
            algorithm="HS256",
        )
        result = self.tokens.verify_token(token)
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "invalid_claims")

    def test_missing_required_claim(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "1", "type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            ACCESS_SECRET,
            algorithm="HS256",
        )
        self.assertEqual(self.tokens.verify_token(token).reason, "invalid")

    def test_none_algorithm_rejected(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "1", "role": "ADMIN", "type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            None,
            algorithm="none",
        )
        self.assertFalse(self.tokens.verify_token(token).valid)


class TestFromSettings(unittest.TestCase):
    def test_uses_configured_secrets(self) -> None:
        settings = get_settings()
        service = get_token_service()
        token = service.create_access_token(3, Role.STUDENT)
        claims = jwt.decode(
            token,
            settings.JWT_ACCESS_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
        self.assertEqual(claims["sub"], "3")
        self.assertEqual(service.refresh_ttl, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


if __name__ == "__main__":
    unittest.main()
