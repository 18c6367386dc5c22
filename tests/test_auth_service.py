"""Tests for app.services.auth: signup, login and refresh."""

from datetime import timedelta

from app.core.errors import AuthenticationError, ConflictError, ValidationError
from app.core.permissions import Role
from app.core.tokens import TokenService
from app.models import User
from app.services import auth as auth_service
from tests.helpers import DatabaseTestCase, add_user


def _tokens() -> TokenService:
    return TokenService("a" * 40, "r" * 40)


class TestSignup(DatabaseTestCase):
    def test_creates_student_with_hashed_password(self) -> None:
        user = auth_service.signup(self.db, "Student@Example.com", "secret1", "Stu Dent")
        self.assertEqual(user.email, "student@example.com")
        self.assertEqual(user.name, "Stu Dent")
        self.assertEqual(user.role, "STUDENT")
        self.assertEqual(user.xp, 0)
        self.assertIsNotNone(user.id)
        self.assertNotEqual(user.password_hash, "secret1")
        self.assertTrue(user.password_hash.startswith("$2b$10$"))

    def test_name_markup_is_stripped(self) -> None:
        user = auth_service.signup(
            self.db, "a@example.com", "secret1", "<script>x()</script><b>Ada</b>"
        )
        self.assertEqual(user.name, "Ada")

    def test_admin_role_may_be_requested(self) -> None:
        user = auth_service.signup(self.db, "a@example.com", "secret1", "A", role="admin")
        self.assertEqual(user.role, "ADMIN")

    def test_other_roles_become_student(self) -> None:
        for i, role in enumerate(("TEACHER", "ROOT", "", None)):
            user = auth_service.signup(self.db, f"u{i}@example.com", "secret1", "U", role=role)
            self.assertEqual(user.role, "STUDENT", role)

    def test_duplicate_email(self) -> None:
        auth_service.signup(self.db, "a@example.com", "secret1", "A")
        with self.assertRaises(ConflictError):
            auth_service.signup(self.db, "A@EXAMPLE.COM", "secret2", "B")
        self.assertEqual(self.db.query(User).count(), 1)

    def test_missing_fields(self) -> None:
        for email, password, name in (
            ("", "secret1", "A"),
            ("a@example.com", "", "A"),
            ("a@example.com", "secret1", ""),
            ("a@example.com", "secret1", "<b></b>"),
        ):
            with self.assertRaises(ValidationError):
                auth_service.signup(self.db, email, password, name)
        self.assertEqual(self.db.query(User).count(), 0)

    def test_invalid_email(self) -> None:
        with self.assertRaises(ValidationError):
            auth_service.signup(self.db, "not-an-email", "secret1", "A")

    def test_password_length(self) -> None:
        with self.assertRaises(ValidationError):
            auth_service.signup(self.db, "a@example.com", "short", "A")
        with self.assertRaises(ValidationError):
            auth_service.signup(self.db, "a@example.com", "x" * 129, "A")

    def test_signup_role_helper(self) -> None:
        self.assertIs(auth_service.signup_role("ADMIN"), Role.ADMIN)
        self.assertIs(auth_service.signup_role("teacher"), Role.STUDENT)
        self.assertIs(auth_service.signup_role(None), Role.STUDENT)


class TestLogin(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.tokens = _tokens()
        self.user = add_user(self.db, "teach@example.com", password="secret1", role="TEACHER")

    def test_success_issues_both_tokens(self) -> None:
        result = auth_service.login(self.db, "Teach@Example.com", "secret1", self.tokens)
        self.assertEqual(result.user.id, self.user.id)
        access = self.tokens.verify_token(result.access_token, "access")
        refresh = self.tokens.verify_token(result.refresh_token, "refresh")
        self.assertTrue(access.valid)
        self.assertTrue(refresh.valid)
        self.assertEqual(access.payload.user_id, self.user.id)
        self.assertEqual(access.payload.role, Role.TEACHER)
        self.assertEqual(refresh.payload.role, Role.TEACHER)

    def test_wrong_password_and_unknown_email_are_indistinguishable(self) -> None:
        with self.assertRaises(AuthenticationError) as wrong_password:
            auth_service.login(self.db, "teach@example.com", "wrong-pass", self.tokens)
        with self.assertRaises(AuthenticationError) as unknown_email:
            auth_service.login(self.db, "nobody@example.com", "secret1", self.tokens)
        self.assertEqual(wrong_password.exception.message, auth_service.INVALID_CREDENTIALS)
        self.assertEqual(unknown_email.exception.message, wrong_password.exception.message)
        self.assertEqual(unknown_email.exception.status_code, 401)

    def test_missing_fields(self) -> None:
        with self.assertRaises(ValidationError):
            auth_service.login(self.db, "", "secret1", self.tokens)
        with self.assertRaises(ValidationError):
            auth_service.login(self.db, "teach@example.com", "", self.tokens)


class TestRefresh(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.tokens = _tokens()

    def test_mints_access_token_with_refresh_role(self) -> None:
        refresh_token = self.tokens.create_refresh_token(9, Role.ADMIN)
        access = auth_service.refresh(refresh_token, self.tokens)
        payload = self.tokens.verify_token(access, "access").payload
        self.assertEqual(payload.user_id, 9)
        self.assertEqual(payload.role, Role.ADMIN)

    def test_role_comes_from_token_not_database(self) -> None:
        user = add_user(self.db, "s@example.com", role="STUDENT")
        refresh_token = auth_service.login(self.db, "s@example.com", "secret1", self.tokens).refresh_token
        user.role = "ADMIN"
        self.db.commit()
        access = auth_service.refresh(refresh_token, self.tokens)
        self.assertEqual(self.tokens.verify_token(access).payload.role, Role.STUDENT)

    def test_missing(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            auth_service.refresh(None, self.tokens)
        self.assertEqual(ctx.exception.message, "Refresh token missing")

    def test_expired(self) -> None:
        expired = self.tokens.create_refresh_token(1, Role.STUDENT, expires_in=timedelta(seconds=-1))
        with self.assertRaises(AuthenticationError) as ctx:
            auth_service.refresh(expired, self.tokens)
        self.assertEqual(ctx.exception.message, "Refresh token expired or invalid")

    def test_access_token_rejected(self) -> None:
        access = self.tokens.create_access_token(1, Role.STUDENT)
        with self.assertRaises(AuthenticationError):
            auth_service.refresh(access, self.tokens)


class TestAuditLogging(DatabaseTestCase):
    """One audit line per attempt; emails are redacted and passwords never appear."""

    def setUp(self) -> None:
        super().setUp()
        self.tokens = _tokens()

    def test_signup_and_login_audit_lines(self) -> None:
        with self.assertLogs("app.services.auth", level="INFO") as logs:
            auth_service.signup(self.db, "audited@example.com", "pa55word!", "A")
            auth_service.login(self.db, "audited@example.com", "pa55word!", self.tokens)
            with self.assertRaises(AuthenticationError):
                auth_service.login(self.db, "audited@example.com", "bad-guess", self.tokens)

        events = [(r.event, r.outcome) for r in logs.records]
        self.assertEqual(
            events,
            [("auth.signup", "success"), ("auth.login", "success"), ("auth.login", "failure")],
        )
        for record in logs.records:
            self.assertEqual(record.email, "aud***")
            self.assertIsInstance(record.duration_ms, float)
        self.assertEqual(logs.records[2].levelname, "WARNING")

        dumped = "\n".join(str(r.__dict__) for r in logs.records)
        self.assertNotIn("pa55word!", dumped)
        self.assertNotIn("bad-guess", dumped)
        self.assertNotIn("audited@example.com", dumped)
        self.assertNotIn("$2b$", dumped)
