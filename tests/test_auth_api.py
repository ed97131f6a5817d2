from datetime import timedelta
from unittest.mock import patch

from sqlmodel import select

from gmb_dashboard.config import settings
from gmb_dashboard.core.security import decode_access_token, utcnow
from gmb_dashboard.models.document_models import LoginAlert, UserAccount
from support import ApiTestCase, RecordingMailer


class LoginTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        (self.user,) = self.add(
            UserAccount(
                user="Whitefield Lead",
                mail="lead@example.com",
                org_email="lead@hospital.org",
                psw="Secret1",
                role="Branch",
                cluster="South",
                branch="Whitefield",
            )
        )

    def test_login_returns_token_with_scope_claims(self) -> None:
        response = self.client.post("/api/login", json={"email": "lead@example.com", "password": "Secret1"})
        self.assertEqual(200, response.status_code, msg=response.text)
        data = response.json()["data"]
        self.assertEqual("Whitefield Lead", data["user"]["name"])
        self.assertNotIn("psw", data["user"])

        claims = decode_access_token(data["token"])
        self.assertEqual("Branch", claims["role"])
        self.assertEqual("Whitefield", claims["branch"])
        self.assertEqual("lead@example.com", claims["email"])

    def test_login_accepts_org_email(self) -> None:
        response = self.client.post("/api/login", json={"email": "lead@hospital.org", "password": "Secret1"})
        self.assertEqual(200, response.status_code)

    def test_password_match_is_exact(self) -> None:
        for attempt in ("secret1", "Secret1 ", "Secret"):
            response = self.client.post("/api/login", json={"email": "lead@example.com", "password": attempt})
            self.assert_error(response, 401, "Invalid credentials")

    def test_missing_password_is_rejected(self) -> None:
        response = self.client.post("/api/login", json={"email": "lead@example.com"})
        self.assert_error(response, 400)

    def test_login_records_alert(self) -> None:
        self.client.post("/api/login", json={"email": "lead@example.com", "password": "Secret1"})
        alerts = self.session.exec(select(LoginAlert)).all()
        self.assertEqual(1, len(alerts))
        self.assertEqual("Branch", alerts[0].role)
        self.assertEqual("Whitefield", alerts[0].location)
        self.assertEqual("South", alerts[0].cluster)

    def test_super_admin_login_is_not_alerted(self) -> None:
        self.add(UserAccount(user="Owner", mail=settings.super_admin_email, psw="pw", role="Admin"))
        response = self.client.post("/api/login", json={"email": settings.super_admin_email, "password": "pw"})
        self.assertEqual(200, response.status_code)
        self.assertEqual([], self.session.exec(select(LoginAlert)).all())

    def test_admin_bypass(self) -> None:
        response = self.client.post(
            "/api/login",
            json={"email": settings.admin_bypass_email, "password": settings.admin_bypass_password},
        )
        self.assertEqual(200, response.status_code)
        token = response.json()["data"]["token"]
        self.assertEqual("Admin", decode_access_token(token)["role"])

        users = self.client.get("/api/users", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(200, users.status_code)
        self.assertEqual(1, users.json()["count"])

    def test_admin_bypass_needs_both_values(self) -> None:
        response = self.client.post(
            "/api/login", json={"email": settings.admin_bypass_email, "password": "wrong"}
        )
        self.assert_error(response, 401)


class OtpTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        (self.user,) = self.add(
            UserAccount(user="Cluster Lead", mail="south@example.com", psw="pw", role="Cluster", cluster="South")
        )

    def test_send_otp_stores_code_and_emails_it(self) -> None:
        response = self.client.post("/api/send-otp", json={"email": "south@example.com"})
        self.assertEqual(200, response.status_code, msg=response.text)

        self.session.refresh(self.user)
        self.assertEqual(6, len(self.user.otp))
        self.assertGreater(self.user.otp_expires, utcnow())
        self.assertEqual(1, len(self.mailer.sent))
        self.assertIn(self.user.otp, self.mailer.sent[0]["html"])

    def test_send_otp_unknown_email(self) -> None:
        self.assert_error(self.client.post("/api/send-otp", json={"email": "nobody@example.com"}), 404)

    def test_send_otp_mail_failure(self) -> None:
        self.mailer = RecordingMailer(refuse_for=("south@example.com",))
        response = self.client.post("/api/send-otp", json={"email": "south@example.com"})
        self.assert_error(response, 500)

    def test_verify_otp_logs_in_and_clears_code(self) -> None:
        self.user.otp = "123456"
        self.user.otp_expires = utcnow() + timedelta(minutes=5)
        self.add(self.user)

        response = self.client.post("/api/verify-otp", json={"email": "south@example.com", "otp": "123456"})
        self.assertEqual(200, response.status_code, msg=response.text)
        self.assertEqual("Cluster", decode_access_token(response.json()["data"]["token"])["role"])

        self.session.refresh(self.user)
        self.assertIsNone(self.user.otp)
        again = self.client.post("/api/verify-otp", json={"email": "south@example.com", "otp": "123456"})
        self.assert_error(again, 400, "Invalid or expired OTP")

    def test_wrong_otp(self) -> None:
        self.user.otp = "123456"
        self.user.otp_expires = utcnow() + timedelta(minutes=5)
        self.add(self.user)
        response = self.client.post("/api/verify-otp", json={"email": "south@example.com", "otp": "654321"})
        self.assert_error(response, 400, "Invalid or expired OTP")

    def test_otp_expiring_now_is_rejected(self) -> None:
        now = utcnow()
        self.user.otp = "123456"
        self.user.otp_expires = now
        self.add(self.user)
        with patch("gmb_dashboard.services.auth_service.utcnow", return_value=now):
            response = self.client.post("/api/verify-otp", json={"email": "south@example.com", "otp": "123456"})
        self.assert_error(response, 400, "Invalid or expired OTP")

    def test_expired_otp(self) -> None:
        self.user.otp = "123456"
        self.user.otp_expires = utcnow() - timedelta(seconds=1)
        self.add(self.user)
        response = self.client.post("/api/verify-otp", json={"email": "south@example.com", "otp": "123456"})
        self.assert_error(response, 400, "Invalid or expired OTP")


class PasswordResetTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        (self.user,) = self.add(UserAccount(user="Lead", mail="lead@example.com", psw="old-pw", role="Branch", branch="Hebbal"))

    def test_reset_flow(self) -> None:
        response = self.client.post("/api/forgot-password", json={"email": "lead@example.com"})
        self.assertEqual(200, response.status_code, msg=response.text)

        self.session.refresh(self.user)
        token = self.user.reset_token
        self.assertEqual(64, len(token))
        self.assertIn(f"{settings.frontend_url.rstrip('/')}/reset-password?", self.mailer.sent[0]["html"])
        self.assertIn(f"token={token}", self.mailer.sent[0]["html"])

        bad = self.client.post(
            "/api/reset-password",
            json={"email": "lead@example.com", "token": "0" * 64, "new_password": "new-pw"},
        )
        self.assert_error(bad, 400, "Invalid or expired reset token")

        good = self.client.post(
            "/api/reset-password",
            json={"email": "lead@example.com", "token": token, "new_password": "new-pw"},
        )
        self.assertEqual(200, good.status_code, msg=good.text)

        self.assert_error(
            self.client.post("/api/login", json={"email": "lead@example.com", "password": "old-pw"}), 401
        )
        login = self.client.post("/api/login", json={"email": "lead@example.com", "password": "new-pw"})
        self.assertEqual(200, login.status_code)

        reused = self.client.post(
            "/api/reset-password",
            json={"email": "lead@example.com", "token": token, "new_password": "other"},
        )
        self.assert_error(reused, 400)

    def test_expired_reset_token(self) -> None:
        self.user.reset_token = "abc"
        self.user.reset_token_expires = utcnow() - timedelta(minutes=1)
        self.add(self.user)
        response = self.client.post(
            "/api/reset-password",
            json={"email": "lead@example.com", "token": "abc", "new_password": "new-pw"},
        )
        self.assert_error(response, 400, "Invalid or expired reset token")

    def test_forgot_password_unknown_email(self) -> None:
        self.assert_error(self.client.post("/api/forgot-password", json={"email": "x@example.com"}), 404)
