"""
Tests for credential delivery.
"""
from unittest.mock import patch

from campusvote.email_delivery import CREDENTIALS_SUBJECT, CredentialMailer, credentials_message

VOTER = {
    "reg_no": "21CS001",
    "name": "JANE DOE",
    "email": "jane@college.edu",
    "password": "Xy7Pq2Lm",
    "year": "1",
    "section": "A",
    "department": "CSE",
}


class TestCredentialsMessage:
    def test_body_lists_credentials(self):
        subject, body = credentials_message(VOTER)

        assert subject == CREDENTIALS_SUBJECT
        assert "Dear JANE DOE," in body
        assert "Registration Number: 21CS001" in body
        assert "Password: Xy7Pq2Lm" in body


class TestCredentialMailer:
    def test_send_credentials_success(self):
        """Successful delivery goes to the voter's address."""
        mailer = CredentialMailer()
        with patch.object(mailer, "_send_email_sync") as mock_send:
            assert mailer.send_credentials(VOTER) is True

        mock_send.assert_called_once()
        to_email, content = mock_send.call_args[0]
        assert to_email == "jane@college.edu"
        assert CREDENTIALS_SUBJECT in content

    def test_smtp_failure_returns_false(self):
        """SMTP errors are logged and reported, not raised."""
        mailer = CredentialMailer()
        with patch.object(mailer, "_send_email_sync", side_effect=OSError("connection refused")):
            assert mailer.send_credentials(VOTER) is False

    def test_uses_starttls_and_login(self):
        mailer = CredentialMailer()
        mailer.smtp_user, mailer.smtp_password = "mailer", "secret"
        with patch("campusvote.email_delivery.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            assert mailer.send("jane@college.edu", "Hello", "Body") is True

        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        server.sendmail.assert_called_once()
