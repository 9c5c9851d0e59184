"""Credential delivery over SMTP."""
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from typing import Mapping, Tuple

from campusvote import config

logger = logging.getLogger(__name__)

CREDENTIALS_SUBJECT = "Your Voting Credentials - Election System"


def credentials_message(voter: Mapping) -> Tuple[str, str]:
    body = f"""Dear {voter.get('name')},

Your voting credentials for the election system:

Registration Number: {voter.get('reg_no')}
Email: {voter.get('email')}
Password: {voter.get('password')}
Year: {voter.get('year')}
Section: {voter.get('section')}
Department: {voter.get('department')}

Please use these credentials to log in to the voting system and cast your vote.

Login URL: {config.APP_URL}

Best regards,
Election Committee
"""
    return CREDENTIALS_SUBJECT, body


class CredentialMailer:
    """Sends plain-text mail; failures are logged and reported as False."""

    def __init__(self):
        self.smtp_host = config.SMTP_HOST
        self.smtp_port = config.SMTP_PORT
        self.smtp_user = config.SMTP_USER
        self.smtp_password = config.SMTP_PASS
        self.from_email = config.SMTP_FROM

    def send(self, to_email: str, subject: str, body: str) -> bool:
        """
        Send one message.

        Args:
            to_email: Recipient address
            subject: Subject line
            body: Plain text body

        Returns:
            bool: True if the SMTP server accepted the message, False otherwise
        """
        try:
            msg = MIMEText(body, "plain")
            msg["Subject"] = subject
            msg["From"] = self.from_email
            msg["To"] = to_email
            self._send_email_sync(to_email, msg.as_string())
            logger.info(f"Email sent successfully to {to_email}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    def send_credentials(self, voter: Mapping) -> bool:
        subject, body = credentials_message(voter)
        return self.send(voter["email"], subject, body)

    def _send_email_sync(self, to_email: str, email_content: str) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            server.starttls(context=context)
            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)
            server.sendmail(self.from_email, [to_email], email_content)
