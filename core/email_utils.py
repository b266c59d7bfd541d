# core/email_utils.py

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from core.config import Settings
from core.logging_config import logger


class EmailNotConfigured(RuntimeError):
    pass


# -----------------------------------------------------
# 📧 SMTP relay
# -----------------------------------------------------
class SMTPMailer:
    """
    Thin wrapper over an SMTP-over-SSL relay.
    Built once at startup (see main.create_app) and injected via
    dependencies.clients.get_mailer.
    """

    def __init__(
        self,
        host: Optional[str],
        port: Optional[int],
        user: Optional[str],
        password: Optional[str],
        from_name: str = "Futura Homes",
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_name = from_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPMailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            from_name=settings.EMAIL_FROM_NAME,
        )

    @property
    def configured(self) -> bool:
        return all([self.host, self.port, self.user, self.password])

    def send(
        self,
        subject: str,
        recipients: List[str],
        body: str,
        html_body: Optional[str] = None,
    ):
        """
        Send one message. Raises on relay failure so callers decide
        whether the email is critical (OTP) or not.
        """
        if not recipients:
            raise ValueError("No recipients specified")

        if not self.configured:
            raise EmailNotConfigured("Email credentials missing")

        msg = MIMEMultipart("alternative")
        msg["From"] = f'"{self.from_name}" <{self.user}>'
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject

        msg.attach(MIMEText(body, "plain"))
        if html_body:
            msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP_SSL(self.host, self.port) as server:
                server.login(self.user, self.password)
                server.send_message(msg)
        except Exception as e:
            logger.error(f"Email failed: {e}")
            raise

        logger.info(f"Email sent to {', '.join(recipients)}")


# -----------------------------------------------------
# Message builders
# -----------------------------------------------------
def send_otp_email(mailer: SMTPMailer, to: str, otp: str, purpose: str = "verification", ttl_minutes: int = 5):
    subject = f"Your OTP Code - {mailer.from_name}"

    body = f"""
Hello,

You requested a verification code for {purpose}.

Your code: {otp}

This code will expire in {ttl_minutes} minutes.
If you didn't request this code, please ignore this email. Never share this code with anyone.

Best regards,
{mailer.from_name} Team
"""

    html_body = f"""
<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <h2>🏠 {mailer.from_name}</h2>
    <p>You requested a verification code for {purpose}. Please use the code below:</p>
    <p style="font-size: 32px; font-weight: bold; color: #dc2626; letter-spacing: 8px;">{otp}</p>
    <p>This code will expire in <strong>{ttl_minutes} minutes</strong>.</p>
    <p><strong>⚠️ Security Note:</strong> If you didn't request this code, please ignore this email.
       Never share this code with anyone.</p>
    <p>Best regards,<br>{mailer.from_name} Team</p>
  </body>
</html>
"""

    mailer.send(subject=subject, recipients=[to], body=body, html_body=html_body)
    logger.info(f"OTP email sent to {to}")


def send_follow_up_email(
    mailer: SMTPMailer,
    to: str,
    message: str,
    client_name: Optional[str] = None,
    property_title: Optional[str] = None,
):
    subject = f"Follow-up: {property_title or 'Your Inquiry'} - {mailer.from_name}"
    greeting = f"Hello {client_name}," if client_name else "Hello,"

    body = f"""
{greeting}

Thank you for your inquiry about {property_title or 'our property'}.

{message}

We look forward to helping you find your dream home!

Best regards,
The {mailer.from_name} Team
"""

    html_body = f"""
<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <h2>🏠 {mailer.from_name}</h2>
    <p>{greeting}</p>
    <p>Thank you for your inquiry about <strong>{property_title or 'our property'}</strong>.</p>
    <div style="background: #f3f4f6; border-left: 4px solid #dc2626; padding: 15px;">{message}</div>
    <p>We look forward to helping you find your dream home!</p>
    <p>Best regards,<br><strong>The {mailer.from_name} Team</strong></p>
  </body>
</html>
"""

    mailer.send(subject=subject, recipients=[to], body=body, html_body=html_body)
