"""Email service for sending password reset codes over SMTP."""
import smtplib
from email.mime.text import MIMEText

import structlog
from fastapi.concurrency import run_in_threadpool

from healthsync.config import Settings

logger = structlog.get_logger(__name__)


class EmailService:
    """Service for sending emails via SMTP with STARTTLS."""

    def __init__(self, settings: Settings):
        self.smtp_server = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.email_user = settings.email_user
        self.email_password = settings.email_password
        self.email_from = settings.email_from
        self.ttl_minutes = max(1, settings.password_reset_ttl_seconds // 60)

    @property
    def configured(self) -> bool:
        return bool(self.email_user and self.email_password)

    async def send_password_reset(self, to_email: str, otp: str) -> bool:
        """Send the reset code. Returns False when SMTP is not configured."""
        if not self.configured:
            logger.warning("email_not_configured", to=to_email)
            return False
        await run_in_threadpool(self._send, to_email, "Password Reset OTP", self._reset_body(otp))
        logger.info("password_reset_email_sent", to=to_email)
        return True

    def _reset_body(self, otp: str) -> str:
        return f"""
Hello,

You requested to reset your HealthSync password. Your one-time code is:

    {otp}

The code expires in {self.ttl_minutes} minutes. If you did not request a reset, you can ignore this email.

HealthSync EMR
        """.strip()

    def _send(self, to_email: str, subject: str, body: str) -> None:
        message = MIMEText(body, "plain")
        message["From"] = self.email_from
        message["To"] = to_email
        message["Subject"] = subject

        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            server.starttls()
            server.login(self.email_user, self.email_password)
            server.send_message(message)
