import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from reminder_service.core.config import ReminderSettings, settings as default_settings

logger = logging.getLogger(__name__)


class EmailService:
    """SMTP delivery channel for reminder emails.

    ``send`` raises on transport errors (connection, auth, timeout) and returns
    False when the server accepted the session but refused every recipient.
    """

    def __init__(
        self,
        smtp_server: str,
        smtp_port: int,
        smtp_username: str,
        smtp_password: str,
        from_email: Optional[str] = None,
        timeout: float = 30.0,
        app_name: str = "Event Reminders",
    ):
        if not smtp_server:
            raise ValueError("SMTP_SERVER is required but not configured")
        if not smtp_port:
            raise ValueError("SMTP_PORT is required but not configured")
        if not smtp_username:
            raise ValueError("SMTP_USERNAME is required but not configured")
        if not smtp_password:
            raise ValueError("SMTP_PASSWORD is required but not configured")

        self.smtp_server = smtp_server
        self.smtp_port = int(smtp_port)
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        # Most providers refuse to relay for a sender other than the login
        self.from_email = from_email or smtp_username
        self.timeout = timeout
        self.app_name = app_name

    @classmethod
    def from_settings(cls, settings: ReminderSettings = None) -> "EmailService":
        settings = settings or default_settings
        return cls(
            smtp_server=settings.SMTP_SERVER,
            smtp_port=settings.SMTP_PORT,
            smtp_username=settings.SMTP_USERNAME,
            smtp_password=settings.SMTP_PASSWORD,
            from_email=settings.FROM_EMAIL,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
            app_name=settings.APP_NAME,
        )

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.smtp_port == 465:
            # SSL connection for port 465
            server = smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, timeout=self.timeout, context=context)
        else:
            # STARTTLS for port 587
            server = smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout)
            server.starttls(context=context)
        server.login(self.smtp_username, self.smtp_password)
        return server

    def verify(self) -> bool:
        """Check that the SMTP server is reachable and accepts our credentials."""
        try:
            server = self._connect()
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ [Email] SMTP configuration check failed for {self.smtp_server}:{self.smtp_port}: {e}")
            return False
        logger.info(f"✅ [Email] SMTP configuration verified ({self.smtp_server}:{self.smtp_port})")
        return True

    def _build_message(self, to_email: str, subject: str, text_body: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.app_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def send(self, destination: str, subject: str, text_body: str, html_body: str) -> bool:
        msg = self._build_message(destination, subject, text_body, html_body)
        server = self._connect()
        try:
            refused = server.send_message(msg)
        except smtplib.SMTPRecipientsRefused as e:
            logger.warning(f"⚠️ [Email] Recipient refused: {destination}: {e.recipients}")
            return False
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError):
                server.close()
        if refused:
            logger.warning(f"⚠️ [Email] Recipient refused: {destination}: {refused}")
            return False
        logger.info(f"✅ [Email] Sent '{subject}' to {destination}")
        return True

    def send_test_email(self, to_email: str) -> bool:
        subject = f"🎉 {self.app_name} test email"
        text_body = (
            "Hello!\n\n"
            f"This is a test email to verify the {self.app_name} reminder email configuration.\n"
            "If you received it, email delivery is working.\n"
        )
        html_body = f"""
        <div style="font-family: Arial, sans-serif; padding: 20px;">
            <h2>🎉 Test email</h2>
            <p>Hello!</p>
            <p>This is a test email to verify the {self.app_name} reminder email configuration.</p>
            <p>If you received it, email delivery is working.</p>
        </div>
        """
        try:
            return self.send(to_email, subject, text_body, html_body)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ [Email] Test email to {to_email} failed: {e}")
            return False
