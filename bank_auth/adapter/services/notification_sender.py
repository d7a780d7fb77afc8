"""
MFA code delivery.

SmtpNotificationSender sends through aiosmtplib; ConsoleNotificationSender
only logs, for local development.
"""

import html
import logging
from email.message import EmailMessage

import aiosmtplib

from bank_auth.app.services.notification_sender import (
    INotificationSender,
    NotificationError,
    mask_email,
)

logger = logging.getLogger(__name__)


def render_mfa_email(app_name: str, display_name: str, code: str, ttl_minutes: int = 10) -> str:
    app_name = html.escape(app_name)
    display_name = html.escape(display_name)
    return f"""\
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #2c3e50;">{app_name} verification code</h2>
            <p>Hello {display_name},</p>
            <p>Your verification code is:</p>
            <div style="text-align: center; margin: 30px 0; font-size: 32px;
                        letter-spacing: 8px; font-weight: bold;">
                {code}
            </div>
            <p>This code expires in {ttl_minutes} minutes.</p>
            <p style="color: #7f8c8d; font-size: 13px;">
                If you did not try to sign in, change your password immediately.
            </p>
        </div>
    </body>
    </html>
    """


class SmtpNotificationSender(INotificationSender):
    """Sends MFA codes by email over SMTP with STARTTLS"""

    def __init__(
        self,
        hostname: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        app_name: str = "SecureBank",
        code_ttl_seconds: int = 600,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.app_name = app_name
        self.code_ttl_seconds = code_ttl_seconds

    async def send_mfa_code(self, email: str, display_name: str, code: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = email
        message["Subject"] = f"Your {self.app_name} verification code"
        message.set_content(
            render_mfa_email(
                self.app_name, display_name, code, self.code_ttl_seconds // 60
            ),
            subtype="html",
        )

        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=True,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("Failed to send MFA code to %s", mask_email(email))
            raise NotificationError(str(e)) from e

        logger.info("MFA code sent to %s", mask_email(email))


class ConsoleNotificationSender(INotificationSender):
    """Development sender: writes the code to the log instead of mailing it"""

    async def send_mfa_code(self, email: str, display_name: str, code: str) -> None:
        logger.info("MFA code for %s (%s): %s", mask_email(email), display_name, code)
