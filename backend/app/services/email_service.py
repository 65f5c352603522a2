"""
Email Service for Campus Connect
================================
Two messages are sent:
- the registration OTP code
- a welcome note once the account exists

Delivery goes over SMTP when SMTP_USER / SMTP_PASSWORD are set. Otherwise
the service runs in console mode and writes the plain-text body to the
application log, which is how codes are read in development.
"""

import aiosmtplib
import textwrap
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from html import escape
from typing import Optional

from app.core.config import settings
from app.core.logging_config import logger


BRAND_COLOR = "#2563eb"

_LAYOUT = """<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; color: #1f2937; line-height: 1.6;">
  <div style="max-width: 560px; margin: 0 auto; padding: 24px;">
    <h1 style="background: {color}; color: #fff; padding: 24px; margin: 0; border-radius: 8px 8px 0 0; font-size: 22px;">{heading}</h1>
    <div style="background: #f9fafb; padding: 24px; border-radius: 0 0 8px 8px;">
      {body}
    </div>
    <p style="text-align: center; font-size: 12px; color: #6b7280;">&copy; {year} Campus Connect</p>
  </div>
</body>
</html>"""


@dataclass
class EmailResult:
    """Outcome of a send. ``preview_url`` is only set by test mail relays."""
    success: bool
    message_id: Optional[str] = None
    preview_url: Optional[str] = None


def render_html(heading: str, body: str) -> str:
    """Wrap ``body`` (already-escaped HTML) in the shared layout"""
    return _LAYOUT.format(color=BRAND_COLOR, heading=escape(heading), body=body, year=datetime.utcnow().year)


class EmailService:
    """Async mailer with a console mode for unconfigured environments"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.sender = formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM))
        self.frontend_url = settings.FRONTEND_URL

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def build_message(self, to_email: str, subject: str, text: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_email
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain="campus-connect")
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    async def send_email(self, to_email: str, subject: str, text: str, html: str) -> EmailResult:
        """
        Deliver one message.

        SMTP failures are logged and reported as ``success=False``; callers
        decide whether that is fatal.
        """
        if not self.is_configured:
            logger.info(
                f"[Email/Console] To: {to_email} | Subject: {subject}\n{text}",
                extra={"event_type": "email_console", "email_to": to_email}
            )
            return EmailResult(success=True, message_id="console-log")

        message = self.build_message(to_email, subject, text, html)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send '{subject}' to {to_email}: {e}")
            return EmailResult(success=False)

        logger.info(f"[Email/SMTP] Sent '{subject}' to {to_email}")
        return EmailResult(success=True, message_id=message["Message-ID"])

    async def send_otp_email(self, to_email: str, otp: str, user_name: Optional[str] = None) -> EmailResult:
        minutes = settings.OTP_EXPIRE_SECONDS // 60
        name = user_name or "there"

        text = textwrap.dedent(f"""\
            Hi {name},

            Your Campus Connect verification code is: {otp}

            The code expires in {minutes} minutes. If you did not sign up, ignore this email.
            """)
        html = render_html("Verify your email", (
            f"<p>Hi {escape(name)},</p>"
            "<p>Use this code to finish creating your Campus Connect account:</p>"
            f'<p style="font-size: 32px; font-weight: 700; letter-spacing: 8px; text-align: center;">{escape(otp)}</p>'
            f'<p style="font-size: 14px; color: #6b7280;">The code expires in {minutes} minutes. '
            "If you did not sign up, ignore this email.</p>"
        ))

        return await self.send_email(to_email, "Your Campus Connect verification code", text, html)

    async def send_welcome_email(self, to_email: str, user_name: str, role: Optional[str] = None) -> EmailResult:
        if role == "authority":
            next_step = "Open your dashboard to review issues in your categories."
        else:
            next_step = "Report your first campus issue and follow it to resolution."
        name = user_name or "there"

        text = textwrap.dedent(f"""\
            Hi {name},

            Your Campus Connect account is ready. {next_step}

            {self.frontend_url}
            """)
        html = render_html("Welcome to Campus Connect!", (
            f"<p>Hi {escape(name)},</p>"
            f"<p>Your account is ready. {next_step}</p>"
            f'<p><a href="{escape(self.frontend_url)}" style="background: {BRAND_COLOR}; color: #fff; '
            'padding: 12px 24px; border-radius: 6px; text-decoration: none;">Open Campus Connect</a></p>'
        ))

        return await self.send_email(to_email, "Welcome to Campus Connect!", text, html)


# Singleton instance
email_service = EmailService()
