"""
Email adapter for the HeyNeighbor backend.

The default implementation uses SMTP, reading credentials from Settings.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

from .config import Settings, get_settings

logger = logging.getLogger("heyneighbor.mailer")


def send_email(subject: str, to_email: str, html_body: str, text_body: str | None = None, *, settings: Settings | None = None) -> bool:
    """
    Send an email with the SMTP credentials configured via env.
    Returns False without sending when the configuration is incomplete.
    """
    settings = settings or get_settings()
    if not (
        settings.smtp_host
        and settings.smtp_user
        and settings.smtp_password
        and settings.smtp_from
        and settings.smtp_port
    ):
        logger.warning("SMTP configuration missing; skipping email to %s", to_email)
        return False
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f'"Hey, Neighbor!" <{settings.smtp_from}>'
    msg["To"] = to_email
    plain = text_body or html_body
    msg.attach(MIMEText(plain, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    port = settings.smtp_port or 465
    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(settings.smtp_host, port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        return True
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send email to %s: %s", to_email, exc)
        return False


def _verification_html(code: str, display_name: str, ttl_minutes: int) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h1 style="color: #f97316;">Welcome to Hey, Neighbor!</h1>
      <p>Hi {display_name},</p>
      <p>Please use the verification code below to complete your registration.</p>
      <div style="background-color: #f3f4f6; padding: 20px; margin: 30px 0; text-align: center; border-radius: 8px;">
        <h2 style="color: #f97316; font-size: 32px; letter-spacing: 8px; margin: 0;">{code}</h2>
      </div>
      <p>Enter this code in the app to verify your email address.</p>
      <p style="color: #6b7280; font-size: 12px; margin-top: 30px;">
        This code will expire in {ttl_minutes} minutes. If you didn't create an account, please ignore this email.
      </p>
    </div>
    """


class SMTPNotificationSender:
    """Notification sender delivering verification codes over SMTP."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def send(self, recipient_email: str, code: str, display_name: str) -> bool:
        ttl_minutes = max(1, self.settings.verification_code_ttl_seconds // 60)
        return send_email(
            "Verify your email - Hey, Neighbor!",
            recipient_email,
            _verification_html(code, display_name or "neighbor", ttl_minutes),
            f"Your Hey, Neighbor! verification code is {code}. It expires in {ttl_minutes} minutes.",
            settings=self.settings,
        )
