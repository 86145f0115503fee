"""
Email service (studio notifications)
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional
import smtplib
import ssl
import asyncio
import logging

from studio.core.config import settings


logger = logging.getLogger(__name__)

NOTIFICATION_ICON = "📩"
NOTIFICATION_LABEL = "New Notification"

ACCENT_COLOR = "#4F46E5"
BG_COLOR = "#F0F4F8"


def render_studio_email(
    title: str,
    recipient_name: str,
    message: str,
    action_url: Optional[str] = None,
    action_text: Optional[str] = None,
    reference_code: Optional[str] = None,
) -> str:
    """Claymorphic HTML email used for every studio notification"""
    body = escape(message).replace("\n", "<br>")
    button = (
        f'<a href="{escape(action_url)}" style="display:inline-block;background-color:{ACCENT_COLOR};color:#ffffff;'
        f'padding:18px 35px;border-radius:20px;text-decoration:none;font-weight:700;">{escape(action_text or "View Details")}</a>'
        if action_url else ""
    )
    ref = (
        f'<div style="margin-top:30px;font-size:11px;">Ref Code: '
        f'<span style="font-family:monospace;background:#f1f5f9;padding:5px 10px;border-radius:8px;color:#4a5568;">{escape(reference_code)}</span></div>'
        if reference_code else ""
    )
    return f"""
    <div style="font-family: Inter, Helvetica, Arial, sans-serif; background-color:{BG_COLOR}; padding:20px;">
      <div style="max-width:600px;margin:0 auto;padding:30px;border-radius:40px;">
        <div style="background-color:#ffffff;border-radius:35px;padding:40px;text-align:center;box-shadow:20px 20px 60px #cbd5e0,-20px -20px 60px #ffffff;">
          <div style="font-size:35px;margin-bottom:25px;">{NOTIFICATION_ICON}</div>
          <div style="font-size:10px;font-weight:900;color:{ACCENT_COLOR};text-transform:uppercase;letter-spacing:2px;margin-bottom:10px;">{NOTIFICATION_LABEL}</div>
          <h1 style="font-size:24px;font-weight:800;color:#1a1a2e;margin:0 0 20px;">{escape(title)}</h1>
          <p style="font-size:16px;line-height:1.6;color:#4a5568;margin-bottom:30px;">Hi {escape(recipient_name)},<br><br>{body}</p>
          {button}
          {ref}
        </div>
        <div style="margin-top:30px;font-size:12px;color:#a0aec0;text-align:center;">
          &copy; {escape(settings.EMAIL_FROM_NAME)} &bull; Designing Identity. Building Reality.
        </div>
      </div>
    </div>
    """


def _build_lead_email(payload: dict) -> tuple[str, str, str]:
    """Subject/text/HTML of the studio inbox notification for a new lead"""
    name = payload.get("name") or "Someone"
    subject = f"New Project Inquiry from {name} [{payload.get('referenceCode', '')}]"
    lines = [
        f"Name: {name}",
        f"Email: {payload.get('email', '')}",
        f"Budget: {payload.get('budget') or '-'}",
        f"Message: {payload.get('message', '')}",
    ]
    if payload.get("summary"):
        lines.append("")
        lines.append(payload["summary"])
    text = "\n".join(lines)
    html = render_studio_email(
        title=f"New inquiry from {name}",
        recipient_name=settings.EMAIL_FROM_NAME,
        message=text,
        action_url=f"mailto:{payload.get('email', '')}",
        action_text="Reply",
        reference_code=payload.get("referenceCode"),
    )
    return subject, text, html


def _send_email_sync(to_email: str, subject: str, text: str, html: str) -> None:
    """Blocking SMTP send (runs in the thread pool)"""
    if not settings.SMTP_HOST:
        # development: log instead of sending
        logger.info("[DEV] email not sent (SMTP not configured) -> subject: %s, to: %s", subject, to_email)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
    msg["To"] = to_email

    part1 = MIMEText(text, "plain", "utf-8")
    part2 = MIMEText(html, "html", "utf-8")
    msg.attach(part1)
    msg.attach(part2)

    context = ssl.create_default_context()
    if settings.SMTP_USE_SSL:
        with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, context=context) as server:
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
    else:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_USE_TLS:
                server.starttls(context=context)
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())


async def send_lead_notification_email(payload: dict, to_email: Optional[str] = None) -> None:
    """Mail a new lead to the studio inbox (async)"""
    recipient = to_email or settings.STUDIO_INBOX_EMAIL
    if not recipient:
        logger.info("[mail] no studio inbox configured, lead %s not mailed", payload.get("referenceCode"))
        return
    subject, text, html = _build_lead_email(payload)
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _send_email_sync, recipient, subject, text, html)
