"""
Email Service using Resend

Notifications sent to mosque administrators when a super admin acts on
their record. All senders are best-effort: they return False on failure
instead of raising.
"""

import asyncio
import logging
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
        .header {{ color: #065f46; margin-bottom: 24px; }}
        .box {{ background: #f3f4f6; border-left: 4px solid {accent}; padding: 16px; margin: 24px 0; }}
        .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
    </style>
</head>
<body>
    <div class="container">
        <h1 class="header">{title}</h1>
        {body}
        <div class="footer">
            <p>Mosque Directory - Administration</p>
        </div>
    </div>
</body>
</html>
"""


def _render(title: str, body: str, accent: str = "#065f46") -> str:
    return _LAYOUT.format(title=escape(title), body=body, accent=accent)


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send an email using Resend.

    Logs the message instead of sending when no API key is configured.

    Returns:
        True if the email was sent (or logged), False on failure
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_admin_approved(
    to_email: str,
    admin_name: str,
    mosque_name: str,
    notes: str | None = None,
) -> bool:
    """Tell an applicant they are now the administrator of a mosque."""
    safe_name = escape(admin_name)
    safe_mosque = escape(mosque_name)
    notes_html = f'<div class="box"><p>{escape(notes)}</p></div>' if notes else ""

    body = f"""
        <p>Assalamu alaikum {safe_name},</p>
        <p>Your application to administer <strong>{safe_mosque}</strong> has been approved.</p>
        {notes_html}
        <p>You can now sign in at <a href="{settings.frontend_url}/admin/login">{settings.frontend_url}/admin/login</a>
        to manage prayer times and mosque details.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"You are now the administrator of {safe_mosque}",
        html_content=_render("Application Approved", body),
    )


async def send_admin_rejected(
    to_email: str,
    admin_name: str,
    mosque_name: str,
    reason: str,
    rejection_count: int,
    auto_banned: bool,
) -> bool:
    """Tell an applicant their application was declined."""
    safe_name = escape(admin_name)
    safe_mosque = escape(mosque_name)

    if auto_banned:
        next_steps = (
            f"<p>This is rejection number {rejection_count}. Accounts rejected this many times "
            "cannot reapply.</p>"
        )
    else:
        next_steps = (
            "<p>You may be allowed to reapply once a super admin has reviewed your case.</p>"
        )

    body = f"""
        <p>Assalamu alaikum {safe_name},</p>
        <p>Your application to administer <strong>{safe_mosque}</strong> was not approved.</p>
        <div class="box"><p><strong>Reason:</strong> {escape(reason)}</p></div>
        {next_steps}
    """
    return await send_email(
        to_email=to_email,
        subject=f"Update on your application for {safe_mosque}",
        html_content=_render("Application Not Approved", body, accent="#b91c1c"),
    )


async def send_admin_removed(
    to_email: str,
    admin_name: str,
    mosque_name: str,
    reason: str,
) -> bool:
    """Tell an administrator they were removed from their mosque."""
    safe_name = escape(admin_name)
    safe_mosque = escape(mosque_name)

    body = f"""
        <p>Assalamu alaikum {safe_name},</p>
        <p>You have been removed as administrator of <strong>{safe_mosque}</strong>.</p>
        <div class="box"><p><strong>Reason:</strong> {escape(reason)}</p></div>
        <p>You may apply to administer a different mosque.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Your administrator access to {safe_mosque} was removed",
        html_content=_render("Administrator Access Removed", body, accent="#c2410c"),
    )


async def send_reapplication_allowed(to_email: str, admin_name: str) -> bool:
    """Tell a rejected applicant they may submit a new application."""
    body = f"""
        <p>Assalamu alaikum {escape(admin_name)},</p>
        <p>A super admin has allowed you to reapply. Sign in and submit a new application
        with a current mosque verification code.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="You may now reapply as a mosque administrator",
        html_content=_render("Reapplication Allowed", body),
    )
