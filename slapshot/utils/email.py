"""
Notification transport.

``send_notification`` is the single outbound mail entry point. It is
synchronous, makes one delivery attempt and reports the outcome as a bool;
callers decide whether a failed send is fatal.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from slapshot.core.config import settings

logger = logging.getLogger(__name__)


def _deliver(to_email: str, msg: MIMEMultipart) -> None:
    """Hand a composed message to the SMTP relay."""
    if not settings.SMTP_HOST:
        raise RuntimeError("SMTP_HOST is not configured")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.ehlo()
        server.starttls()
        server.ehlo()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.SMTP_FROM_EMAIL, [to_email], msg.as_string())


def send_notification(
    to: str,
    subject: str,
    plain_body: str,
    html_body: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> bool:
    """
    Send an email.

    Args:
        to: Recipient email address
        subject: Email subject
        plain_body: Plain text content
        html_body: HTML alternative (optional)
        reply_to: Reply-To address (optional)

    Returns:
        True if the relay accepted the message, False otherwise
    """
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to
    if reply_to:
        msg["Reply-To"] = reply_to

    msg.attach(MIMEText(plain_body, "plain", "utf-8"))
    if html_body:
        msg.attach(MIMEText(html_body, "html", "utf-8"))

    try:
        _deliver(to, msg)
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {to}: {str(e)}")
        return False

    logger.info(f"Email '{subject}' sent to {to}")
    return True


def send_team_invite_email(
    to_email: str,
    team_name: str,
    join_code: str,
    sender_name: str,
    message: str = "",
) -> bool:
    """
    Send a team invitation carrying the join code and a direct join link.

    Args:
        to_email: Recipient email address
        team_name: Name of the team
        join_code: The team's join code
        sender_name: Display name of the inviting member
        message: Optional personal note

    Returns:
        True if sent
    """
    invite_url = f"{settings.APP_URL}/?join={join_code}"
    subject = f"Invitation to join {team_name} on {settings.APP_NAME}"

    lines = [
        f'{sender_name} invited you to join "{team_name}" on {settings.APP_NAME}.',
        "",
        f"Join code: {join_code}",
        f"Direct link: {invite_url}",
    ]
    if message:
        lines += ["", "Personal note:", message]
    lines += ["", "See you at the rink."]

    return send_notification(
        to_email,
        subject,
        "\r\n".join(lines),
        reply_to=settings.SMTP_FROM_EMAIL,
    )
