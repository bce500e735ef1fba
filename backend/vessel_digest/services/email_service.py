"""Email service for sending grouped vessel notification emails via SMTP."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from email.message import EmailMessage
from html import escape
from typing import TYPE_CHECKING, Any

from vessel_digest.core.config import settings

if TYPE_CHECKING:
    from vessel_digest.models.user import User
    from vessel_digest.models.vessel import Vessel

logger = logging.getLogger(__name__)

DIGEST_TYPE_LABELS = {
    "transaction_created": "Transactions Created",
    "transaction_deleted": "Transactions Deleted",
    "voyage_started": "Voyages Started",
    "voyage_completed": "Voyages Completed",
}
DEFAULT_DIGEST_LABEL = "System Notifications"


def _format_label(key: str) -> str:
    """Turn a snapshot key such as ``expected_return_date`` into ``Expected return date``."""
    return key.replace("_", " ").strip().capitalize()


def _format_value(value: object) -> str:
    """Render a snapshot value for display, ``N/A`` for None."""
    if value is None:
        return "N/A"
    return escape(str(value))


def digest_label(digest_type: str) -> str:
    return DIGEST_TYPE_LABELS.get(digest_type, DEFAULT_DIGEST_LABEL)


def build_digest_subject(digest_type: str, count: int) -> str:
    """Subject line such as ``Transactions Created (3 items) - Vessel Digest``."""
    subject = digest_label(digest_type)
    if count > 1:
        subject += f" ({count} items)"
    return f"{subject} - {settings.APP_NAME}"


def build_digest_body(
    recipient_name: str,
    vessel_name: str,
    digest_type: str,
    snapshots: Sequence[dict[str, Any]],
) -> str:
    items = []
    for index, snapshot in enumerate(snapshots, start=1):
        rows = "".join(
            f"<tr><td><strong>{escape(_format_label(key))}:</strong></td>"
            f"<td>{_format_value(value)}</td></tr>"
            for key, value in snapshot.items()
        )
        items.append(f"<h3>#{index}</h3><table>{rows}</table>")

    return (
        f"<h2>{escape(digest_label(digest_type))}</h2>"
        f"<p>Hello {escape(recipient_name or 'there')},</p>"
        f"<p>The following updates were recorded for vessel "
        f"<strong>{escape(vessel_name or 'N/A')}</strong>.</p>"
        f"{''.join(items)}"
    )


class EmailService:
    """Service for sending notification emails via SMTP."""

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        headers: dict[str, str] | None = None,
    ) -> bool:
        """Send an email via SMTP.

        Args:
            to: Recipient email address.
            subject: Email subject line.
            html_body: HTML content of the email.
            headers: Optional extra message headers.

        Returns:
            True if sent successfully (or no-op when SMTP unconfigured).
        """
        if not settings.SMTP_HOST:
            logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
            return True

        import aiosmtplib

        msg = EmailMessage()
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        for name, value in (headers or {}).items():
            msg[name] = value
        msg.set_content("Please view this email in an HTML-capable client.")
        msg.add_alternative(html_body, subtype="html")

        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_digest(
        self,
        recipient: User,
        vessel: Vessel,
        digest_type: str,
        snapshots: Sequence[dict[str, Any]],
        group_id: str,
    ) -> bool:
        """Send one grouped notification email.

        Args:
            recipient: The user to email.
            vessel: The vessel the notifications are about.
            digest_type: Digest type of every item in the group.
            snapshots: Display data of each item, oldest first.
            group_id: Identifier shared by the grouped records.

        Returns:
            True if sent successfully, False when the recipient has no email.
        """
        if not recipient.email:
            logger.warning("User %s has no email, skipping digest %s", recipient.id, group_id)
            return False

        return await self.send_email(
            to=str(recipient.email),
            subject=build_digest_subject(digest_type, len(snapshots)),
            html_body=build_digest_body(
                str(recipient.name or ""),
                str(vessel.name or ""),
                digest_type,
                snapshots,
            ),
            headers={"X-Digest-Group-Id": group_id},
        )
