"""
Transactional email via Resend.

Templates are plain HTML strings; any user-supplied text is escaped before it
is interpolated.
"""

from __future__ import annotations

import html
import logging
from decimal import Decimal
from typing import Any, Optional, Union

import resend

from finbook.core.config import settings
from finbook.models import CURRENCY_SYMBOLS, Currency, Entry, User, UserProfile

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """The email provider is not configured or rejected the message."""


def format_amount(amount: Decimal | float | int, currency: Currency | str) -> str:
    symbol = CURRENCY_SYMBOLS[Currency(currency)]
    return f"{symbol}{Decimal(amount):.2f}"


def send_email(
    to: Union[str, list[str]],
    subject: str,
    html_content: str,
    attachments: Optional[list[dict[str, Any]]] = None,
    from_address: Optional[str] = None,
) -> dict:
    """Send one message through Resend.

    Raises:
        EmailDeliveryError: if no API key is configured or the call fails.
    """
    if not settings.RESEND_API_KEY:
        logger.error("Email service not configured - FINBOOK_RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    recipients = [to] if isinstance(to, str) else list(to)
    email_data: dict[str, Any] = {
        "from": from_address or settings.EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": subject,
        "html": html_content,
    }
    if attachments:
        email_data["attachments"] = [
            {"filename": attachment["filename"], "content": attachment["content"]}
            for attachment in attachments
        ]

    resend.api_key = settings.RESEND_API_KEY
    try:
        response = resend.Emails.send(email_data)
    except Exception as exc:
        logger.error("Email send error to %s: %s", recipients, exc)
        raise EmailDeliveryError(f"Failed to send email: {exc}") from exc
    logger.info("Email sent via Resend to %s (%s)", recipients, subject)
    return response


def _receiving_accounts_html(profile: UserProfile | None) -> str:
    accounts = list(profile.receiving_accounts or []) if profile else []
    if not accounts:
        return ""
    items = []
    for account in accounts:
        details = {k: v for k, v in (account.get("details") or {}).items() if v}
        detail_text = ", ".join(f"{html.escape(str(k))}: {html.escape(str(v))}" for k, v in details.items())
        label = html.escape(str(account.get("label", "")))
        kind = html.escape(str(account.get("type", "")))
        items.append(f"<li><strong>{label}</strong> ({kind}){': ' + detail_text if detail_text else ''}</li>")
    return "<p>You can pay using:</p><ul>" + "".join(items) + "</ul>"


def payment_reminder_email(entry: Entry, owner: User, profile: UserProfile | None) -> tuple[str, str]:
    """Subject and HTML body for a receivable reminder."""
    currency = profile.currency if profile else Currency.USD
    amount = format_amount(entry.amount, currency)
    due = entry.due_date.isoformat() if entry.due_date else "-"
    subject = f"Payment Reminder – {entry.name}"
    body = (
        "<p>Hello,</p>"
        "<p>This is a reminder for the pending payment:</p>"
        "<ul>"
        f"<li><strong>For:</strong> {html.escape(entry.name)}</li>"
        f"<li><strong>Amount:</strong> {html.escape(amount)}</li>"
        f"<li><strong>Due Date:</strong> {due}</li>"
        "</ul>"
        f"{_receiving_accounts_html(profile)}"
        "<p>Please arrange payment at the earliest.</p>"
        f"<p>– {html.escape(owner.email)}</p>"
    )
    return subject, body


def report_email(label: str, start: str, end: str, entry_count: int) -> tuple[str, str]:
    subject = f"Your {label} Finance Report"
    body = (
        "<p>Hello,</p>"
        f"<p>Your {label.lower()} finance report is attached.</p>"
        f"<p>Period: {start} – {end} ({entry_count} entries)</p>"
        "<p>– FinBook</p>"
    )
    return subject, body
