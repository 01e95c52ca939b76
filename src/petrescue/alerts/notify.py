"""Alert delivery channels."""

from __future__ import annotations

import html
from typing import Protocol

import structlog
from sendgrid import SendGridAPIClient  # type: ignore[import-untyped]
from sendgrid.helpers.mail import Mail  # type: ignore[import-untyped]

from petrescue.config import Settings
from petrescue.ingest.listings import PetRecord

logger = structlog.get_logger()


class Notifier(Protocol):
    def notify(self, emails: list[str], record: PetRecord) -> None:
        """Deliver an alert. Delivery failures stay inside the notifier."""


def alert_subject(record: PetRecord) -> str:
    where = f" in {record.location}" if record.location else ""
    return f"URGENT: {record.name} ({record.species}){where} needs help"


def alert_body(record: PetRecord) -> str:
    if record.days_until_deadline is None:
        deadline = "unknown"
    elif record.days_until_deadline < 0:
        deadline = f"overdue by {-record.days_until_deadline} day(s)"
    else:
        deadline = f"{record.days_until_deadline} day(s)"
    lines = [
        f"<h2>{html.escape(record.name)}</h2>",
        f"<p>{html.escape(record.breed or 'Unknown breed')}, {html.escape(record.age or 'age unknown')}</p>",
        f"<p>Location: {html.escape(record.location or 'unknown')}</p>",
        f"<p>Time left: {deadline}</p>",
    ]
    if record.contact_phone or record.contact_email:
        contact = " / ".join(part for part in (record.contact_phone, record.contact_email) if part)
        lines.append(f"<p>Contact: {html.escape(contact)}</p>")
    if record.source_url:
        lines.append(f'<p><a href="{html.escape(record.source_url)}">View listing</a></p>')
    return "\n".join(lines)


class LogNotifier:
    """Records the alert in the log only."""

    def notify(self, emails: list[str], record: PetRecord) -> None:
        logger.info("Critical alert", pet_id=record.id, name=record.name, recipients=emails)


class SendGridNotifier:
    def __init__(self, api_key: str, sender_email: str):
        self._client = SendGridAPIClient(api_key)
        self._sender_email = sender_email

    def notify(self, emails: list[str], record: PetRecord) -> None:
        message = Mail(
            from_email=self._sender_email,
            to_emails=emails,
            subject=alert_subject(record),
            html_content=alert_body(record),
            is_multiple=True,
        )
        try:
            response = self._client.send(message)
            logger.info(
                "Alert email sent",
                pet_id=record.id,
                recipients=len(emails),
                status_code=response.status_code,
                message_id=response.headers.get("X-Message-Id"),
            )
        except Exception as e:
            logger.error("SendGrid error", pet_id=record.id, error=str(e))


def build_notifier(config: Settings) -> Notifier:
    if config.alerts_enabled and config.sendgrid_api_key and config.sender_email:
        return SendGridNotifier(config.sendgrid_api_key.get_secret_value(), config.sender_email)
    return LogNotifier()
