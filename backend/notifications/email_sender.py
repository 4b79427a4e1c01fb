"""
Email sending via Resend API for the notification system.

Composes one menu alert per user (all matched foods in a single message)
and hands it to a mail transport. A failed send is reported, never raised,
so one bad recipient cannot stop the rest of a run.
"""

import html
import os
from datetime import date as date_type
from typing import Any, Protocol

import resend

from models import DeliveryResult, MenuMatch, UserNotification
from notifications.unsubscribe_tokens import generate_unsubscribe_token
from shared.error_logger import log_job_error
from shared.errors import DispatchError

DEFAULT_FRONTEND_BASE_URL = "https://buckys-menu.com"
DEFAULT_FROM_EMAIL = "noreply@buckys-menu.com"
FROM_NAME = "Bucky's Menu"

SUBJECT = "🍽️ Your favorite foods are available today!"


class MailTransport(Protocol):
    def send(
        self,
        to: str,
        subject: str,
        text_body: str,
        html_body: str,
        headers: dict[str, str] | None = None,
    ) -> DeliveryResult: ...


class ResendMailTransport:
    """Mail transport backed by the Resend API."""

    def __init__(self, api_key: str | None = None, from_email: str | None = None):
        resend.api_key = api_key or os.getenv("RESEND_API_KEY")
        self.from_email = from_email or os.getenv(
            "NOTIFICATION_FROM_EMAIL", DEFAULT_FROM_EMAIL
        )

    def send(
        self,
        to: str,
        subject: str,
        text_body: str,
        html_body: str,
        headers: dict[str, str] | None = None,
    ) -> DeliveryResult:
        params: dict[str, Any] = {
            "from": f"{FROM_NAME} <{self.from_email}>",
            "to": to,
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        if headers:
            params["headers"] = headers

        try:
            response = resend.Emails.send(params)
        except Exception as e:
            return DeliveryResult(success=False, error=str(e))

        return DeliveryResult(success=True, email_id=response.get("id"))


def format_dining_hall(dining_hall: str) -> str:
    """'gordon-avenue-market' -> 'Gordon Avenue Market'"""
    return " ".join(word[:1].upper() + word[1:] for word in dining_hall.split("-"))


def format_meal(meal: str) -> str:
    return meal[:1].upper() + meal[1:]


def format_date(date_str: str) -> str:
    """'2025-01-10' -> 'Friday, January 10, 2025' (calendar date, no timezone shift)."""
    try:
        d = date_type.fromisoformat(date_str)
    except (TypeError, ValueError):
        return date_str
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def _frontend_base_url() -> str:
    return os.getenv("FRONTEND_BASE_URL", DEFAULT_FRONTEND_BASE_URL).rstrip("/")


def _build_unsubscribe_url(user_id: str, base_url: str) -> str | None:
    """Signed one-click unsubscribe link, or None when signing isn't configured."""
    try:
        token = generate_unsubscribe_token(user_id)
    except ValueError:
        return None
    return f"{base_url}/unsubscribe?token={token}"


def _prepare_match_data(matches: list[MenuMatch]) -> list[dict[str, str]]:
    """
    Format every match once so the text and HTML builders only handle presentation.

    Matches are kept as given: the same food at two halls or meals appears twice.
    """
    return [
        {
            "food_name": match.food_name,
            "dining_hall": format_dining_hall(match.dining_hall),
            "meal": format_meal(match.meal),
            "date": format_date(match.date),
        }
        for match in matches
    ]


def _build_email_html(
    prepared_matches: list[dict[str, str]],
    preferences_url: str,
    unsubscribe_url: str | None,
) -> str:
    """
    Build HTML email body.

    Args:
        prepared_matches: Output of _prepare_match_data
        preferences_url: URL to the settings page
        unsubscribe_url: One-click unsubscribe link, if available

    Returns:
        HTML string
    """
    matches_html = ""
    for match in prepared_matches:
        matches_html += f"""
        <div style="background: #f5f5f5; padding: 15px; margin: 10px 0; border-radius: 8px;">
            <h3 style="margin: 0 0 10px 0; color: #c5050c;">{html.escape(match['food_name'])}</h3>
            <p style="margin: 5px 0; color: #666;">
                <strong>Location:</strong> {html.escape(match['dining_hall'])}<br>
                <strong>Meal:</strong> {html.escape(match['meal'])}<br>
                <strong>Date:</strong> {html.escape(match['date'])}
            </p>
        </div>
"""

    unsubscribe_html = ""
    if unsubscribe_url:
        unsubscribe_html = (
            f'<p><a href="{html.escape(unsubscribe_url)}" style="color: #c5050c;">'
            "Unsubscribe from all menu alerts</a></p>"
        )

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Your Menu Notifications</title>
</head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; margin-bottom: 30px;">
        <h1 style="color: #c5050c;">🍽️ Bucky's Menu Alert</h1>
        <p style="color: #666; font-size: 16px;">Your subscribed foods are on the menu!</p>
    </div>

    <div>
{matches_html}
    </div>

    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; text-align: center; color: #666; font-size: 12px;">
        <p>You're receiving this because you subscribed to menu notifications.</p>
        <p><a href="{html.escape(preferences_url)}" style="color: #c5050c;">Manage your notification settings</a></p>
        {unsubscribe_html}
    </div>
</body>
</html>
"""


def _build_email_text(
    prepared_matches: list[dict[str, str]],
    preferences_url: str,
    unsubscribe_url: str | None,
) -> str:
    """Build plain text email body from the same prepared data as the HTML."""
    matches_text = "\n".join(
        f"• {m['food_name']} at {m['dining_hall']} ({m['meal']}) on {m['date']}"
        for m in prepared_matches
    )

    text = f"""🍽️ Bucky's Menu Alert

Your subscribed foods are on the menu!

{matches_text}

---
You're receiving this because you subscribed to menu notifications.
Manage your notification settings: {preferences_url}
"""
    if unsubscribe_url:
        text += f"Unsubscribe from all menu alerts: {unsubscribe_url}\n"

    return text


class NotificationDispatcher:
    """Sends one composed menu alert per user through a mail transport."""

    def __init__(self, transport: MailTransport, frontend_base_url: str | None = None):
        self.transport = transport
        self.frontend_base_url = (frontend_base_url or _frontend_base_url()).rstrip("/")

    def compose(self, notification: UserNotification) -> dict[str, Any]:
        """Subject, bodies and headers for a notification (no sending)."""
        preferences_url = f"{self.frontend_base_url}/settings"
        unsubscribe_url = (
            _build_unsubscribe_url(notification.user_id, self.frontend_base_url)
            if notification.user_id
            else None
        )
        prepared = _prepare_match_data(notification.matches)

        headers: dict[str, str] = {}
        if unsubscribe_url:
            headers["List-Unsubscribe"] = f"<{unsubscribe_url}>"
            headers["List-Unsubscribe-Post"] = "List-Unsubscribe=One-Click"

        return {
            "subject": SUBJECT,
            "text": _build_email_text(prepared, preferences_url, unsubscribe_url),
            "html": _build_email_html(prepared, preferences_url, unsubscribe_url),
            "headers": headers,
        }

    def _deliver(self, notification: UserNotification) -> DeliveryResult:
        if not notification.matches:
            raise DispatchError("No matches to send")

        message = self.compose(notification)
        result = self.transport.send(
            to=notification.email,
            subject=message["subject"],
            text_body=message["text"],
            html_body=message["html"],
            headers=message["headers"] or None,
        )
        if not result.success:
            raise DispatchError(result.error or "Unknown error")
        return result

    def send_notification(self, notification: UserNotification) -> bool:
        """
        Send a menu alert with all of a user's matches.

        Returns:
            True if the transport accepted the message, False otherwise
        """
        try:
            result = self._deliver(notification)
        except DispatchError as e:
            print(f"  ✗ Failed to send email to {notification.email}: {e}")
            log_job_error(
                error_type="sending",
                error_message=str(e),
                context={
                    "email": notification.email,
                    "user_id": notification.user_id,
                    "match_count": len(notification.matches),
                    "food_ids": [m.food_id for m in notification.matches],
                },
            )
            return False

        print(f"  ✓ Email sent to {notification.email}: {result.email_id}")
        return True
