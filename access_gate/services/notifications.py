"""
Notification decisions for the access-request workflow.

The dispatcher only ever looks at transitions the workflow reports as
state-changing; delivery is best effort and a failing transport is logged,
never raised back into the request that triggered it.
"""
import html
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from access_gate.core.config import settings
from access_gate.models.access_request import AccessRequestStatus
from access_gate.services.email import (EmailMessagePayload, Mailer,
                                        redact_email)

logger = logging.getLogger('access_gate')

_WRAPPER_STYLE = (
    'font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,'
    'Roboto,Helvetica,Arial;'
)


class NotificationKind(str, Enum):
    REQUEST_RECEIVED = 'request-received'
    NEW_REQUEST_ALERT = 'new-request-alert'
    ACCESS_APPROVED = 'access-approved'
    ACCESS_REJECTED = 'access-rejected'


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: EmailMessagePayload


def _render(paragraphs: list[tuple[str, str]]) -> tuple[str, str]:
    """
    Render (html, text) from paragraph pairs.

    Each pair holds the already-escaped HTML fragment and its plain-text
    twin, so the two bodies always carry the same content.
    """
    body = ''.join(f'<p>{fragment}</p>' for fragment, _ in paragraphs)
    html_body = f'<div style="{_WRAPPER_STYLE}">{body}</div>'
    text_body = '\n\n'.join(text for _, text in paragraphs)
    return html_body, text_body


def _greeting(name: Optional[str]) -> tuple[str, str]:
    if not name:
        return 'Hi,', 'Hi,'
    return f'Hi {html.escape(name)},', f'Hi {name},'


def build_request_received_email(
    email: str, name: Optional[str] = None
) -> EmailMessagePayload:
    html_body, text_body = _render([
        _greeting(name),
        (
            'Your access request has been received. '
            'An admin will review it shortly.',
            'Your access request has been received. '
            'An admin will review it shortly.',
        ),
        (
            f'Requested for: {html.escape(email)}',
            f'Requested for: {email}',
        ),
    ])
    return EmailMessagePayload(
        to=email,
        subject='Access request received',
        html=html_body,
        text=text_body,
    )


def build_admin_new_request_email(
    admin_email: str, email: str, name: Optional[str] = None
) -> EmailMessagePayload:
    review_url = settings.build_url('/admin/access-requests')
    display_name = name or '-'
    html_body, text_body = _render([
        ('New access request received:', 'New access request received:'),
        (
            f'<strong>Email:</strong> {html.escape(email)}',
            f'Email: {email}',
        ),
        (
            f'<strong>Name:</strong> {html.escape(display_name)}',
            f'Name: {display_name}',
        ),
        (
            f'<a href="{html.escape(review_url)}">Review requests</a>',
            f'Review: {review_url}',
        ),
    ])
    return EmailMessagePayload(
        to=admin_email,
        subject='New access request',
        html=html_body,
        text=text_body,
    )


def build_access_approved_email(
    email: str, name: Optional[str] = None
) -> EmailMessagePayload:
    sign_in_url = settings.build_url('/login')
    html_body, text_body = _render([
        _greeting(name),
        (
            'Your access has been approved. You can now sign in.',
            'Your access has been approved. You can now sign in.',
        ),
        (
            f'<a href="{html.escape(sign_in_url)}">Sign in</a>',
            f'Sign in: {sign_in_url}',
        ),
    ])
    return EmailMessagePayload(
        to=email,
        subject='Access approved',
        html=html_body,
        text=text_body,
    )


def build_access_rejected_email(
    email: str, name: Optional[str] = None
) -> EmailMessagePayload:
    admin_email = settings.get_admin_notify_email()
    if admin_email:
        contact = (
            'If you believe this is a mistake, contact: '
            f'{html.escape(admin_email)}',
            f'If you believe this is a mistake, contact: {admin_email}',
        )
    else:
        line = (
            'If you believe this is a mistake, '
            'please contact the administrator.'
        )
        contact = (line, line)
    html_body, text_body = _render([
        _greeting(name),
        (
            'Your access request was not approved at this time.',
            'Your access request was not approved at this time.',
        ),
        contact,
    ])
    return EmailMessagePayload(
        to=email,
        subject='Access request update',
        html=html_body,
        text=text_body,
    )


class NotificationDispatcher:
    def __init__(self, mailer: Mailer) -> None:
        self.mailer = mailer

    def for_submission(self, result) -> list[Notification]:
        """Messages for a submit result; empty unless it changed state."""
        if not result.notify or result.request is None:
            return []
        email = result.request.email
        name = result.request.name
        notifications = [
            Notification(
                NotificationKind.REQUEST_RECEIVED,
                build_request_received_email(email, name),
            )
        ]
        admin_email = settings.get_admin_notify_email()
        if admin_email:
            notifications.append(
                Notification(
                    NotificationKind.NEW_REQUEST_ALERT,
                    build_admin_new_request_email(admin_email, email, name),
                )
            )
        return notifications

    def for_decision(self, result) -> list[Notification]:
        """Messages for a decision; idempotent repeats send nothing."""
        if not result.changed:
            return []
        request = result.request
        if request.status == AccessRequestStatus.APPROVED:
            return [
                Notification(
                    NotificationKind.ACCESS_APPROVED,
                    build_access_approved_email(request.email, request.name),
                )
            ]
        if request.status == AccessRequestStatus.REJECTED:
            return [
                Notification(
                    NotificationKind.ACCESS_REJECTED,
                    build_access_rejected_email(request.email, request.name),
                )
            ]
        return []

    async def dispatch(self, notifications: Iterable[Notification]) -> int:
        sent = 0
        for notification in notifications:
            message = notification.message
            try:
                await self.mailer.send(message)
                sent += 1
            except Exception as e:
                logger.warning(
                    f'Email "{message.subject}" to '
                    f'{redact_email(message.to)} failed: {e}'
                )
        return sent
