import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import aiohttp

from access_gate.core.config import settings
from access_gate.services.errors import EmailTransportError

logger = logging.getLogger('access_gate')


@dataclass(frozen=True)
class EmailMessagePayload:
    to: str
    subject: str
    html: str
    text: str


def redact_email(email: str) -> str:
    if '@' not in email:
        return 'redacted'
    local, domain = email.split('@', 1)
    return f'{local[:2]}***@{domain}'


class Mailer:
    """
    Hands finished messages to an external email provider.

    An HTTP email API (Resend-compatible) is preferred when an API key is
    set, SMTP over SSL is the fallback, and with neither configured the
    message is only logged.
    """

    def __init__(
        self,
        *,
        from_email: str,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        smtp_server: Optional[str] = None,
        smtp_port: int = 465,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.from_email = from_email
        self.api_key = api_key
        self.api_url = api_url
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.timeout = timeout

    @property
    def uses_http_api(self) -> bool:
        return bool(self.api_key and self.api_url)

    @property
    def uses_smtp(self) -> bool:
        return bool(
            self.smtp_server and self.smtp_username and self.smtp_password
        )

    @property
    def is_configured(self) -> bool:
        return self.uses_http_api or self.uses_smtp

    async def send(self, message: EmailMessagePayload) -> None:
        if not self.is_configured:
            logger.warning(
                f'Email is not configured; dropping "{message.subject}" '
                f'to {redact_email(message.to)}'
            )
        elif self.uses_http_api:
            await self._send_http(message)
        else:
            await asyncio.to_thread(self._send_smtp, message)

    async def _send_http(self, message: EmailMessagePayload) -> None:
        payload = {
            'from': self.from_email,
            'to': [message.to],
            'subject': message.subject,
            'html': message.html,
            'text': message.text,
        }
        headers = {'Authorization': f'Bearer {self.api_key}'}
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(
                self.api_url, json=payload, headers=headers
            ) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    raise EmailTransportError(
                        f'Email API answered {response.status}: '
                        f'{error_text[:200]}'
                    )
        logger.info(
            f'Email "{message.subject}" sent to {redact_email(message.to)}'
        )

    def _send_smtp(self, message: EmailMessagePayload) -> None:
        msg = EmailMessage()
        msg['Subject'] = message.subject
        msg['From'] = self.from_email
        msg['To'] = message.to
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype='html')
        try:
            with smtplib.SMTP_SSL(
                self.smtp_server, self.smtp_port, timeout=self.timeout
            ) as smtp:
                smtp.login(self.smtp_username, self.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailTransportError(f'SMTP delivery failed: {e}') from e
        logger.info(
            f'Email "{message.subject}" sent to {redact_email(message.to)}'
        )


def build_mailer() -> Mailer:
    return Mailer(
        from_email=settings.email_from,
        api_key=settings.resend_api_key,
        api_url=settings.resend_api_url,
        smtp_server=settings.smtp_server,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
    )


def get_mailer() -> Mailer:
    """FastAPI dependency; tests override it with a recording mailer."""
    return build_mailer()
