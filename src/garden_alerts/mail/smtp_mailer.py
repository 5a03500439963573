"""SMTP mail relay.

Supports implicit SSL (465) or STARTTLS (587). smtplib is blocking, so each
operation runs in a worker thread.
"""
import asyncio
import smtplib
import ssl
from email.message import EmailMessage

from garden_alerts.exceptions import MailRelayError
from garden_alerts.mail.mailer_abc import MailerABC
from garden_alerts.schemas import ComposedMessage, SendResult


class SmtpMailer(MailerABC):
    """MailerABC over a plain SMTP login."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        *,
        use_ssl: bool = True,
        timeout: float = 20.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._use_ssl = use_ssl
        self._timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self._use_ssl:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                self._host, self._port, context=context, timeout=self._timeout
            )
        else:
            smtp = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            if not self._use_ssl:
                smtp.ehlo()
                smtp.starttls(context=context)
            smtp.login(self._username, self._password)
        except Exception:
            smtp.close()
            raise
        return smtp

    def _build(self, recipient: str, message: ComposedMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self._sender
        msg["To"] = recipient
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")
        return msg

    def _send_sync(self, msg: EmailMessage) -> dict:
        with self._connect() as smtp:
            return smtp.send_message(msg)

    def _verify_sync(self) -> None:
        with self._connect() as smtp:
            smtp.noop()

    async def send(self, recipient: str, message: ComposedMessage) -> SendResult:
        """Send one message; raises MailRelayError on any SMTP or socket error."""
        msg = self._build(recipient, message)
        try:
            refused = await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailRelayError(str(exc) or type(exc).__name__) from exc
        if recipient in refused:
            code, reply = refused[recipient]
            raise MailRelayError(f"{code} {reply!r}")
        return SendResult(recipient=recipient, success=True, detail="accepted by relay")

    async def verify(self) -> None:
        """Connect and log in once."""
        try:
            await asyncio.to_thread(self._verify_sync)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailRelayError(f"SMTP connection error: {exc}") from exc
