# infrastructure/email/smtp_client.py
from __future__ import annotations
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Iterable
from domain.errors import DeliveryError
from domain.models import Attachment, Credentials
from infrastructure.email.tls import build_ssl_context

logger = logging.getLogger(__name__)


def _split_type(content_type: str) -> tuple[str, str]:
    maintype, sep, subtype = (content_type or "").partition("/")
    if not sep or not maintype or not subtype:
        return "application", "octet-stream"
    return maintype.strip().lower(), subtype.split(";")[0].strip().lower()


def compose_message(
    *,
    from_address: str,
    to_address: str,
    subject: str,
    body_text: str,
    attachments: Iterable[Attachment] = (),
) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = from_address
    msg["To"] = to_address
    msg["Subject"] = subject
    msg.set_content(body_text)
    for att in attachments:
        maintype, subtype = _split_type(att.content_type)
        msg.add_attachment(att.content, maintype=maintype, subtype=subtype, filename=att.filename)
    return msg


class SMTPForwarder:
    """Una sesión SMTP autenticada por correo reenviado; no se comparte entre mensajes."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 465,
        timeout: float = 30,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.ssl_context = ssl_context or build_ssl_context(verify=True)

    def forward(
        self,
        *,
        from_address: str,
        credentials: Credentials,
        to_address: str,
        subject: str,
        body_text: str,
        attachments: Iterable[Attachment] = (),
    ) -> None:
        try:
            msg = compose_message(
                from_address=from_address,
                to_address=to_address,
                subject=subject,
                body_text=body_text,
                attachments=attachments,
            )
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=self.ssl_context) as smtp:
                smtp.login(credentials.address, credentials.secret)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            raise DeliveryError(f"Delivery to {to_address} failed: {type(exc).__name__}") from exc
        logger.info("Reenviado '%s' -> %s", subject, to_address)
