# application/services/message_decoder.py
from __future__ import annotations
import pyzmail
from domain.errors import ParseError
from domain.models import NO_CONTENT, NO_SUBJECT, Attachment, ParsedMessage, RawMessage


def _part_text(part) -> str:
    payload = part.get_payload() or b""
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode(part.charset or "utf-8", errors="replace")
    except LookupError:
        # charset desconocido
        return payload.decode("utf-8", errors="replace")


def decode_message(raw: RawMessage) -> ParsedMessage:
    """
    RFC822 -> ParsedMessage (asunto, mejor cuerpo disponible, adjuntos).
    Cuerpo: texto plano > HTML > "No content". Sin efectos secundarios.
    """
    if not raw.payload:
        raise ParseError(f"UID={raw.uid}: empty message payload")
    try:
        msg = pyzmail.PyzMessage.factory(raw.payload)

        subject = (msg.get_subject() or "").replace("\r", "").replace("\n", "").strip()

        body = ""
        if msg.text_part is not None:
            body = _part_text(msg.text_part)
        if not body.strip() and msg.html_part is not None:
            body = _part_text(msg.html_part)

        atts: list[Attachment] = []
        for part in msg.mailparts:
            if part.is_body:
                continue
            payload = part.get_payload()
            if payload is None:
                continue
            if isinstance(payload, str):
                payload = payload.encode(part.charset or "utf-8")
            atts.append(Attachment(
                filename=part.filename or "attachment",
                content=payload,
                content_type=part.type or "application/octet-stream",
            ))
    except Exception as exc:
        raise ParseError(f"UID={raw.uid}: could not parse message ({type(exc).__name__})") from exc

    return ParsedMessage(
        subject=subject or NO_SUBJECT,
        body_text=body if body.strip() else NO_CONTENT,
        attachments=tuple(atts),
    )
