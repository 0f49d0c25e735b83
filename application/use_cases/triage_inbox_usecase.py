# application/use_cases/triage_inbox_usecase.py
from __future__ import annotations
import logging
import threading
from typing import Callable, ContextManager, Iterable, Protocol, Sequence

from domain.errors import FATAL_ERRORS, MESSAGE_ERRORS
from domain.models import (
    FALLBACK_TAG,
    Attachment,
    ClassificationResult,
    Credentials,
    ForwardOutcome,
    ParsedMessage,
    PipelineRequest,
    RawMessage,
    RunState,
    RunSummary,
)
from application.services.message_decoder import decode_message
from application.services.router import route

logger = logging.getLogger(__name__)

RESULT_MESSAGE = "All emails processed and forwarded"


class MailboxSession(Protocol):
    def fetch_unread(self, limit: int | None = None) -> Sequence[RawMessage]: ...
    def mark_handled(self, message: RawMessage) -> None: ...


class Classifier(Protocol):
    def classify(self, message: ParsedMessage, labels: Iterable[str]) -> str: ...


class Forwarder(Protocol):
    def forward(
        self,
        *,
        from_address: str,
        credentials: Credentials,
        to_address: str,
        subject: str,
        body_text: str,
        attachments: Iterable[Attachment] = (),
    ) -> None: ...


class TriageInboxUseCase:
    """
    Una ejecución de triaje:
        abrir sesión -> recuperar no leídos -> por correo: decodificar, clasificar,
        enrutar, reenviar -> marcar tratado -> cerrar sesión.

    Los errores de un correo (ParseError, ClassificationError, DeliveryError) se
    registran y el correo se omite del resumen; nunca abortan la ejecución.
    Solo los fallos al conectar o recuperar (FATAL_ERRORS) llegan al llamante.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[Credentials], ContextManager[MailboxSession]],
        classifier: Classifier,
        forwarder: Forwarder,
        decoder: Callable[[RawMessage], ParsedMessage] = decode_message,
        max_messages: int | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.classifier = classifier
        self.forwarder = forwarder
        self.decoder = decoder
        self.max_messages = max_messages

    def _process_one(self, raw: RawMessage, request: PipelineRequest) -> ForwardOutcome | None:
        try:
            parsed = self.decoder(raw)
            label = self.classifier.classify(parsed, request.directory.labels())
            to_addr, tag = route(label, request.directory, request.fallback_address)
            result = ClassificationResult(label=label, matched_known_department=tag != FALLBACK_TAG)
            if not result.matched_known_department:
                logger.info("UID=%s: etiqueta '%s' desconocida; se envía al buzón de reserva", raw.uid, result.label)
            self.forwarder.forward(
                from_address=request.source_address,
                credentials=request.credentials,
                to_address=to_addr,
                subject=parsed.subject,
                body_text=parsed.body_text,
                attachments=parsed.attachments,
            )
        except MESSAGE_ERRORS as exc:
            logger.error("Correo UID=%s omitido (%s): %s", raw.uid, type(exc).__name__, exc)
            return None
        except Exception:
            logger.exception("Error inesperado procesando UID=%s", raw.uid)
            return None
        return ForwardOutcome(subject=parsed.subject, to=to_addr, department=tag)

    def run(self, request: PipelineRequest, cancel: threading.Event | None = None) -> RunSummary:
        # El estado vive solo en esta llamada: el caso de uso se comparte entre ejecuciones
        forwarded: list[ForwardOutcome] = []
        retrieved = 0
        skipped = 0
        state = RunState.IDLE

        def advance(new: RunState) -> RunState:
            logger.debug("Estado de la ejecución: %s -> %s", state.value, new.value)
            return new

        state = advance(RunState.SESSION_OPENING)
        try:
            with self.session_factory(request.credentials) as inbox:
                state = advance(RunState.RETRIEVING)
                messages = inbox.fetch_unread(limit=self.max_messages)
                retrieved = len(messages)
                if not messages:
                    logger.info("Sin correos nuevos.")
                else:
                    logger.info("Procesando %d correos…", retrieved)

                state = advance(RunState.PROCESSING_MESSAGES)
                for raw in messages:
                    if cancel is not None and cancel.is_set():
                        logger.info("Ejecución cancelada; UID=%s sin procesar", raw.uid)
                        skipped += 1
                    else:
                        outcome = self._process_one(raw, request)
                        if outcome is not None:
                            forwarded.append(outcome)
                    # ya recuperado => ya consumido, haya o no reenvío
                    inbox.mark_handled(raw)

                state = advance(RunState.CLOSING)
        except FATAL_ERRORS:
            advance(RunState.FAILED)
            raise

        state = advance(RunState.DONE)
        summary = RunSummary(
            result_message=RESULT_MESSAGE,
            forwarded=tuple(forwarded),
            retrieved=retrieved,
            skipped=skipped,
            state=state,
        )
        logger.info("Triaje terminado: %d reenviados, %d fallidos", len(summary.forwarded), summary.failed)
        return summary
