# interface_adapters/controllers/triage_controller.py
from __future__ import annotations
import logging
import threading
from functools import partial
from typing import Any, Mapping

from config.settings import Settings
from application.services.classifier import CategorizationService, DepartmentClassifier
from application.use_cases.triage_inbox_usecase import TriageInboxUseCase
from domain.errors import FATAL_ERRORS
from domain.models import PipelineRequest
from infrastructure.email.imap_client import IMAPInbox
from infrastructure.email.smtp_client import SMTPForwarder
from infrastructure.email.tls import build_ssl_context
from infrastructure.llm.ollama_client import OllamaChatClient

logger = logging.getLogger(__name__)


class TriageController:
    def __init__(self, settings: Settings, *, categorizer: CategorizationService | None = None) -> None:
        self.settings = settings
        ssl_ctx = build_ssl_context(verify=settings.TLS_VERIFY)
        categorizer = categorizer or OllamaChatClient(
            base_url=settings.OLLAMA_BASE_URL,
            model=settings.OLLAMA_MODEL,
            timeout=settings.CLASSIFY_TIMEOUT,
        )
        self.uc = TriageInboxUseCase(
            session_factory=partial(
                IMAPInbox,
                host=settings.IMAP_HOST,
                port=settings.IMAP_PORT,
                folder=settings.IMAP_FOLDER_INBOX,
                connect_timeout=settings.IMAP_CONNECT_TIMEOUT,
                auth_timeout=settings.IMAP_AUTH_TIMEOUT,
                read_timeout=settings.IMAP_READ_TIMEOUT,
                ssl_context=ssl_ctx,
            ),
            classifier=DepartmentClassifier(categorizer),
            forwarder=SMTPForwarder(
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                timeout=settings.SMTP_TIMEOUT,
                ssl_context=ssl_ctx,
            ),
            max_messages=settings.max_messages(),
        )

    def run_pipeline(self, payload: Mapping[str, Any], cancel: threading.Event | None = None) -> dict[str, Any]:
        """
        Punto de entrada del disparador (asistente / HTTP):
            {email, password, fallbackEmail, departmentList} -> {message, forwarded, ...}
        Lanza ValidationError (antes de tocar la red) o un error fatal con mensaje genérico.
        """
        request = PipelineRequest.from_payload(payload)
        logger.info("Triaje solicitado para %s (fallback=%s, departamentos=%s)",
                    request.source_address, request.fallback_address, sorted(request.directory.labels()))
        try:
            summary = self.uc.run(request, cancel=cancel)
        except FATAL_ERRORS as exc:
            logger.error("Triaje abortado para %s: %s", request.source_address, exc)
            raise
        return summary.as_dict()

    def run_once(self) -> dict[str, Any]:
        return self.run_pipeline(self.settings.request_payload())
