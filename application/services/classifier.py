# application/services/classifier.py
from __future__ import annotations
import logging
from typing import Iterable, Protocol
from domain.errors import ClassificationError
from domain.models import ParsedMessage, normalize_label

logger = logging.getLogger(__name__)


class CategorizationService(Protocol):
    def complete(self, prompt: str) -> str: ...


def build_prompt(message: ParsedMessage, labels: Iterable[str]) -> str:
    departments = ", ".join(sorted(labels))
    return (
        f"Categorize the following email into one of these departments: {departments}.\n\n"
        f"Subject: {message.subject}\n\n"
        f"{message.body_text}\n\n"
        "Reply only with the department name."
    )


class DepartmentClassifier:
    """Una llamada al servicio de categorización por correo; sin caché."""

    def __init__(self, service: CategorizationService) -> None:
        self.service = service

    def classify(self, message: ParsedMessage, labels: Iterable[str]) -> str:
        prompt = build_prompt(message, labels)
        try:
            reply = self.service.complete(prompt)
        except ClassificationError:
            raise
        except Exception as exc:
            raise ClassificationError(f"Categorization failed: {type(exc).__name__}") from exc
        label = normalize_label(reply)
        logger.info("Clasificado '%s' -> '%s'", message.subject, label)
        return label
