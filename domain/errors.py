# domain/errors.py
# Taxonomía de errores del pipeline: fatales (abortan la ejecución) y de mensaje (se registran y se salta el correo)
from __future__ import annotations
from typing import Iterable


class TriageError(Exception):
    """Base de todos los errores del pipeline de triaje."""


class ValidationError(TriageError):
    def __init__(self, message: str = "Missing required fields", missing: Iterable[str] = ()) -> None:
        self.missing = tuple(missing)
        if self.missing:
            message = f"{message}: {', '.join(self.missing)}"
        super().__init__(message)


class MailboxConnectionError(TriageError):
    pass


class RetrievalError(TriageError):
    pass


class ParseError(TriageError):
    pass


class ClassificationError(TriageError):
    pass


class DeliveryError(TriageError):
    pass


class CloseError(TriageError):
    pass


FATAL_ERRORS = (MailboxConnectionError, RetrievalError)
MESSAGE_ERRORS = (ParseError, ClassificationError, DeliveryError)
