# domain/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from domain.errors import ValidationError

FALLBACK_TAG = "Fallback"
NO_SUBJECT = "No Subject"
NO_CONTENT = "No content"


def normalize_label(value: str) -> str:
    return (value or "").strip().lower()


@dataclass(frozen=True)
class Credentials:
    address: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes = field(repr=False)
    content_type: str


@dataclass(frozen=True)
class RawMessage:
    uid: int
    payload: bytes = field(repr=False)


@dataclass(frozen=True)
class ParsedMessage:
    subject: str
    body_text: str
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class ClassificationResult:
    label: str
    matched_known_department: bool


@dataclass(frozen=True)
class ForwardOutcome:
    subject: str
    to: str
    department: str

    def as_dict(self) -> dict[str, str]:
        return {"subject": self.subject, "to": self.to, "department": self.department}


class RunState(str, Enum):
    IDLE = "idle"
    SESSION_OPENING = "session_opening"
    RETRIEVING = "retrieving"
    PROCESSING_MESSAGES = "processing_messages"
    CLOSING = "closing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RunSummary:
    result_message: str
    forwarded: tuple[ForwardOutcome, ...] = ()
    retrieved: int = 0
    skipped: int = 0  # no procesados por cancelación
    state: RunState = RunState.DONE

    @property
    def failed(self) -> int:
        return self.retrieved - self.skipped - len(self.forwarded)

    def as_dict(self) -> dict[str, Any]:
        return {
            "message": self.result_message,
            "forwarded": [o.as_dict() for o in self.forwarded],
            "retrieved": self.retrieved,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class DepartmentDirectory:
    """
    Departamento (normalizado en minúsculas) -> buzón destino.
    Solo lectura durante toda la ejecución.
    """
    entries: Mapping[str, str]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "DepartmentDirectory":
        if not isinstance(raw, Mapping):
            raise ValidationError("departmentList must be a mapping of department -> address")
        normalized: dict[str, str] = {}
        for name, address in raw.items():
            key = normalize_label(name) if isinstance(name, str) else ""
            if not key:
                raise ValidationError(f"Invalid department name: {name!r}")
            if not isinstance(address, str) or not address.strip():
                raise ValidationError(f"Invalid address for department '{key}'")
            if key in normalized:
                raise ValidationError(f"Duplicate department after normalization: '{key}'")
            normalized[key] = address.strip()
        return cls(entries=MappingProxyType(normalized))

    def labels(self) -> frozenset[str]:
        return frozenset(self.entries)

    def lookup(self, label: str) -> str | None:
        return self.entries.get(normalize_label(label))

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and normalize_label(label) in self.entries

    def __len__(self) -> int:
        return len(self.entries)


# Nombres de campo tal y como los envía el asistente de configuración
REQUEST_FIELDS = ("email", "password", "fallbackEmail", "departmentList")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class PipelineRequest:
    source_address: str
    source_secret: str = field(repr=False)
    fallback_address: str
    directory: DepartmentDirectory

    @property
    def credentials(self) -> Credentials:
        return Credentials(address=self.source_address, secret=self.source_secret)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "PipelineRequest":
        payload = payload or {}
        missing = [f for f in REQUEST_FIELDS if _is_blank(payload.get(f))]
        if missing:
            raise ValidationError(missing=missing)
        return cls(
            source_address=str(payload["email"]).strip(),
            source_secret=str(payload["password"]),
            fallback_address=str(payload["fallbackEmail"]).strip(),
            directory=DepartmentDirectory.from_mapping(payload["departmentList"]),
        )
