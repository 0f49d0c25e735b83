# config/settings.py
from __future__ import annotations
from dataclasses import dataclass
import os
from dotenv import load_dotenv

load_dotenv()

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


def env_flag(name: str, default: bool = True) -> bool:
    """
    Booleano de entorno. Solo acepta valores reconocidos; cualquier otro es un error
    de configuración (no se interpreta como False).
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name}: valor no reconocido {raw!r} (usa true/false)")


@dataclass(frozen=True)
class Settings:
    # IMAP (buzón de entrada a triar)
    IMAP_HOST: str = os.getenv("IMAP_HOST", "imap.gmail.com")
    IMAP_PORT: int = int(os.getenv("IMAP_PORT", 993))
    IMAP_FOLDER_INBOX: str = os.getenv("IMAP_FOLDER_INBOX", "INBOX")
    IMAP_CONNECT_TIMEOUT: float = float(os.getenv("IMAP_CONNECT_TIMEOUT", 10))
    IMAP_AUTH_TIMEOUT: float = float(os.getenv("IMAP_AUTH_TIMEOUT", 5))
    IMAP_READ_TIMEOUT: float = float(os.getenv("IMAP_READ_TIMEOUT", 30))

    # SMTP (reenvío, autenticado como el mismo buzón)
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", 465))
    SMTP_TIMEOUT: float = float(os.getenv("SMTP_TIMEOUT", 30))

    # Verificación de certificados: desactivarla solo en entornos controlados
    TLS_VERIFY: bool = env_flag("TLS_VERIFY", default=True)

    # Clasificador (Ollama)
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3")
    CLASSIFY_TIMEOUT: float = float(os.getenv("CLASSIFY_TIMEOUT", 60))

    # Petición de triaje (lo que normalmente rellena el asistente)
    TRIAGE_EMAIL: str = os.getenv("TRIAGE_EMAIL", "")
    TRIAGE_PASSWORD: str = os.getenv("TRIAGE_PASSWORD", "")
    TRIAGE_FALLBACK_EMAIL: str = os.getenv("TRIAGE_FALLBACK_EMAIL", "")
    TRIAGE_DEPARTMENTS: str = os.getenv("TRIAGE_DEPARTMENTS", "")  # p.ej.: sales:sales@co.com,support:support@co.com

    # Polling (0 = una sola ejecución)
    POLL_INTERVAL: int = int(os.getenv("POLL_INTERVAL", 0))
    MAX_MAILS_PER_LOOP: int = int(os.getenv("MAX_MAILS_PER_LOOP", 0))

    # ───────── helpers ─────────
    def department_list(self) -> dict[str, str]:
        """
        "sales:sales@co.com, support:support@co.com" -> {"sales": "sales@co.com", ...}
        Las entradas sin ':' se ignoran.
        """
        out: dict[str, str] = {}
        for item in (self.TRIAGE_DEPARTMENTS or "").split(","):
            name, sep, address = item.partition(":")
            if not sep or not name.strip() or not address.strip():
                continue
            out[name.strip().lower()] = address.strip()
        return out

    def request_payload(self) -> dict:
        return {
            "email": self.TRIAGE_EMAIL,
            "password": self.TRIAGE_PASSWORD,
            "fallbackEmail": self.TRIAGE_FALLBACK_EMAIL,
            "departmentList": self.department_list() if self.TRIAGE_DEPARTMENTS else None,
        }

    def max_messages(self) -> int | None:
        return self.MAX_MAILS_PER_LOOP if self.MAX_MAILS_PER_LOOP > 0 else None
