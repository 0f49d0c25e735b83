# application/services/router.py
from __future__ import annotations
from domain.models import FALLBACK_TAG, DepartmentDirectory, normalize_label


def route(label: str, directory: DepartmentDirectory, fallback: str) -> tuple[str, str]:
    """(destino, etiqueta). Coincidencia exacta sin distinguir mayúsculas; si no, buzón de fallback."""
    key = normalize_label(label)
    dest = directory.lookup(key)
    if dest is None:
        return fallback, FALLBACK_TAG
    return dest, key
