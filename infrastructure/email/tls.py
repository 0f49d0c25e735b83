# infrastructure/email/tls.py
from __future__ import annotations
import logging
import ssl

logger = logging.getLogger(__name__)


def build_ssl_context(verify: bool = True) -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    if not verify:
        logger.warning("Verificación TLS DESACTIVADA (TLS_VERIFY=false)")
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx
