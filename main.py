# main.py
# Punto de entrada: triaje del buzón -> reenvío por departamento (una vez o en bucle de polling)
from __future__ import annotations
import logging
import time
from config.settings import Settings
from domain.errors import ValidationError
from interface_adapters.controllers.triage_controller import TriageController

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings()
    controller = TriageController(settings=settings)

    logger.info("=== Inbox Triage ===")
    logger.info("IMAP host=%s inbox=%s SMTP host=%s", settings.IMAP_HOST, settings.IMAP_FOLDER_INBOX, settings.SMTP_HOST)
    while True:
        try:
            summary = controller.run_once()
            for item in summary["forwarded"]:
                logger.info("  %s -> %s [%s]", item["subject"], item["to"], item["department"])
        except ValidationError:
            logger.exception("Configuración de triaje incompleta")
            raise SystemExit(2)
        except Exception:
            logger.exception("Error en ciclo de triaje")
            if settings.POLL_INTERVAL <= 0:
                raise SystemExit(1)
        if settings.POLL_INTERVAL <= 0:
            break
        time.sleep(settings.POLL_INTERVAL)


if __name__ == "__main__":
    main()
