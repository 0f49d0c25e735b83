# infrastructure/email/imap_client.py
from __future__ import annotations
import logging
import ssl
from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError
from imapclient.imapclient import SocketTimeout
from domain.errors import CloseError, MailboxConnectionError, RetrievalError
from domain.models import Credentials, RawMessage
from infrastructure.email.tls import build_ssl_context

logger = logging.getLogger(__name__)

SEEN = b"\\Seen"


class IMAPInbox:
    """
    Sesión IMAP de una ejecución de triaje.

    Uso:
        with IMAPInbox(credentials, host="imap.gmail.com") as inbox:
            for raw in inbox.fetch_unread():
                ...
                inbox.mark_handled(raw)

    Ojo: fetch_unread() descarga RFC822 (no BODY.PEEK), así que el servidor
    marca \\Seen cada correo al recuperarlo. Un correo recuperado no se vuelve
    a considerar en la siguiente ejecución aunque falle su reenvío.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        host: str,
        port: int = 993,
        folder: str = "INBOX",
        connect_timeout: float = 10,
        auth_timeout: float = 5,
        read_timeout: float = 30,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.credentials = credentials
        self.host = host
        self.port = port
        self.folder = folder
        self.connect_timeout = connect_timeout
        self.auth_timeout = auth_timeout
        self.read_timeout = read_timeout
        self.ssl_context = ssl_context or build_ssl_context(verify=True)
        self.client: IMAPClient | None = None

    def __enter__(self) -> "IMAPInbox":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.close()
        except CloseError:
            logger.exception("Error cerrando IMAP")

    # ───────── ciclo de vida ─────────
    def open(self) -> None:
        client = None
        try:
            client = IMAPClient(
                self.host,
                port=self.port,
                ssl=True,
                ssl_context=self.ssl_context,
                timeout=SocketTimeout(connect=self.connect_timeout, read=self.auth_timeout),
            )
            client.login(self.credentials.address, self.credentials.secret)
            client.socket().settimeout(self.read_timeout)
        except (IMAPClientError, OSError) as exc:
            logger.error("Fallo conectando a IMAP %s:%s como %s: %s",
                         self.host, self.port, self.credentials.address, type(exc).__name__)
            if client is not None:
                try:
                    client.logout()
                except (IMAPClientError, OSError):
                    logger.debug("Logout tras fallo de login también falló", exc_info=True)
            raise MailboxConnectionError("Could not connect to the mailbox") from exc
        self.client = client
        logger.info("IMAP conectado: %s@%s", self.credentials.address, self.host)

    def close(self) -> None:
        if self.client is None:
            return
        client, self.client = self.client, None
        try:
            client.logout()
        except (IMAPClientError, OSError) as exc:
            raise CloseError("Could not close the mailbox session") from exc
        logger.info("IMAP desconectado")

    # ───────── lectura ─────────
    def search_unseen(self, limit: int | None = None) -> list[int]:
        assert self.client
        uids = sorted(self.client.search(["UNSEEN"]))  # procesar en orden
        if limit:
            uids = uids[:limit]
        return uids

    def fetch_unread(self, limit: int | None = None) -> list[RawMessage]:
        assert self.client
        try:
            self.client.select_folder(self.folder, readonly=False)
            uids = self.search_unseen(limit=limit)
            if not uids:
                return []
            resp = self.client.fetch(uids, ["RFC822"])

            messages: list[RawMessage] = []
            for uid in uids:
                data = resp.get(uid)
                if data is None:
                    # El servidor no devolvió este UID (p.ej. borrado entre SEARCH y FETCH)
                    logger.warning("UID=%s sin respuesta en FETCH; se omite", uid)
                    continue
                messages.append(RawMessage(uid=uid, payload=data.get(b"RFC822") or b""))
        except (IMAPClientError, OSError, AttributeError, KeyError, TypeError, ValueError) as exc:
            # Respuesta FETCH malformada incluida: toda la recuperación es fatal
            logger.error("Fallo recuperando correos de %s: %s", self.folder, exc)
            raise RetrievalError("Could not retrieve unread messages") from exc
        logger.info("Recuperados %d correos no leídos de %s", len(messages), self.folder)
        return messages

    def mark_handled(self, message: RawMessage) -> None:
        assert self.client
        try:
            self.client.add_flags([message.uid], [SEEN])
        except (IMAPClientError, OSError):
            logger.warning("No se pudo marcar UID=%s como leído", message.uid, exc_info=True)
