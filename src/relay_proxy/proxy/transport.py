"""
Transports HTTP utilisés par le SSEWriter.

Capacités minimales attendues de la couche HTTP hôte: en-têtes écrits une
seule fois puis flux d'octets, `write(bytes) -> bool`, `end()` et une
notification de déconnexion du client.
"""
import asyncio
import logging
from typing import AsyncIterator, Callable, Dict, List, Mapping, Optional, Protocol

from ..core.constants import DEFAULT_MAX_BUFFERED_BYTES

logger = logging.getLogger(__name__)

CloseCallback = Callable[[], None]


class SSETransport(Protocol):
    """Contrat du transport sous-jacent d'une connexion SSE."""

    def write_head(self, status_code: int, headers: Mapping[str, str]) -> None:
        ...

    def write(self, data: bytes) -> bool:
        ...

    def end(self) -> None:
        ...

    def on_close(self, callback: CloseCallback) -> None:
        ...


class QueueTransport:
    """
    Transport adossé à une asyncio.Queue, consommé par un StreamingResponse.

    Le relais écrit sans bloquer; `iter_body()` fournit les octets au serveur
    ASGI. Quand le serveur ferme l'itérateur (client parti), les callbacks de
    fermeture sont appelés.

    Les octets non consommés sont plafonnés à `max_buffered_bytes`: au-delà,
    le client est traité comme déconnecté et `write()` renvoie False.
    """

    def __init__(self, max_buffered_bytes: int = DEFAULT_MAX_BUFFERED_BYTES):
        self.max_buffered_bytes = max_buffered_bytes
        self._buffered = 0
        self.status_code: Optional[int] = None
        self.headers: Dict[str, str] = {}
        self._queue: "asyncio.Queue[Optional[bytes]]" = asyncio.Queue()
        self._ended = False
        self._disconnected = False
        self._close_callbacks: List[CloseCallback] = []

    @property
    def headers_sent(self) -> bool:
        return self.status_code is not None

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    def write_head(self, status_code: int, headers: Mapping[str, str]) -> None:
        if self.headers_sent:
            raise RuntimeError("Les en-têtes ont déjà été envoyés")
        self.status_code = status_code
        self.headers = dict(headers)

    def write(self, data: bytes) -> bool:
        if self._ended or self._disconnected:
            return False
        if self._buffered + len(data) > self.max_buffered_bytes:
            logger.warning(
                "[TRANSPORT] Client trop lent (%d octets en attente), fermeture du flux",
                self._buffered
            )
            self._disconnected = True
            self._queue.put_nowait(None)
            self._fire_close()
            return False
        self._buffered += len(data)
        self._queue.put_nowait(data)
        return True

    def end(self) -> None:
        if self._ended:
            return
        self._ended = True
        self._queue.put_nowait(None)

    def on_close(self, callback: CloseCallback) -> None:
        self._close_callbacks.append(callback)

    def _fire_close(self) -> None:
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("[TRANSPORT] Erreur dans un callback de fermeture")

    async def iter_body(self) -> AsyncIterator[bytes]:
        """Itère sur les octets écrits jusqu'à `end()`."""
        try:
            while True:
                chunk = await self._queue.get()
                if chunk is None:
                    break
                self._buffered -= len(chunk)
                yield chunk
        finally:
            if not self._ended:
                self._disconnected = True
                logger.info("[TRANSPORT] Client déconnecté avant la fin du flux")
            self._fire_close()
