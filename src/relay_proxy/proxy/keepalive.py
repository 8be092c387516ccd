"""
Keep-alive des flux SSE longs (commentaire `: ping` périodique).
"""
import asyncio
import logging
from typing import Callable, Optional

from ..core.constants import DEFAULT_KEEPALIVE_INTERVAL_MS, KEEPALIVE_COMMENT
from .sse import SSEWriter

logger = logging.getLogger(__name__)


def start_keep_alive(
    writer: SSEWriter,
    interval_ms: int = DEFAULT_KEEPALIVE_INTERVAL_MS,
    loop: Optional[asyncio.AbstractEventLoop] = None
) -> Callable[[], None]:
    """
    Planifie un commentaire keep-alive toutes les `interval_ms` millisecondes.

    Le planning s'arrête seul dès que le writer est fermé. Chaque tick est un
    callback différé (loop.call_later), jamais une attente bloquante.

    Args:
        writer: Connexion SSE cible
        interval_ms: Intervalle entre deux pings
        loop: Boucle asyncio (par défaut, la boucle courante)

    Returns:
        Fonction d'annulation (idempotente)
    """
    loop = loop or asyncio.get_running_loop()
    interval = interval_ms / 1000
    handle: Optional[asyncio.TimerHandle] = None
    cancelled = False

    def tick() -> None:
        nonlocal handle
        handle = None
        if cancelled or not writer.is_open():
            return
        try:
            writer.comment(KEEPALIVE_COMMENT)
        except Exception:
            logger.exception("[KEEPALIVE] Échec d'écriture du ping")
            return
        handle = loop.call_later(interval, tick)

    def cancel() -> None:
        nonlocal cancelled, handle
        cancelled = True
        if handle is not None:
            handle.cancel()
            handle = None

    handle = loop.call_later(interval, tick)
    return cancel
