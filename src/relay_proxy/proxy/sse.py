"""
Écriture de réponses Server-Sent Events vers le client.
"""
import json
import logging
from typing import Any

from ..core.constants import SSE_DONE, SSE_RESPONSE_HEADERS
from ..core.models import SSEMessage
from .transport import SSETransport

logger = logging.getLogger(__name__)


def serialize_sse_message(message: SSEMessage) -> str:
    """
    Sérialise un message au format SSE.

    Ordre: event, id, retry (si présents), puis une ligne `data:` par ligne
    du payload, terminé par une ligne vide.
    """
    lines = []

    if message.event:
        lines.append(f"event: {message.event}")
    if message.id:
        lines.append(f"id: {message.id}")
    if message.retry is not None:
        lines.append(f"retry: {message.retry}")

    data = message.data if isinstance(message.data, str) else json.dumps(message.data, ensure_ascii=False)
    for line in data.split("\n"):
        lines.append(f"data: {line}")

    return "\n".join(lines) + "\n\n"


class SSEWriter:
    """
    Connexion SSE sortante vers un client.

    États: ouvert puis fermé (transition unique et définitive). La fermeture
    survient sur `close()`, sur un refus d'écriture du transport ou sur la
    déconnexion du client signalée par le transport.
    """

    def __init__(self, transport: SSETransport, status_code: int = 200):
        self._transport = transport
        self._closed = False

        transport.write_head(status_code, SSE_RESPONSE_HEADERS)
        transport.on_close(self._on_transport_close)

    def _on_transport_close(self) -> None:
        self._closed = True

    def _send(self, payload: str) -> bool:
        if self._closed:
            return False
        try:
            accepted = self._transport.write(payload.encode("utf-8"))
        except (OSError, RuntimeError) as e:
            logger.debug("[SSE] Écriture refusée par le transport: %s", e)
            accepted = False
        if not accepted:
            self._closed = True
            return False
        return True

    def write(self, message: SSEMessage) -> bool:
        """Écrit un message; False si la connexion est (ou devient) fermée."""
        if self._closed:
            return False
        return self._send(serialize_sse_message(message))

    def write_data(self, data: Any) -> bool:
        """Raccourci pour un message ne contenant que des données."""
        return self.write(SSEMessage(data=data))

    def comment(self, text: str) -> bool:
        """Écrit un commentaire SSE (keep-alive)."""
        return self._send(f": {text}\n\n")

    def close(self) -> None:
        """Termine le flux par `data: [DONE]`; idempotent."""
        if self._closed:
            return
        self.write(SSEMessage(data=SSE_DONE))
        self._closed = True
        self._transport.end()

    def is_open(self) -> bool:
        return not self._closed
