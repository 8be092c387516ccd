"""
Relais streaming provider → client avec gestion d'erreurs robuste.

Contraintes:
- Le provider peut couper le stream (ReadError) ou envoyer des frames invalides
- Le client peut partir à tout moment: on arrête alors de lire l'upstream
- Les chunks reçus avant une erreur restent disponibles pour l'agrégation
- Le flux client se termine toujours par `data: [DONE]`
"""
import codecs
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from ..core.constants import NO_BODY_STATUS_CODES, SSE_DATA_PREFIX, SSE_DONE
from ..core.exceptions import StreamingError
from ..core.models import RelayOutcome, SSEMessage
from .client import create_upstream_client
from .sse import SSEWriter

logger = logging.getLogger(__name__)


# Types d'erreurs streaming connus
STREAMING_ERROR_TYPES = {
    "upstream_rejected": "Le provider a rejeté la requête",
    "no_body": "Réponse provider sans corps lisible",
    "transport_failure": "Erreur de lecture du stream provider",
}


@dataclass
class RelayCallbacks:
    """Callbacks optionnels appelés pendant le relais."""
    on_chunk: Optional[Callable[[Any], None]] = None
    on_complete: Optional[Callable[[List[Any]], None]] = None
    on_error: Optional[Callable[[BaseException], None]] = None


def extract_data_payload(line: str) -> Optional[str]:
    """
    Retourne le payload d'une ligne `data:` (None pour toute autre ligne).

    Un `\\r` final et un espace après le préfixe sont retirés.
    """
    if line.endswith("\r"):
        line = line[:-1]
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    payload = line[len(SSE_DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload


def _build_upstream_headers(headers: Mapping[str, str]) -> httpx.Headers:
    upstream_headers = httpx.Headers(headers)
    upstream_headers["Accept"] = "text/event-stream"
    if "content-type" not in upstream_headers:
        upstream_headers["Content-Type"] = "application/json"
    return upstream_headers


def _notify_error(callbacks: RelayCallbacks, error: BaseException) -> None:
    if callbacks.on_error is None:
        return
    try:
        callbacks.on_error(error)
    except Exception:
        logger.exception("[STREAM] Erreur dans le callback on_error")


def _forward_line(
    line: str,
    chunks: List[Any],
    writer: SSEWriter,
    callbacks: RelayCallbacks
) -> bool:
    """
    Traite une ligne complète du stream upstream.

    Returns:
        False si le client s'est déconnecté pendant le forward, True sinon
    """
    payload = extract_data_payload(line)
    if not payload or payload == SSE_DONE:
        return True

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("[STREAM] Frame JSON invalide ignorée: %s", payload[:200])
        return True

    chunks.append(parsed)
    if callbacks.on_chunk is not None:
        callbacks.on_chunk(parsed)

    return writer.write(SSEMessage(data=parsed))


async def _read_error_detail(response: httpx.Response) -> str:
    try:
        body = await response.aread()
    except httpx.HTTPError:
        return ""
    return body.decode("utf-8", errors="ignore")[:500]


async def stream_provider_response(
    provider_url: str,
    request: Any,
    headers: Mapping[str, str],
    writer: SSEWriter,
    callbacks: Optional[RelayCallbacks] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.monotonic
) -> RelayOutcome:
    """
    Relaie une réponse SSE provider vers le client et collecte les chunks.

    Args:
        provider_url: Endpoint chat-completions du provider
        request: Corps de requête (sérialisé en JSON)
        headers: Headers fournis par l'appelant (Accept est forcé)
        writer: Connexion SSE vers le client, détenue par ce seul appel
        callbacks: on_chunk / on_complete / on_error
        client: Client HTTPX à utiliser (sinon un client éphémère est créé)
        clock: Horloge en secondes (monotone) pour le calcul du TTFT

    Returns:
        RelayOutcome(success, chunks, ttft_ms)

    Raises:
        Aucune: toutes les erreurs sont loggées et reflétées dans le résultat
    """
    callbacks = callbacks or RelayCallbacks()
    chunks: List[Any] = []
    ttft_ms: Optional[float] = None
    start_time = clock()

    owns_client = client is None
    if owns_client:
        client = create_upstream_client()

    try:
        body = json.dumps(request, ensure_ascii=False)
        async with client.stream(
            "POST",
            provider_url,
            content=body,
            headers=_build_upstream_headers(headers)
        ) as response:
            status = response.status_code

            if not response.is_success:
                detail = await _read_error_detail(response)
                error = StreamingError(
                    f"Provider returned {status}",
                    error_type="upstream_rejected",
                    status=status,
                    details={"body": detail} if detail else None
                )
                logger.warning(
                    "[STREAM] %s (%s): %s",
                    STREAMING_ERROR_TYPES["upstream_rejected"], status, detail[:200]
                )
                writer.write(SSEMessage(event="error", data=streaming_error_payload(error)))
                _notify_error(callbacks, error)
                return RelayOutcome(success=False, chunks=[])

            if status in NO_BODY_STATUS_CODES:
                error = StreamingError(
                    "No response body", error_type="no_body", status=status
                )
                logger.warning("[STREAM] %s (%s)", STREAMING_ERROR_TYPES["no_body"], status)
                _notify_error(callbacks, error)
                return RelayOutcome(success=False, chunks=[])

            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            buffer = ""

            async for raw in response.aiter_bytes():
                if ttft_ms is None:
                    ttft_ms = (clock() - start_time) * 1000

                buffer += decoder.decode(raw)
                *lines, buffer = buffer.split("\n")

                for line in lines:
                    if not _forward_line(line, chunks, writer, callbacks):
                        logger.info(
                            "[STREAM] Client déconnecté après %d chunk(s), arrêt de la lecture",
                            len(chunks)
                        )
                        return RelayOutcome(success=False, chunks=chunks, ttft_ms=ttft_ms)

            buffer += decoder.decode(b"", final=True)
            if buffer and not _forward_line(buffer, chunks, writer, callbacks):
                return RelayOutcome(success=False, chunks=chunks, ttft_ms=ttft_ms)

        if callbacks.on_complete is not None:
            callbacks.on_complete(chunks)

        logger.debug(
            "[STREAM] Stream terminé: %d chunk(s), ttft=%s ms",
            len(chunks), f"{ttft_ms:.0f}" if ttft_ms is not None else "-"
        )
        return RelayOutcome(success=True, chunks=chunks, ttft_ms=ttft_ms)

    except Exception as e:
        _log_streaming_error(e, provider_url, len(chunks), clock() - start_time)
        _notify_error(callbacks, e)
        if writer.is_open():
            writer.write(SSEMessage(event="error", data=streaming_error_payload(e)))
        return RelayOutcome(success=False, chunks=chunks, ttft_ms=ttft_ms)

    finally:
        writer.close()
        if owns_client:
            await client.aclose()


def _log_streaming_error(
    error: BaseException,
    provider_url: str,
    chunks_received: int,
    duration: float
) -> None:
    """Log structuré d'une erreur de transport pendant le relais."""
    logger.warning(
        "[STREAM] %s: %s | url=%s chunks=%d durée=%.2fs | %s",
        STREAMING_ERROR_TYPES["transport_failure"],
        type(error).__name__,
        provider_url,
        chunks_received,
        duration,
        str(error)[:200]
    )


def streaming_error_payload(error: BaseException) -> Dict[str, Any]:
    """Payload d'erreur exposé au client pour une exception quelconque."""
    if isinstance(error, StreamingError):
        return {"error": {"message": error.message, "status": error.status}}
    return {"error": {"message": str(error) or STREAMING_ERROR_TYPES["transport_failure"]}}
