"""
Route chat-completions: routing par complexité puis relais vers le provider.

Streaming: le relais tourne dans une tâche de fond qui écrit dans un
QueueTransport; le StreamingResponse consomme ce transport. Quand le relais
se termine, la réponse est agrégée et rapportée au mesh.
"""
import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional, Sequence

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from ...core.constants import COMPLEXITY_HEADER
from ...core.exceptions import ProviderError
from ...core.models import ConversationMessage, RelayOutcome, Usage
from ...proxy.aggregate import aggregate_streaming_response, extract_model_from_response, extract_usage_from_response
from ...proxy.keepalive import start_keep_alive
from ...proxy.router import UpstreamTarget, build_upstream_body, build_upstream_headers, resolve_target
from ...proxy.sse import SSEWriter
from ...proxy.stream import stream_provider_response
from ...proxy.transport import QueueTransport
from ...routing.tiers import RoutingDecision, select_model
from ...services.mesh import CaptureParams, MeshHandle, safe_capture

logger = logging.getLogger(__name__)

router = APIRouter()

CAPTURE_TOOL_NAME = "chat_completion"


def _error_response(
    message: str,
    status_code: int,
    error_type: str,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    error: Dict[str, Any] = {"message": message, "type": error_type}
    if details:
        error["details"] = details
    return JSONResponse(content={"error": error}, status_code=status_code)


def _extract_system(body: Dict[str, Any], messages: Sequence[Any]) -> Optional[str]:
    """Prompt système: champ `system` ou messages de rôle system."""
    system = body.get("system")
    if isinstance(system, str):
        return system
    parts = [
        message.text()
        for message in map(ConversationMessage.from_dict, messages)
        if message.role == "system"
    ]
    return "\n".join(part for part in parts if part) or None


def _capture(
    mesh: MeshHandle,
    target: UpstreamTarget,
    decision: RoutingDecision,
    success: bool,
    started: float,
    usage: Optional[Usage],
    model: Optional[str] = None,
    error_code: Optional[str] = None
) -> None:
    safe_capture(mesh, CaptureParams(
        tool_name=CAPTURE_TOOL_NAME,
        model=model or target.model.model,
        provider=target.provider.key,
        success=success,
        latency_ms=(time.monotonic() - started) * 1000,
        input_tokens=usage.prompt_tokens if usage else 0,
        output_tokens=usage.completion_tokens if usage else 0,
        task_type=decision.complexity.value if decision.complexity else None,
        error_code=error_code
    ))


@router.post("/chat/completions")
async def chat_completions(request: Request):
    """
    Proxy chat-completions vers le provider du modèle demandé.

    - modèle absent ou "auto": choix par complexité (si activé)
    - stream=true: relais SSE avec keep-alive
    - sinon: forward JSON, erreurs provider renvoyées avec leur status
    """
    state = request.app.state
    settings = state.settings

    raw = await request.body()
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error_response("Request body is not valid JSON", 400, "invalid_request")
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", 400, "invalid_request")

    messages = body.get("messages") if isinstance(body.get("messages"), list) else []
    decision = select_model(
        body.get("model"),
        messages,
        body.get("tools"),
        _extract_system(body, messages),
        settings.complexity
    )

    try:
        target = resolve_target(decision.model, settings)
    except ProviderError as e:
        logger.warning("[PROXY] %s", e.message)
        return _error_response(e.message, e.status_code, e.code, e.details)

    extra_headers: Dict[str, str] = {}
    if decision.complexity is not None:
        extra_headers[COMPLEXITY_HEADER] = decision.complexity.value

    upstream_body = build_upstream_body(body, target)
    upstream_headers = build_upstream_headers(target.provider)

    logger.info(
        "[PROXY] %s → %s (stream=%s)",
        target.model.key, target.url, body.get("stream") is True
    )

    if body.get("stream") is True:
        return _start_streaming(
            request, target, decision, upstream_body, upstream_headers, extra_headers
        )
    return await _forward(
        request, target, decision, upstream_body, upstream_headers, extra_headers
    )


def _start_streaming(
    request: Request,
    target: UpstreamTarget,
    decision: RoutingDecision,
    upstream_body: Dict[str, Any],
    upstream_headers: Dict[str, str],
    extra_headers: Dict[str, str]
) -> StreamingResponse:
    state = request.app.state

    transport = QueueTransport()
    writer = SSEWriter(transport)
    cancel_keep_alive = start_keep_alive(writer, state.settings.server.keepalive_interval_ms)

    task = asyncio.create_task(_relay_and_capture(
        state.http_client,
        state.mesh,
        target,
        decision,
        upstream_body,
        upstream_headers,
        writer,
        cancel_keep_alive
    ))
    state.background_tasks.add(task)
    task.add_done_callback(state.background_tasks.discard)

    return StreamingResponse(
        transport.iter_body(),
        status_code=transport.status_code,
        headers={**transport.headers, **extra_headers}
    )


async def _relay_and_capture(
    client: httpx.AsyncClient,
    mesh: MeshHandle,
    target: UpstreamTarget,
    decision: RoutingDecision,
    upstream_body: Dict[str, Any],
    upstream_headers: Dict[str, str],
    writer: SSEWriter,
    cancel_keep_alive
) -> RelayOutcome:
    started = time.monotonic()
    try:
        outcome = await stream_provider_response(
            target.url, upstream_body, upstream_headers, writer, client=client
        )
    finally:
        cancel_keep_alive()

    aggregate = aggregate_streaming_response(outcome.chunks)
    logger.info(
        "[PROXY] Stream %s: %d chunk(s), %d caractère(s), ttft=%s ms, finish=%s",
        "terminé" if outcome.success else "interrompu",
        len(outcome.chunks),
        len(aggregate.content),
        f"{outcome.ttft_ms:.0f}" if outcome.ttft_ms is not None else "-",
        aggregate.finish_reason or "-"
    )
    _capture(
        mesh, target, decision, outcome.success, started, aggregate.usage,
        model=aggregate.model,
        error_code=None if outcome.success else "stream_failed"
    )
    return outcome


async def _forward(
    request: Request,
    target: UpstreamTarget,
    decision: RoutingDecision,
    upstream_body: Dict[str, Any],
    upstream_headers: Dict[str, str],
    extra_headers: Dict[str, str]
) -> JSONResponse:
    state = request.app.state
    started = time.monotonic()

    try:
        response = await state.http_client.post(
            target.url, json=upstream_body, headers=upstream_headers
        )
    except httpx.TimeoutException as e:
        logger.warning("[PROXY] Timeout provider %s: %s", target.provider.key, e)
        _capture(state.mesh, target, decision, False, started, None, error_code="timeout")
        return _error_response("Provider timeout", 504, "timeout_error")
    except httpx.HTTPError as e:
        logger.warning("[PROXY] Erreur transport provider %s: %s", target.provider.key, e)
        _capture(state.mesh, target, decision, False, started, None, error_code="transport_error")
        return _error_response("Provider unreachable", 502, "transport_error")

    try:
        data = response.json()
    except ValueError:
        data = {"error": {"message": response.text[:500], "status": response.status_code}}

    if not response.is_success:
        logger.warning("[PROXY] Erreur provider %s: %s", response.status_code, response.text[:200])

    _capture(
        state.mesh, target, decision, response.is_success, started,
        extract_usage_from_response(data),
        model=extract_model_from_response(data),
        error_code=None if response.is_success else str(response.status_code)
    )
    return JSONResponse(content=data, status_code=response.status_code, headers=extra_headers)
