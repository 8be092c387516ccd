"""
Reconstruction d'une réponse complète à partir des chunks streaming.
"""
from typing import Any, Iterable, Optional

from ..core.models import AggregateResult, ChunkFields, Usage


def aggregate_streaming_response(chunks: Iterable[Any]) -> AggregateResult:
    """
    Réduit une séquence ordonnée de chunks en une réponse unique.

    - model, finish_reason, usage: la dernière valeur valide l'emporte
    - delta.content de choices[0]: concaténé dans l'ordre d'arrivée
    - un chunk qui ne passe pas la validation est ignoré sans erreur

    Args:
        chunks: Chunks JSON décodés, dans l'ordre upstream

    Returns:
        AggregateResult
    """
    result = AggregateResult()
    parts = []

    for chunk in chunks:
        fields = ChunkFields.from_chunk(chunk)
        if fields is None:
            continue
        if fields.model is not None:
            result.model = fields.model
        if fields.content is not None:
            parts.append(fields.content)
        if fields.finish_reason is not None:
            result.finish_reason = fields.finish_reason
        if fields.usage is not None:
            result.usage = fields.usage

    result.content = "".join(parts)
    return result


def extract_usage_from_response(response_data: Any) -> Optional[Usage]:
    """
    Extrait l'usage d'une réponse complète (non-streaming).

    Args:
        response_data: Données JSON de la réponse

    Returns:
        Usage ou None si absent/invalide
    """
    if not isinstance(response_data, dict):
        return None
    return Usage.from_dict(response_data.get("usage"))


def extract_model_from_response(response_data: Any) -> Optional[str]:
    if isinstance(response_data, dict) and isinstance(response_data.get("model"), str):
        return response_data["model"] or None
    return None
