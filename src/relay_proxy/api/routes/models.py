"""Routes API pour la liste des modèles (format OpenAI: object/list/data)."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Request

from ...config.settings import ModelConfig

router = APIRouter()

# Valeur stable: OpenAI renvoie un timestamp "created"
MODEL_CREATED_AT = 1704067200


def _build_openai_models_list(models: Dict[str, ModelConfig]) -> List[Dict[str, Any]]:
    return [
        {
            "id": key,
            "object": "model",
            "created": MODEL_CREATED_AT,
            "owned_by": model.provider or "relay-proxy",
        }
        for key, model in sorted(models.items())
    ]


@router.get("/models")
async def list_models(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    return {"object": "list", "data": _build_openai_models_list(settings.models)}
