"""
Routes API pour le health check.
"""
from typing import Any, Dict

from fastapi import APIRouter, Request

from ... import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """État du proxy: providers configurés, routing et mesh."""
    settings = request.app.state.settings
    mesh = request.app.state.mesh

    return {
        "status": "ok",
        "version": __version__,
        "providers": sorted(settings.providers),
        "complexity_routing": settings.complexity.enabled,
        "mesh": mesh.get_status().to_dict()
    }
