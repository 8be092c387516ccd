"""
Router principal de l'API.
"""
from fastapi import APIRouter

from .routes import health, models, proxy

# Router principal
api_router = APIRouter()

api_router.include_router(health.router, prefix="", tags=["health"])

# === API OpenAI-compatible ===
api_router.include_router(models.router, prefix="/v1", tags=["models"])
api_router.include_router(proxy.router, prefix="/v1", tags=["proxy"])
