"""
Relay Proxy - Application FastAPI Factory.
Routing par complexité + relais streaming SSE vers les providers.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.router import api_router
from .config.loader import load_settings
from .config.settings import Settings
from .proxy.client import create_upstream_client
from .services.mesh import create_mesh

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Args:
        settings: Configuration (par défaut: chargée depuis le fichier TOML)
        http_client: Client upstream (tests: client sur httpx.MockTransport).
            Un client fourni n'est pas fermé à l'arrêt.

    Returns:
        Instance configurée de FastAPI
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        _startup(app, http_client)
        yield
        await _shutdown(app, owns_client=http_client is None)

    app = FastAPI(
        title="Relay Proxy",
        description="Proxy LLM local: routing par complexité et relais SSE",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


def _startup(app: FastAPI, http_client: Optional[httpx.AsyncClient]) -> None:
    """Initialisation au démarrage."""
    settings: Settings = app.state.settings

    app.state.http_client = http_client or create_upstream_client(
        settings.server.upstream_timeout_s
    )
    app.state.mesh = create_mesh(settings.mesh)
    app.state.background_tasks = set()

    logger.info(
        "Relay Proxy %s: %d provider(s), %d modèle(s), routing par complexité %s",
        __version__,
        len(settings.providers),
        len(settings.models),
        "activé" if settings.complexity.enabled else "désactivé"
    )


async def _shutdown(app: FastAPI, owns_client: bool) -> None:
    """Arrêt de l'application."""
    tasks = list(app.state.background_tasks)
    if tasks:
        logger.info("Attente de %d relais en cours...", len(tasks))
        await asyncio.gather(*tasks, return_exceptions=True)

    app.state.mesh.stop()
    if owns_client:
        await app.state.http_client.aclose()

    logger.info("Serveur arrêté proprement")
