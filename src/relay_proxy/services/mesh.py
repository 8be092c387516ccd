"""
Couche mesh: capture des décisions de routing comme connaissances.

Les paquets mesh externes ne font pas partie du proxy: l'implémentation
par défaut est un no-op qui respecte le contrat de MeshHandle.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Protocol

from ..config.settings import MeshConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureParams:
    """Requête proxy terminée, telle que rapportée au mesh."""
    tool_name: str
    model: str
    provider: str
    success: bool
    latency_ms: float
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    task_type: Optional[str] = None
    error_code: Optional[str] = None


@dataclass(frozen=True)
class MeshStatus:
    """État exposé par /health."""
    available: bool
    enabled: bool
    atom_count: int
    contributing: bool
    mesh_url: str
    data_dir: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SyncResult:
    pushed: int
    pulled: int


class MeshHandle(Protocol):
    """Contrat d'une implémentation mesh."""

    def capture_request(self, params: CaptureParams) -> None:
        ...

    def get_tips(self, max_count: int = 10) -> List[Dict[str, Any]]:
        ...

    def get_status(self) -> MeshStatus:
        ...

    async def sync(self) -> Optional[SyncResult]:
        ...

    def stop(self) -> None:
        ...


class NoopMesh:
    """Mesh indisponible: toutes les opérations sont sans effet."""

    def __init__(self, config: MeshConfig):
        self.config = config
        self.captured = 0

    def capture_request(self, params: CaptureParams) -> None:
        self.captured += 1
        logger.debug(
            "[MESH] capture ignorée: %s/%s success=%s",
            params.provider, params.model, params.success
        )

    def get_tips(self, max_count: int = 10) -> List[Dict[str, Any]]:
        return []

    def get_status(self) -> MeshStatus:
        return MeshStatus(
            available=False,
            enabled=self.config.enabled,
            atom_count=0,
            contributing=False,
            mesh_url=self.config.mesh_url,
            data_dir=self.config.data_dir
        )

    async def sync(self) -> Optional[SyncResult]:
        return None

    def stop(self) -> None:
        pass


def create_mesh(config: MeshConfig) -> MeshHandle:
    """
    Crée le handle mesh correspondant à la configuration.

    Args:
        config: Section [mesh]

    Returns:
        Une implémentation de MeshHandle (NoopMesh en l'absence de backend)
    """
    if not config.enabled:
        logger.info("[MESH] Désactivé par configuration")
    else:
        logger.info("[MESH] Aucun backend mesh installé, capture désactivée")
    return NoopMesh(config)


def safe_capture(mesh: MeshHandle, params: CaptureParams) -> None:
    """Rapporte une requête au mesh sans jamais propager d'erreur."""
    try:
        mesh.capture_request(params)
    except Exception:
        logger.exception("[MESH] Échec de capture")
