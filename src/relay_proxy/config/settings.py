"""
Dataclasses pour la configuration.

Chaque section est lue avec validation des types et fallback sur les
valeurs par défaut: une valeur invalide ne fait jamais crasher le runtime.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_UPSTREAM_TIMEOUT,
    DEFAULT_KEEPALIVE_INTERVAL_MS,
    DEFAULT_CIRCUIT_BREAKER,
    DEFAULT_MESH_URL,
    DEFAULT_MESH_SYNC_INTERVAL_MS,
    DEFAULT_MESH_INJECT_INTERVAL_MS,
    DEFAULT_MESH_DATA_DIR,
)
from ..core.models import Complexity


def _section(data: Any, key: str) -> Dict[str, Any]:
    obj = data.get(key) if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def _as_int(value: object, *, default: int, min_value: int = None) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    v = int(value)
    if min_value is not None and v < min_value:
        return min_value
    return v


def _as_float(value: object, *, default: float, min_value: float = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    v = float(value)
    if min_value is not None and v < min_value:
        return min_value
    return v


def _as_str(value: object, *, default: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _as_bool(value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


@dataclass(frozen=True)
class ServerConfig:
    """Configuration du serveur HTTP local."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    keepalive_interval_ms: int = DEFAULT_KEEPALIVE_INTERVAL_MS
    upstream_timeout_s: float = DEFAULT_UPSTREAM_TIMEOUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            host=_as_str(data.get("host"), default=DEFAULT_HOST),
            port=_as_int(data.get("port"), default=DEFAULT_PORT, min_value=1),
            log_level=_as_str(data.get("log_level"), default=DEFAULT_LOG_LEVEL).lower(),
            keepalive_interval_ms=_as_int(
                data.get("keepalive_interval_ms"),
                default=DEFAULT_KEEPALIVE_INTERVAL_MS,
                min_value=1
            ),
            upstream_timeout_s=_as_float(
                data.get("upstream_timeout_s"),
                default=DEFAULT_UPSTREAM_TIMEOUT,
                min_value=1.0
            )
        )


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration d'un provider LLM."""
    key: str
    type: str = "openai"
    base_url: str = ""
    api_key: str = ""

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "ProviderConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            key=key,
            type=_as_str(data.get("type"), default="openai"),
            base_url=(_as_str(data.get("base_url"), default="") or "").rstrip("/"),
            api_key=_as_str(data.get("api_key"), default="") or ""
        )

    @property
    def chat_completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"


@dataclass(frozen=True)
class ModelConfig:
    """Modèle exposé par le proxy et son nom côté provider."""
    key: str
    provider: str
    model: str

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "ModelConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            key=key,
            provider=_as_str(data.get("provider"), default="") or "",
            model=_as_str(data.get("model"), default=key)
        )


@dataclass(frozen=True)
class ComplexityRoutingConfig:
    """Association niveau de complexité -> clé de modèle."""
    enabled: bool = False
    simple: Optional[str] = None
    moderate: Optional[str] = None
    complex: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComplexityRoutingConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            enabled=_as_bool(data.get("enabled"), default=False),
            simple=_as_str(data.get("simple"), default=None),
            moderate=_as_str(data.get("moderate"), default=None),
            complex=_as_str(data.get("complex"), default=None)
        )

    def model_for(self, complexity: Complexity) -> Optional[str]:
        """Retourne la clé de modèle configurée pour un niveau."""
        return {
            Complexity.SIMPLE: self.simple,
            Complexity.MODERATE: self.moderate,
            Complexity.COMPLEX: self.complex,
        }[complexity]


@dataclass(frozen=True)
class CascadeConfig:
    """Configuration cascade (lue et exposée, non appliquée ici)."""
    enabled: bool = False
    models: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CascadeConfig":
        models = data.get("models")
        return cls(
            enabled=_as_bool(data.get("enabled"), default=False),
            models=[m for m in models if isinstance(m, str)] if isinstance(models, list) else []
        )


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Seuils du circuit breaker autour des providers (orchestration externe)."""
    failure_threshold: int = DEFAULT_CIRCUIT_BREAKER["failure_threshold"]
    reset_timeout_ms: int = DEFAULT_CIRCUIT_BREAKER["reset_timeout_ms"]
    request_timeout_ms: int = DEFAULT_CIRCUIT_BREAKER["request_timeout_ms"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CircuitBreakerConfig":
        defaults = cls()
        return cls(
            failure_threshold=_as_int(
                data.get("failure_threshold"), default=defaults.failure_threshold, min_value=1
            ),
            reset_timeout_ms=_as_int(
                data.get("reset_timeout_ms"), default=defaults.reset_timeout_ms, min_value=1
            ),
            request_timeout_ms=_as_int(
                data.get("request_timeout_ms"), default=defaults.request_timeout_ms, min_value=1
            )
        )


@dataclass(frozen=True)
class MeshConfig:
    """Configuration de la couche mesh (capture de connaissances)."""
    enabled: bool = True
    contribute: bool = False
    mesh_url: str = DEFAULT_MESH_URL
    sync_interval_ms: int = DEFAULT_MESH_SYNC_INTERVAL_MS
    inject_interval_ms: int = DEFAULT_MESH_INJECT_INTERVAL_MS
    data_dir: str = os.path.expanduser(DEFAULT_MESH_DATA_DIR)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeshConfig":
        defaults = cls()
        data_dir = _as_str(data.get("data_dir"), default=defaults.data_dir)
        return cls(
            enabled=_as_bool(data.get("enabled"), default=defaults.enabled),
            contribute=_as_bool(data.get("contribute"), default=defaults.contribute),
            mesh_url=_as_str(data.get("mesh_url"), default=defaults.mesh_url),
            sync_interval_ms=_as_int(
                data.get("sync_interval_ms"), default=defaults.sync_interval_ms, min_value=1
            ),
            inject_interval_ms=_as_int(
                data.get("inject_interval_ms"), default=defaults.inject_interval_ms, min_value=1
            ),
            data_dir=os.path.expanduser(data_dir)
        )


@dataclass(frozen=True)
class Settings:
    """Configuration globale de l'application."""
    server: ServerConfig = field(default_factory=ServerConfig)
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    models: Dict[str, ModelConfig] = field(default_factory=dict)
    complexity: ComplexityRoutingConfig = field(default_factory=ComplexityRoutingConfig)
    cascade: CascadeConfig = field(default_factory=CascadeConfig)
    circuit_breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    mesh: MeshConfig = field(default_factory=MeshConfig)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Settings":
        """Crée une instance depuis la configuration chargée."""
        routing = _section(config, "routing")
        return cls(
            server=ServerConfig.from_dict(_section(config, "server")),
            providers={
                key: ProviderConfig.from_dict(key, data)
                for key, data in _section(config, "providers").items()
                if isinstance(data, dict)
            },
            models={
                key: ModelConfig.from_dict(key, data)
                for key, data in _section(config, "models").items()
                if isinstance(data, dict)
            },
            complexity=ComplexityRoutingConfig.from_dict(_section(routing, "complexity")),
            cascade=CascadeConfig.from_dict(_section(routing, "cascade")),
            circuit_breaker=CircuitBreakerConfig.from_dict(_section(config, "circuit_breaker")),
            mesh=MeshConfig.from_dict(_section(config, "mesh"))
        )

    def get_provider(self, key: str) -> Optional[ProviderConfig]:
        """Récupère un provider par sa clé."""
        return self.providers.get(key)

    def get_model(self, key: str) -> Optional[ModelConfig]:
        """Récupère un modèle par sa clé."""
        return self.models.get(key)

    def get_models_for_provider(self, provider_key: str) -> List[ModelConfig]:
        """Récupère tous les modèles d'un provider."""
        return [model for model in self.models.values() if model.provider == provider_key]
