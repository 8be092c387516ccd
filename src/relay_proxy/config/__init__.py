"""
Configuration du Relay Proxy.
"""

from .loader import load_config, reload_config, get_config, load_settings
from .settings import (
    Settings,
    ServerConfig,
    ProviderConfig,
    ModelConfig,
    ComplexityRoutingConfig,
    CascadeConfig,
    CircuitBreakerConfig,
    MeshConfig,
)

__all__ = [
    "load_config",
    "reload_config",
    "get_config",
    "load_settings",
    "Settings",
    "ServerConfig",
    "ProviderConfig",
    "ModelConfig",
    "ComplexityRoutingConfig",
    "CascadeConfig",
    "CircuitBreakerConfig",
    "MeshConfig",
]
