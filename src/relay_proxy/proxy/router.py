"""
Résolution modèle → provider et construction de la requête upstream.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config.settings import ModelConfig, ProviderConfig, Settings
from ..core.exceptions import ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamTarget:
    """Destination résolue pour une requête chat-completion."""
    model: ModelConfig
    provider: ProviderConfig

    @property
    def url(self) -> str:
        return self.provider.chat_completions_url


def resolve_target(model_key: Optional[str], settings: Settings) -> UpstreamTarget:
    """
    Trouve le modèle et le provider à appeler.

    Args:
        model_key: Clé de modèle (après routing éventuel)
        settings: Configuration courante

    Returns:
        UpstreamTarget

    Raises:
        ProviderError: 404 si le modèle est inconnu, 502 si son provider est
            absent ou sans base_url
    """
    if not model_key:
        raise ProviderError("No model specified", status_code=404)

    model = settings.get_model(model_key)
    if model is None:
        raise ProviderError(f"Unknown model '{model_key}'", model=model_key, status_code=404)

    provider = settings.get_provider(model.provider)
    if provider is None:
        raise ProviderError(
            f"Provider '{model.provider}' is not configured",
            provider=model.provider,
            model=model_key
        )
    if not provider.base_url:
        raise ProviderError(
            f"Provider '{provider.key}' has no base_url",
            provider=provider.key,
            model=model_key
        )

    logger.debug("[PROXY] %s → %s (%s)", model_key, provider.key, model.model)
    return UpstreamTarget(model=model, provider=provider)


def build_upstream_headers(provider: ProviderConfig) -> Dict[str, str]:
    """Headers de la requête provider (JSON + Bearer si une clé est configurée)."""
    headers = {"Content-Type": "application/json"}
    if provider.api_key:
        headers["Authorization"] = f"Bearer {provider.api_key}"
    return headers


def build_upstream_body(body: Dict[str, Any], target: UpstreamTarget) -> Dict[str, Any]:
    """Copie du corps client avec le nom de modèle côté provider."""
    return {**body, "model": target.model.model}
