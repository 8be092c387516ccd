"""
Choix du modèle cible à partir du niveau de complexité.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..config.settings import ComplexityRoutingConfig
from ..core.constants import AUTO_MODEL_ALIASES
from ..core.models import Complexity
from .complexity import classify_complexity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingDecision:
    """Modèle retenu pour une requête et niveau éventuel."""
    model: Optional[str]
    complexity: Optional[Complexity] = None

    @property
    def routed(self) -> bool:
        return self.complexity is not None


def wants_auto_routing(requested_model: Any) -> bool:
    """Vrai si le client laisse le proxy choisir le modèle."""
    if not isinstance(requested_model, str) or not requested_model.strip():
        return True
    return requested_model.strip().lower() in AUTO_MODEL_ALIASES


def select_model(
    requested_model: Any,
    messages: Sequence[Any],
    tools: Any,
    system: Optional[str],
    config: ComplexityRoutingConfig
) -> RoutingDecision:
    """
    Détermine le modèle à utiliser.

    Le routing par complexité ne s'applique que s'il est activé et que le
    modèle demandé est absent ou un alias "auto". Un niveau sans modèle
    configuré retombe sur le niveau configuré le plus proche au-dessus,
    puis en dessous.
    """
    explicit = requested_model if isinstance(requested_model, str) and requested_model.strip() else None

    if not config.enabled or not wants_auto_routing(requested_model):
        return RoutingDecision(model=explicit)

    complexity = classify_complexity(messages, tools, system)
    model = _model_for_tier(complexity, config)
    if model is None:
        logger.warning("[ROUTING] Aucun modèle configuré pour le niveau %s", complexity.value)
        return RoutingDecision(model=explicit, complexity=complexity)

    logger.info("[ROUTING] complexité=%s → modèle %s", complexity.value, model)
    return RoutingDecision(model=model, complexity=complexity)


def _model_for_tier(complexity: Complexity, config: ComplexityRoutingConfig) -> Optional[str]:
    ordered = sorted(Complexity)
    above = [tier for tier in ordered if tier >= complexity]
    below = [tier for tier in reversed(ordered) if tier < complexity]
    for tier in above + below:
        model = config.model_for(tier)
        if model:
            return model
    return None
