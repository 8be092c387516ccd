"""
Classification de complexité du tour courant.

Score heuristique sans appel LLM:
- simple   → score < 3
- moderate → score 3-4
- complex  → score >= 5

Seul le tour courant (dernier message contenant du texte utilisateur) est
scoré. Les signaux de session (outils, activité récente, taille du prompt
système) sont plafonnés pour qu'une longue session agentique ne finisse pas
systématiquement sur le niveau le plus cher.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from ..core.models import TOOL_RESULT_BLOCK, Complexity, ConversationMessage
from ..core.tokens import estimate_tokens

logger = logging.getLogger(__name__)

MODERATE_THRESHOLD = 3
COMPLEX_THRESHOLD = 5

RECENT_WINDOW = 6
RECENT_TOOL_RESULTS_THRESHOLD = 3


@dataclass(frozen=True)
class Signal:
    """Motif recherché dans le texte du tour courant et son poids."""
    name: str
    pattern: re.Pattern
    weight: int


# 'let ' est exclu: faux positifs en langage naturel ("let me fix it")
CODE_PATTERN = re.compile(r"```|function |class |const |import ")

TEXT_SIGNALS: Tuple[Signal, ...] = (
    Signal("analytical", re.compile(r"analyze|compare|evaluate|assess|review|audit"), 1),
    Signal("computational", re.compile(r"calculate|compute|solve|equation|prove|derive"), 2),
    Signal("multi_step", re.compile(r"first.*then|step \d|1\).*2\)|phase \d"), 1),
    Signal("creative", re.compile(r"write a (story|essay|article|report)|create a|design a|build a"), 1),
    Signal("engineering", re.compile(r"refactor|migrate|architect|implement|integrate"), 1),
)
CODE_WEIGHT = 2

# (seuil en tokens estimés, poids), cumulatifs
TURN_LENGTH_STEPS = ((2000, 1), (5000, 2))
SYSTEM_PROMPT_STEPS = ((3000, 1), (8000, 2))

TOOL_USAGE_WEIGHT = 2
# (nombre d'outils déclarés, poids), cumulatifs
TOOL_INVENTORY_STEPS = ((5, 1), (15, 1))
RECENT_TOOL_ACTIVITY_WEIGHT = 1


def _normalize(messages: Optional[Sequence[Any]]) -> List[ConversationMessage]:
    if not messages:
        return []
    return [ConversationMessage.from_dict(message) for message in messages]


def find_current_turn_text(messages: Sequence[Any]) -> str:
    """
    Retourne le texte du tour courant.

    Parcourt l'historique à rebours, ignore les messages composés uniquement
    de blocs tool_use/tool_result et s'arrête au premier texte non vide.
    """
    for message in reversed(_normalize(messages)):
        if message.is_tool_only():
            continue
        text = message.text()
        if text.strip():
            return text
    return ""


def _stepped(value: int, steps: Tuple[Tuple[int, int], ...], inclusive: bool = False) -> int:
    total = 0
    for threshold, weight in steps:
        if value > threshold or (inclusive and value == threshold):
            total += weight
    return total


def score_signals(
    messages: Sequence[Any],
    tools: Any = None,
    system: Optional[str] = None
) -> List[Tuple[str, int]]:
    """
    Évalue chaque signal indépendamment.

    Returns:
        Liste (nom du signal, points) des signaux déclenchés
    """
    history = _normalize(messages)
    original_text = find_current_turn_text(history)
    current_text = original_text.lower()
    hits: List[Tuple[str, int]] = []

    # --- Tour courant ---
    if CODE_PATTERN.search(current_text) or "```" in original_text:
        hits.append(("code", CODE_WEIGHT))

    for signal in TEXT_SIGNALS:
        if signal.pattern.search(current_text):
            hits.append((signal.name, signal.weight))

    length_points = _stepped(estimate_tokens(original_text), TURN_LENGTH_STEPS)
    if length_points:
        hits.append(("turn_length", length_points))

    # --- Session ---
    tool_count = len(tools) if isinstance(tools, (list, tuple)) else 0
    has_tools = tool_count > 0 or any(m.has_tool_activity() for m in history)
    if has_tools:
        hits.append(("tool_usage", TOOL_USAGE_WEIGHT))

    inventory_points = _stepped(tool_count, TOOL_INVENTORY_STEPS, inclusive=True)
    if inventory_points:
        hits.append(("tool_inventory", inventory_points))

    recent_tool_results = sum(
        1
        for message in history[-RECENT_WINDOW:]
        for block in message.blocks
        if block.type == TOOL_RESULT_BLOCK
    )
    if recent_tool_results >= RECENT_TOOL_RESULTS_THRESHOLD:
        hits.append(("recent_tool_activity", RECENT_TOOL_ACTIVITY_WEIGHT))

    if isinstance(system, str) and system:
        system_points = _stepped(estimate_tokens(system), SYSTEM_PROMPT_STEPS)
        if system_points:
            hits.append(("system_prompt", system_points))

    return hits


def score_complexity(
    messages: Sequence[Any],
    tools: Any = None,
    system: Optional[str] = None
) -> int:
    """Score total (somme des signaux déclenchés, jamais négatif)."""
    return sum(points for _, points in score_signals(messages, tools, system))


def tier_for_score(score: int) -> Complexity:
    """Mappe un score vers un niveau de complexité."""
    if score >= COMPLEX_THRESHOLD:
        return Complexity.COMPLEX
    if score >= MODERATE_THRESHOLD:
        return Complexity.MODERATE
    return Complexity.SIMPLE


def classify_complexity(
    messages: Sequence[Any],
    tools: Any = None,
    system: Optional[str] = None
) -> Complexity:
    """
    Classifie la complexité de la requête courante.

    Déterministe, sans effet de bord, ne lève jamais d'exception sur des
    entrées mal formées (champs invalides = absents).

    Args:
        messages: Historique complet (seul le dernier tour est scoré)
        tools: Outils déclarés dans la requête (seul le nombre compte)
        system: Prompt système (seule sa longueur compte)

    Returns:
        Complexity.SIMPLE, MODERATE ou COMPLEX
    """
    hits = score_signals(messages, tools, system)
    score = sum(points for _, points in hits)
    tier = tier_for_score(score)
    logger.debug(
        "[ROUTING] complexité=%s score=%d signaux=%s",
        tier.value, score, ",".join(name for name, _ in hits) or "-"
    )
    return tier
