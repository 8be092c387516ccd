"""
Estimation grossière du nombre de tokens (sans tokenizer).
"""
import math

from .constants import CHARS_PER_TOKEN


def estimate_tokens(text: str) -> int:
    """
    Estime les tokens d'un texte: ceil(caractères / 4).

    Args:
        text: Texte à analyser

    Returns:
        Nombre de tokens estimé
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
