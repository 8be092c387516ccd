"""
Dataclasses métier pour le Relay Proxy.

Les payloads JSON des providers sont lus champ par champ: un champ absent
ou mal typé vaut None, jamais une exception.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


TEXT_BLOCK = "text"
TOOL_USE_BLOCK = "tool_use"
TOOL_RESULT_BLOCK = "tool_result"
TOOL_BLOCK_TYPES = frozenset({TOOL_USE_BLOCK, TOOL_RESULT_BLOCK})


@dataclass(frozen=True)
class ContentBlock:
    """Bloc de contenu d'un message (text, tool_use, tool_result...)."""
    type: Optional[str] = None
    text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ContentBlock":
        """Crée un bloc depuis un objet JSON quelconque."""
        if isinstance(data, ContentBlock):
            return data
        if not isinstance(data, dict):
            return cls()
        block_type = data.get("type")
        text = data.get("text")
        return cls(
            type=block_type if isinstance(block_type, str) else None,
            text=text if isinstance(text, str) else None
        )

    @property
    def is_tool(self) -> bool:
        return self.type in TOOL_BLOCK_TYPES


@dataclass(frozen=True)
class ConversationMessage:
    """Un tour de conversation: texte brut ou séquence de blocs."""
    role: Optional[str] = None
    content: Union[str, Tuple[ContentBlock, ...], None] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ConversationMessage":
        """Normalise un message brut au format chat-completion."""
        if isinstance(data, ConversationMessage):
            return data
        if not isinstance(data, dict):
            return cls()
        role = data.get("role")
        raw_content = data.get("content")
        content: Union[str, Tuple[ContentBlock, ...], None]
        if isinstance(raw_content, str):
            content = raw_content
        elif isinstance(raw_content, (list, tuple)):
            content = tuple(ContentBlock.from_dict(block) for block in raw_content)
        else:
            content = None
        return cls(role=role if isinstance(role, str) else None, content=content)

    @property
    def blocks(self) -> Tuple[ContentBlock, ...]:
        """Blocs du message (vide si le contenu est une chaîne)."""
        if isinstance(self.content, tuple):
            return self.content
        return ()

    def text(self) -> str:
        """Concatène les blocs texte (séparateur: un espace)."""
        if isinstance(self.content, str):
            return self.content
        return " ".join(
            block.text or "" for block in self.blocks if block.type == TEXT_BLOCK
        )

    def has_text_block(self) -> bool:
        return any(block.type == TEXT_BLOCK for block in self.blocks)

    def is_tool_only(self) -> bool:
        """Vrai si le message ne contient que des blocs tool_use/tool_result."""
        blocks = self.blocks
        if not isinstance(self.content, tuple) or self.has_text_block():
            return False
        return all(block.is_tool for block in blocks)

    def has_tool_activity(self) -> bool:
        return any(block.is_tool for block in self.blocks)


class Complexity(str, Enum):
    """Niveau de complexité, ordonné par coût croissant."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"

    @property
    def rank(self) -> int:
        return _COMPLEXITY_RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, Complexity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Complexity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Complexity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Complexity):
            return NotImplemented
        return self.rank >= other.rank


_COMPLEXITY_RANKS = {
    Complexity.SIMPLE: 0,
    Complexity.MODERATE: 1,
    Complexity.COMPLEX: 2,
}


@dataclass
class SSEMessage:
    """Événement SSE sortant vers le client."""
    data: Any
    event: Optional[str] = None
    id: Optional[str] = None
    retry: Optional[int] = None


@dataclass(frozen=True)
class Usage:
    """Compteurs de tokens rapportés par le provider."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Usage"]:
        """Usage valide si prompt_tokens et completion_tokens sont numériques."""
        if not isinstance(data, dict):
            return None
        prompt = data.get("prompt_tokens")
        completion = data.get("completion_tokens")
        if not _is_number(prompt) or not _is_number(completion):
            return None
        total = data.get("total_tokens")
        if not _is_number(total):
            total = prompt + completion
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens
        }


@dataclass(frozen=True)
class ChunkFields:
    """Vue validée d'un chunk streaming; chaque champ vaut None si absent."""
    model: Optional[str] = None
    content: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None

    @classmethod
    def from_chunk(cls, chunk: Any) -> Optional["ChunkFields"]:
        """Extrait les champs utiles d'un chunk; None si ce n'est pas un objet."""
        if not isinstance(chunk, dict):
            return None

        model = chunk.get("model")
        content = None
        finish_reason = None

        choices = chunk.get("choices")
        if isinstance(choices, list) and choices:
            choice = choices[0]
            if isinstance(choice, dict):
                delta = choice.get("delta")
                if isinstance(delta, dict) and isinstance(delta.get("content"), str):
                    content = delta["content"]
                reason = choice.get("finish_reason")
                if isinstance(reason, str) and reason:
                    finish_reason = reason

        return cls(
            model=model if isinstance(model, str) and model else None,
            content=content,
            finish_reason=finish_reason,
            usage=Usage.from_dict(chunk.get("usage"))
        )


@dataclass
class AggregateResult:
    """Réponse reconstruite à partir des chunks streaming."""
    content: str = ""
    usage: Optional[Usage] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Forme {content, usage?, model?, finish_reason?}."""
        result: Dict[str, Any] = {"content": self.content}
        if self.usage is not None:
            result["usage"] = self.usage.to_dict()
        if self.model is not None:
            result["model"] = self.model
        if self.finish_reason is not None:
            result["finish_reason"] = self.finish_reason
        return result


@dataclass
class RelayOutcome:
    """Résultat d'un relais streaming."""
    success: bool
    chunks: List[Any] = field(default_factory=list)
    ttft_ms: Optional[float] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
