"""
Cœur métier du Relay Proxy.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    RelayProxyError,
    ConfigurationError,
    ProviderError,
    StreamingError,
)
from .constants import (
    DEFAULT_KEEPALIVE_INTERVAL_MS,
    SSE_DONE,
    SSE_RESPONSE_HEADERS,
    AUTO_MODEL_ALIASES,
)
from .tokens import estimate_tokens
from .models import (
    ContentBlock,
    ConversationMessage,
    Complexity,
    SSEMessage,
    Usage,
    ChunkFields,
    AggregateResult,
    RelayOutcome,
)

__all__ = [
    # Exceptions
    "RelayProxyError",
    "ConfigurationError",
    "ProviderError",
    "StreamingError",
    # Constants
    "DEFAULT_KEEPALIVE_INTERVAL_MS",
    "SSE_DONE",
    "SSE_RESPONSE_HEADERS",
    "AUTO_MODEL_ALIASES",
    # Tokens
    "estimate_tokens",
    # Models
    "ContentBlock",
    "ConversationMessage",
    "Complexity",
    "SSEMessage",
    "Usage",
    "ChunkFields",
    "AggregateResult",
    "RelayOutcome",
]
