"""
Constantes globales du Relay Proxy.
"""

# ============================================================================
# SERVEUR
# ============================================================================
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4100
DEFAULT_LOG_LEVEL = "info"
DEFAULT_UPSTREAM_TIMEOUT = 120.0
CONFIG_ENV_VAR = "RELAY_PROXY_CONFIG"

# ============================================================================
# SSE
# ============================================================================
SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"
DEFAULT_KEEPALIVE_INTERVAL_MS = 15000
KEEPALIVE_COMMENT = "ping"
# Octets en attente côté client avant de couper un lecteur trop lent
DEFAULT_MAX_BUFFERED_BYTES = 8 * 1024 * 1024

SSE_RESPONSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "X-Accel-Buffering": "no",  # nginx
}

# Réponses upstream sans corps lisible
NO_BODY_STATUS_CODES = frozenset({204, 205})

# ============================================================================
# ROUTING PAR COMPLEXITÉ
# ============================================================================
CHARS_PER_TOKEN = 4
AUTO_MODEL_ALIASES = frozenset({"auto", "relay:auto"})
COMPLEXITY_HEADER = "X-Relay-Complexity"

# ============================================================================
# CIRCUIT BREAKER (exposé uniquement, orchestration externe)
# ============================================================================
DEFAULT_CIRCUIT_BREAKER = {
    "failure_threshold": 3,
    "reset_timeout_ms": 30_000,
    "request_timeout_ms": 3_000,
}

# ============================================================================
# MESH
# ============================================================================
DEFAULT_MESH_URL = "https://osmosis-mesh-dev.fly.dev"
DEFAULT_MESH_SYNC_INTERVAL_MS = 300_000
DEFAULT_MESH_INJECT_INTERVAL_MS = 900_000
DEFAULT_MESH_DATA_DIR = "~/.relayplane/mesh"
