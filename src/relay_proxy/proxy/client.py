"""
Client HTTPX vers les providers avec timeouts configurables.

Le read timeout est le seul garde-fou de durée côté relais streaming:
le relais lui-même n'impose pas de timeout.
"""
from typing import Optional

import httpx

from ..core.constants import DEFAULT_UPSTREAM_TIMEOUT

CONNECT_TIMEOUT = 10.0


def upstream_timeout(timeout: float = DEFAULT_UPSTREAM_TIMEOUT) -> httpx.Timeout:
    """Timeout (connect court, read/write/pool = timeout)."""
    return httpx.Timeout(timeout, connect=CONNECT_TIMEOUT)


def create_upstream_client(
    timeout: float = DEFAULT_UPSTREAM_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """
    Crée un client HTTPX pour les appels provider.

    Args:
        timeout: Timeout en secondes
        transport: Transport HTTPX (tests: httpx.MockTransport)

    Returns:
        Instance de httpx.AsyncClient, à fermer par l'appelant
    """
    return httpx.AsyncClient(
        timeout=upstream_timeout(timeout),
        limits=httpx.Limits(
            max_keepalive_connections=20,
            max_connections=50
        ),
        transport=transport
    )
