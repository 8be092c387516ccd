"""
Relais streaming vers les providers.
"""

from .transport import SSETransport, QueueTransport
from .sse import SSEWriter, serialize_sse_message
from .stream import RelayCallbacks, stream_provider_response, extract_data_payload
from .aggregate import aggregate_streaming_response, extract_usage_from_response
from .keepalive import start_keep_alive
from .client import create_upstream_client
from .router import UpstreamTarget, resolve_target, build_upstream_headers, build_upstream_body

__all__ = [
    "SSETransport",
    "QueueTransport",
    "SSEWriter",
    "serialize_sse_message",
    "RelayCallbacks",
    "stream_provider_response",
    "extract_data_payload",
    "aggregate_streaming_response",
    "extract_usage_from_response",
    "start_keep_alive",
    "create_upstream_client",
    "UpstreamTarget",
    "resolve_target",
    "build_upstream_headers",
    "build_upstream_body",
]
