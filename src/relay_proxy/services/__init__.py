"""
Services optionnels du Relay Proxy.
"""

from .mesh import (
    CaptureParams,
    MeshStatus,
    SyncResult,
    MeshHandle,
    NoopMesh,
    create_mesh,
    safe_capture,
)

__all__ = [
    "CaptureParams",
    "MeshStatus",
    "SyncResult",
    "MeshHandle",
    "NoopMesh",
    "create_mesh",
    "safe_capture",
]
