"""
Couche HTTP (FastAPI) du Relay Proxy.
"""

from .router import api_router

__all__ = ["api_router"]
