"""
Relay Proxy - proxy LLM local avec routing par complexité et relais SSE.
"""

__version__ = "0.1.0"
