"""
Couche API HTTP du bridge.
"""

from .router import api_router

__all__ = ["api_router"]
