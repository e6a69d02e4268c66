"""Designs domain - versioned design review"""

from .router import router

__all__ = ["router"]
