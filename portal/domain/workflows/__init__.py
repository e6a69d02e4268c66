"""Workflows domain - production task tracking and user approve/revision actions"""

from .router import router

__all__ = ["router"]
