"""Submissions domain - onboarding materials and sensitive document delivery"""

from .router import router

__all__ = ["router"]
