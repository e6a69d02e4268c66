"""Contracts domain - contract requests, signing and PDF download"""

from .router import router

__all__ = ["router"]
