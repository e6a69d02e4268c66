"""Communications domain - customer support threads"""

from .router import router

__all__ = ["router"]
