"""Episode routes package.

Import the router via get_router() to avoid circular imports.
"""

from fastapi import APIRouter

_router = None


def get_router() -> APIRouter:
    """Create and return the combined episode router.

    Uses lazy imports to avoid circular dependencies.
    """
    global _router
    if _router is not None:
        return _router

    from .core import router as core_router
    from .episodes import router as episodes_router

    combined = APIRouter()
    combined.include_router(core_router)
    combined.include_router(episodes_router)
    _router = combined
    return _router


__all__ = ["get_router"]
