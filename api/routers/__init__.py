"""API routers package.

This package contains the API routers organized into logical subpackages:
- episode: health check and aggregated episode listings
"""

# Note: Routers are imported directly in api/app.py to avoid circular imports
# This package serves as documentation and provides a clean namespace

__all__ = [
    "episode",
]
