"""
API Routes for CoverScout

Route modules:
- covers: Cover similarity search and title variations
"""

from coverscout.api.routes.covers import router as covers_router

__all__ = [
    "covers_router",
]
