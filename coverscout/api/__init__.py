"""
CoverScout - FastAPI Backend.

HTTP surface over the cover similarity pipeline.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    get_pipeline,
    ServiceContainer,
)
from .schemas import (
    SimilaritySearchOptions,
    UrlSimilaritySearchRequest,
    SimilaritySearchResponse,
    CoverMatch,
    CoverBook,
    VariationsResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "get_pipeline",
    "ServiceContainer",
    # Schemas
    "SimilaritySearchOptions",
    "UrlSimilaritySearchRequest",
    "SimilaritySearchResponse",
    "CoverMatch",
    "CoverBook",
    "VariationsResponse",
    "HealthResponse",
    "ErrorResponse",
]
