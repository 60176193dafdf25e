"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Catalog, translation and hashing clients
- The cover search pipeline
"""

import os
from functools import lru_cache
from typing import Optional
from dataclasses import dataclass

from fastapi import Depends


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Catalog
    isbndb_api_key: Optional[str] = None
    isbndb_base_url: str = "https://api2.isbndb.com"

    # Translation
    translation_enabled: bool = False
    translation_url: str = "https://libretranslate.com/translate"
    translation_api_key: Optional[str] = None
    translation_max_languages: int = 5

    # Search behaviour
    http_timeout_seconds: float = 10.0
    search_concurrency: int = 1
    min_title_length: int = 2
    max_results_per_variation: int = 20

    # Caller defaults
    default_fallback_query: str = "fiction"
    default_max_results: int = 50
    default_similarity_threshold: float = 70.0
    default_top_n: int = 10

    # File uploads
    max_upload_size_mb: int = 10
    allowed_image_types: str = "image/jpeg,image/png,image/webp,image/gif"

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            isbndb_api_key=os.getenv("ISBNDB_API_KEY"),
            isbndb_base_url=os.getenv("ISBNDB_BASE_URL", cls.isbndb_base_url),
            translation_enabled=os.getenv("TRANSLATION_ENABLED", "false").lower() == "true",
            translation_url=os.getenv("TRANSLATION_URL", cls.translation_url),
            translation_api_key=os.getenv("TRANSLATION_API_KEY"),
            translation_max_languages=int(os.getenv("TRANSLATION_MAX_LANGUAGES", cls.translation_max_languages)),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", cls.http_timeout_seconds)),
            search_concurrency=int(os.getenv("SEARCH_CONCURRENCY", cls.search_concurrency)),
            min_title_length=int(os.getenv("MIN_TITLE_LENGTH", cls.min_title_length)),
            max_results_per_variation=int(os.getenv("MAX_RESULTS_PER_VARIATION", cls.max_results_per_variation)),
            default_fallback_query=os.getenv("DEFAULT_FALLBACK_QUERY", cls.default_fallback_query),
            default_max_results=int(os.getenv("DEFAULT_MAX_RESULTS", cls.default_max_results)),
            default_similarity_threshold=float(os.getenv("DEFAULT_SIMILARITY_THRESHOLD", cls.default_similarity_threshold)),
            default_top_n=int(os.getenv("DEFAULT_TOP_N", cls.default_top_n)),
            max_upload_size_mb=int(os.getenv("MAX_UPLOAD_SIZE_MB", cls.max_upload_size_mb)),
            allowed_image_types=os.getenv("ALLOWED_IMAGE_TYPES", cls.allowed_image_types),
            environment=os.getenv("COVERSCOUT_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )

    @property
    def allowed_image_type_set(self) -> set[str]:
        return {t.strip() for t in self.allowed_image_types.split(",") if t.strip()}


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    Services are initialized on first access to avoid startup delays.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._catalog_client = None
        self._translator = None
        self._expander = None
        self._orchestrator = None
        self._ranker = None
        self._pipeline = None

    @property
    def catalog_client(self):
        """Get ISBNdb client instance."""
        if self._catalog_client is None:
            from ..catalog.isbndb import ISBNdbClient
            self._catalog_client = ISBNdbClient(
                api_key=self.settings.isbndb_api_key,
                base_url=self.settings.isbndb_base_url,
                timeout=self.settings.http_timeout_seconds,
            )
        return self._catalog_client

    @property
    def translator(self):
        """Get translation client, or None when translation is disabled."""
        if self._translator is None and self.settings.translation_enabled:
            from ..search.translation import LibreTranslateClient
            self._translator = LibreTranslateClient(
                url=self.settings.translation_url,
                api_key=self.settings.translation_api_key,
                timeout=self.settings.http_timeout_seconds,
            )
        return self._translator

    @property
    def expander(self):
        """Get multilingual variation expander."""
        if self._expander is None:
            from ..search.translation import MultilingualExpander
            self._expander = MultilingualExpander(
                translator=self.translator,
                max_languages=self.settings.translation_max_languages,
            )
        return self._expander

    @property
    def orchestrator(self):
        """Get search orchestrator instance."""
        if self._orchestrator is None:
            from ..search.orchestrator import SearchOrchestrator
            self._orchestrator = SearchOrchestrator(
                catalog=self.catalog_client,
                expander=self.expander,
                min_title_length=self.settings.min_title_length,
                concurrency=self.settings.search_concurrency,
            )
        return self._orchestrator

    @property
    def ranker(self):
        """Get similarity ranker instance."""
        if self._ranker is None:
            from ..similarity.phash import ImageFetcher
            from ..similarity.ranker import SimilarityRanker
            self._ranker = SimilarityRanker(
                fetcher=ImageFetcher(timeout=self.settings.http_timeout_seconds),
                concurrency=self.settings.search_concurrency,
            )
        return self._ranker

    @property
    def pipeline(self):
        """Get cover search pipeline instance."""
        if self._pipeline is None:
            from ..pipeline import CoverSearchPipeline
            self._pipeline = CoverSearchPipeline(
                catalog=self.catalog_client,
                orchestrator=self.orchestrator,
                ranker=self.ranker,
                max_results_per_variation=self.settings.max_results_per_variation,
            )
        return self._pipeline

    async def close(self) -> None:
        """Close HTTP clients that were created."""
        if self._pipeline is not None:
            await self._pipeline.close()
            return
        for client in (self._catalog_client, self._translator):
            if client is not None:
                await client.close()
        if self._ranker is not None:
            await self._ranker.fetcher.close()


# Global service container
_service_container: Optional[ServiceContainer] = None


def init_services(settings: Settings) -> ServiceContainer:
    """Initialize service container."""
    global _service_container
    _service_container = ServiceContainer(settings)
    return _service_container


def get_service_container() -> ServiceContainer:
    """Get service container instance."""
    if _service_container is None:
        # Auto-initialize with default settings if not explicitly initialized
        return init_services(get_settings())
    return _service_container


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_pipeline(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for the cover search pipeline."""
    return container.pipeline


def get_expander(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for the variation expander."""
    return container.expander
