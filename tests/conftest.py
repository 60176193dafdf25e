"""
Pytest configuration and fixtures for CoverScout tests.
"""

import sys
from pathlib import Path
from typing import AsyncGenerator

import numpy as np
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from coverscout.api.dependencies import Settings, get_expander, get_pipeline
from coverscout.pipeline import CoverSearchPipeline
from coverscout.search.orchestrator import SearchOrchestrator
from coverscout.search.translation import MultilingualExpander
from coverscout.similarity.ranker import SimilarityRanker
from tests.fakes import FakeCatalog, FakeFetcher, FakeHasher, image_to_bytes


# =============================================================================
# Fake Collaborators
# =============================================================================

@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def fake_hasher() -> FakeHasher:
    return FakeHasher()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def build_pipeline(fake_hasher, fake_fetcher):
    """Factory for a pipeline wired to fakes."""

    def _build(catalog: FakeCatalog, **orchestrator_kwargs) -> CoverSearchPipeline:
        return CoverSearchPipeline(
            catalog=catalog,
            orchestrator=SearchOrchestrator(catalog, **orchestrator_kwargs),
            ranker=SimilarityRanker(hasher=fake_hasher, fetcher=fake_fetcher),
        )

    return _build


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def sample_book_cover_image() -> Image.Image:
    """Generate synthetic book cover image for testing."""
    img = Image.new("RGB", (300, 450), color=(200, 180, 160))
    pixels = np.array(img)

    # Add a "title area" at top
    pixels[30:80, 30:270] = (50, 50, 50)

    # Add "author area" at bottom
    pixels[380:410, 30:200] = (80, 80, 80)

    return Image.fromarray(pixels)


@pytest.fixture
def noise_image() -> Image.Image:
    """Seeded random noise, unrelated to any cover."""
    rng = np.random.default_rng(7)
    return Image.fromarray(rng.integers(0, 256, size=(256, 256, 3), dtype=np.uint8))


@pytest.fixture
def sample_cover_bytes(sample_book_cover_image) -> bytes:
    return image_to_bytes(sample_book_cover_image)


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def sample_isbndb_books() -> list[dict]:
    """Raw ISBNdb records as returned by /books/{query}."""
    return [
        {
            "title": "Dune",
            "title_long": "Dune: Deluxe Edition",
            "isbn": "0441172717",
            "isbn13": "9780441172719",
            "authors": ["Frank Herbert"],
            "publisher": "Ace",
            "date_published": "1990",
            "image": "https://images.isbndb.com/covers/27/19/9780441172719.jpg",
        },
        {
            "title": "Dune Messiah",
            "isbn": "0441172695",
            "isbn13": "9780441172696",
            "authors": ["Frank Herbert"],
            "publisher": "Ace",
            "date_published": "1987",
            "image": "",
        },
    ]


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def api_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        isbndb_api_key="test-key",
        environment="test",
        debug=True,
        max_upload_size_mb=1,
    )


@pytest.fixture
def api_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest_asyncio.fixture(scope="function")
async def app(api_settings, api_catalog, build_pipeline):
    """Create FastAPI application wired to fake collaborators."""
    from coverscout.api.main import create_app

    application = create_app(api_settings)
    pipeline = build_pipeline(api_catalog)
    application.dependency_overrides[get_pipeline] = lambda: pipeline
    application.dependency_overrides[get_expander] = lambda: MultilingualExpander()

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
