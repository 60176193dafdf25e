"""
API Schemas for CoverScout

Pydantic models for request validation and response serialization:
- Similarity search requests
- Scored matches and pipeline results
- Health and error responses
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coverscout.models import PipelineResult, ScoredMatch


# =============================================================================
# Request Schemas
# =============================================================================

class SimilaritySearchOptions(BaseModel):
    """Options shared by upload and URL searches. Unset fields use server defaults."""

    image_name: str = Field("", max_length=500)
    query: Optional[str] = Field(None, min_length=1, max_length=200)
    max_results: Optional[int] = Field(None, ge=1, le=1000)
    similarity_threshold: Optional[float] = Field(None, ge=0, le=100)
    top_n: Optional[int] = Field(None, ge=1, le=100)


class UrlSimilaritySearchRequest(SimilaritySearchOptions):
    """Similarity search for an image reachable over HTTP."""

    image_url: str = Field(..., min_length=1)

    @field_validator("image_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("image_url must be an http(s) URL")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "image_url": "https://images.isbndb.com/covers/27/19/9780441172719.jpg",
                "image_name": "dune_cover.jpg",
                "similarity_threshold": 70,
                "top_n": 10,
            }
        }
    )


# =============================================================================
# Response Schemas
# =============================================================================

class CoverBook(BaseModel):
    """Catalog record attached to a match."""

    title: str
    authors: list[str] = Field(default_factory=list)
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    image: str
    publish_date: Optional[str] = None


class CoverMatch(BaseModel):
    """Candidate cover with its similarity to the target."""

    book: CoverBook
    similarity: float = Field(..., ge=0, le=100)
    hash_hex: str
    hamming_distance: int = Field(..., ge=0)
    matched_by_title: bool

    @classmethod
    def from_match(cls, match: ScoredMatch) -> "CoverMatch":
        return cls(**match.to_dict())


class SimilaritySearchResponse(BaseModel):
    """Result of a similarity search."""

    target_hash: str
    results: list[CoverMatch] = Field(default_factory=list)
    total_compared: int = Field(..., ge=0)
    search_method: str
    search_query: str

    @classmethod
    def from_result(cls, result: PipelineResult) -> "SimilaritySearchResponse":
        return cls(
            target_hash=result.target_hash,
            results=[CoverMatch.from_match(m) for m in result.matches],
            total_compared=result.total_compared,
            search_method=result.search_method.value,
            search_query=result.search_query,
        )


class VariationsResponse(BaseModel):
    """Search variations derived from a title."""

    title: str
    normalized: str
    variations: list[dict[str, str]]


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    code: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
