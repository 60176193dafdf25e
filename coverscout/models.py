"""
Domain Models for CoverScout

Plain dataclasses shared by the search and similarity stages:
- Search queries and their provenance
- Catalog candidates
- Scored matches and the final pipeline result

All instances are created per pipeline invocation and never persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class QuerySource(str, Enum):
    """Where a search query string came from."""
    ORIGINAL = "original"
    NORMALIZED = "normalized"
    TRANSLATED = "translated"
    LEXICAL_VARIANT = "lexical-variant"


class SearchMethod(str, Enum):
    """Which search tier populated the candidate list."""
    TITLE_BASED = "title-based"
    GENERIC = "generic"
    GENERIC_FALLBACK = "generic-fallback"
    NONE = "none"


@dataclass(frozen=True)
class SearchQuery:
    """
    A single catalog search phrase.

    Equality and hashing only consider ``text`` so that a set of queries
    is deduplicated by string value regardless of provenance.
    """

    text: str
    source: QuerySource = field(default=QuerySource.ORIGINAL, compare=False)

    def __str__(self) -> str:
        return self.text


@dataclass
class CatalogCandidate:
    """One book record returned by the catalog."""

    title: str
    cover_url: str
    authors: list[str] = field(default_factory=list)

    # Identifiers
    isbn_13: Optional[str] = None
    isbn: Optional[str] = None

    publisher: Optional[str] = None
    publish_date: Optional[str] = None

    @property
    def identifier(self) -> Optional[str]:
        """Dedup key: prefer ISBN-13, fall back to any ISBN."""
        return self.isbn_13 or self.isbn or None

    @property
    def has_cover(self) -> bool:
        return bool(self.cover_url and self.cover_url.strip())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "authors": self.authors,
            "isbn": self.identifier,
            "publisher": self.publisher,
            "image": self.cover_url,
            "publish_date": self.publish_date,
        }


@dataclass
class ScoredMatch:
    """Candidate paired with its perceptual-hash similarity."""

    candidate: CatalogCandidate
    similarity: float
    hash_hex: str
    hamming_distance: int
    matched_by_title: bool = False

    def to_dict(self) -> dict:
        return {
            "book": self.candidate.to_dict(),
            "similarity": self.similarity,
            "hash_hex": self.hash_hex,
            "hamming_distance": self.hamming_distance,
            "matched_by_title": self.matched_by_title,
        }


@dataclass
class SearchOutcome:
    """Deduplicated candidates plus the method that produced them."""

    candidates: list[CatalogCandidate] = field(default_factory=list)
    method: SearchMethod = SearchMethod.NONE

    # Diagnostics
    queries_tried: list[str] = field(default_factory=list)
    failed_queries: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.candidates)


@dataclass
class PipelineResult:
    """Final output of a similarity search."""

    target_hash: str
    matches: list[ScoredMatch]
    total_compared: int
    search_method: SearchMethod
    search_query: str

    @property
    def best_match(self) -> Optional[ScoredMatch]:
        if self.matches:
            return self.matches[0]
        return None

    @property
    def found_candidates(self) -> bool:
        """False when no catalog candidates were found at all."""
        return self.search_method != SearchMethod.NONE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "target_hash": self.target_hash,
            "results": [match.to_dict() for match in self.matches],
            "total_compared": self.total_compared,
            "search_method": self.search_method.value,
            "search_query": self.search_query,
        }
