"""
CoverScout

Find catalog book covers that visually resemble a query image using
perceptual-hash similarity.
"""

from coverscout.models import (
    QuerySource,
    SearchMethod,
    SearchQuery,
    CatalogCandidate,
    ScoredMatch,
    SearchOutcome,
    PipelineResult,
)
from coverscout.cancellation import CancellationToken, SearchCancelledError
from coverscout.pipeline import CoverSearchPipeline

__version__ = "1.0.0"

__all__ = [
    # Models
    "QuerySource",
    "SearchMethod",
    "SearchQuery",
    "CatalogCandidate",
    "ScoredMatch",
    "SearchOutcome",
    "PipelineResult",
    # Cancellation
    "CancellationToken",
    "SearchCancelledError",
    # Pipeline
    "CoverSearchPipeline",
]
