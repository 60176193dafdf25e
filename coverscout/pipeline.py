"""
Cover Similarity Pipeline

Entry point used by the API and the command line:

    target image -> target hash
                 -> SearchOrchestrator (title-based, then generic)
                 -> SimilarityRanker (hash, filter, sort, top N)
                 -> PipelineResult
"""

from typing import Optional

from loguru import logger

from coverscout.cancellation import CancellationToken
from coverscout.models import PipelineResult, SearchMethod
from coverscout.search.orchestrator import CatalogSearcher, SearchOrchestrator
from coverscout.similarity.ranker import ProgressCallback, SimilarityRanker


DEFAULT_FALLBACK_QUERY = "fiction"
DEFAULT_MAX_RESULTS = 50
DEFAULT_MAX_RESULTS_PER_VARIATION = 20
DEFAULT_SIMILARITY_THRESHOLD = 70.0
DEFAULT_TOP_N = 10


class CoverSearchPipeline:
    """Find catalog book covers that look like a given image."""

    def __init__(
        self,
        catalog: CatalogSearcher,
        orchestrator: Optional[SearchOrchestrator] = None,
        ranker: Optional[SimilarityRanker] = None,
        max_results_per_variation: int = DEFAULT_MAX_RESULTS_PER_VARIATION,
    ):
        self.catalog = catalog
        self.orchestrator = orchestrator or SearchOrchestrator(catalog)
        self.ranker = ranker or SimilarityRanker()
        self.max_results_per_variation = max_results_per_variation

    async def find_similar_covers(
        self,
        image_bytes: Optional[bytes] = None,
        image_url: Optional[str] = None,
        image_name: str = "",
        fallback_query: str = DEFAULT_FALLBACK_QUERY,
        max_results: int = DEFAULT_MAX_RESULTS,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        top_n: int = DEFAULT_TOP_N,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        """
        Search the catalog for covers similar to the target image.

        Args:
            image_bytes: Raw target image (exclusive with image_url)
            image_url: Location of the target image
            image_name: Filename used to derive a title search
            fallback_query: Generic catalog query when title search yields nothing
            max_results: Page size of the generic query
            similarity_threshold: Minimum similarity percentage to keep
            top_n: Maximum number of matches returned
            on_progress: Called as (current, total, title) per candidate
            cancel_token: Cooperative cancellation

        Returns:
            PipelineResult

        Raises:
            ValueError: Neither or both of image_bytes and image_url given
            HashComputationError: Target image cannot be fetched or hashed
            CatalogConfigurationError: Catalog credential missing
            SearchCancelledError: Token was cancelled
        """
        if (image_bytes is None) == (image_url is None):
            raise ValueError("Provide exactly one of image_bytes or image_url")

        if image_url is not None:
            image_bytes = await self.ranker.fetcher.fetch(image_url)

        # Without a baseline hash nothing can be compared
        target_hash = await self.ranker.hash_image(image_bytes)
        target_hash_hex = self.ranker.hasher.hex_encode(target_hash)
        search_query = image_name or fallback_query

        outcome = await self.orchestrator.find_candidates(
            image_name,
            fallback_query,
            max_results_per_variation=self.max_results_per_variation,
            max_generic_results=max_results,
            cancel_token=cancel_token,
        )

        if not outcome.candidates:
            logger.info("No catalog candidates found")
            return PipelineResult(
                target_hash=target_hash_hex,
                matches=[],
                total_compared=0,
                search_method=SearchMethod.NONE,
                search_query=search_query,
            )

        matches = await self.ranker.rank_against_hash(
            target_hash,
            outcome.candidates,
            similarity_threshold,
            top_n,
            on_progress=on_progress,
            matched_by_title=outcome.method == SearchMethod.TITLE_BASED,
            cancel_token=cancel_token,
        )

        return PipelineResult(
            target_hash=target_hash_hex,
            matches=matches,
            total_compared=len(outcome.candidates),
            search_method=outcome.method,
            search_query=search_query,
        )

    async def close(self):
        """Close HTTP clients owned by the pipeline's collaborators."""
        for resource in (self.catalog, self.ranker.fetcher, self.orchestrator.expander.translator):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()
