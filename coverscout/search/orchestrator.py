"""
Search Orchestrator

Two-tier candidate search:
1. Title-based: the title extracted from the image filename is expanded
   into variations and each variation is searched independently.
2. Generic fallback: a single query used whenever the title tier is
   skipped, fails as a whole or finds nothing.

Candidates are deduplicated by identifier in first-seen order.
"""

import asyncio
from typing import Optional, Protocol

from loguru import logger

from coverscout.cancellation import (
    CancellationToken,
    SearchCancelledError,
    check_cancelled,
    gather_or_cancel,
)
from coverscout.catalog.isbndb import CatalogConfigurationError, CatalogRequestError
from coverscout.models import CatalogCandidate, SearchMethod, SearchOutcome, SearchQuery
from coverscout.search.title_normalizer import TitleNormalizer
from coverscout.search.translation import MultilingualExpander


class CatalogSearcher(Protocol):
    async def search(self, query: str, page: int = 1, page_size: int = 20) -> list[CatalogCandidate]:
        ...


class SearchOrchestrator:
    """Find catalog candidates for an image, title first, generic second."""

    def __init__(
        self,
        catalog: CatalogSearcher,
        expander: Optional[MultilingualExpander] = None,
        min_title_length: int = 2,
        concurrency: int = 1,
    ):
        """
        Initialize orchestrator.

        Args:
            catalog: Client exposing ``search(query, page, page_size)``
            expander: Variation expander; lexical variations only if omitted
            min_title_length: Title search runs only for longer titles
            concurrency: Parallel catalog queries (1 = sequential)
        """
        self.catalog = catalog
        self.expander = expander or MultilingualExpander()
        self.min_title_length = min_title_length
        self.concurrency = max(1, concurrency)

    @property
    def normalizer(self) -> TitleNormalizer:
        return self.expander.normalizer

    async def find_candidates(
        self,
        image_name: str,
        fallback_query: str,
        max_results_per_variation: int = 20,
        max_generic_results: int = 50,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SearchOutcome:
        """
        Collect candidates for an image.

        Args:
            image_name: Filename of the query image (may be empty)
            fallback_query: Query for the generic tier
            max_results_per_variation: Page size per title variation
            max_generic_results: Page size for the generic query
            cancel_token: Checked before every catalog call

        Returns:
            SearchOutcome with deduplicated candidates and method tag

        Raises:
            CatalogConfigurationError: Catalog credential missing
            SearchCancelledError: Token was cancelled
        """
        outcome = SearchOutcome()

        if image_name:
            title = self.normalizer.extract_from_filename(image_name)
            logger.info(f"Extracted title from image name: '{title}'")

            if len(title) > self.min_title_length:
                outcome.method = SearchMethod.TITLE_BASED
                try:
                    await self._search_by_title(title, max_results_per_variation, outcome, cancel_token)
                    logger.info(f"Found {len(outcome)} books matching title variations")
                except (CatalogConfigurationError, SearchCancelledError):
                    raise
                except Exception as e:
                    logger.warning(f"Title-based search failed, falling back to generic search: {e}")
                    outcome.candidates = []
                    outcome.method = SearchMethod.GENERIC_FALLBACK

        if not outcome.candidates:
            await self._search_generic(fallback_query, max_generic_results, outcome, cancel_token)

        return outcome

    async def _search_by_title(
        self,
        title: str,
        page_size: int,
        outcome: SearchOutcome,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        variations = await self.expander.expand(title)
        logger.info(f"Searching for title variations: {', '.join(q.text for q in variations)}")

        responses = await self._run_queries(variations, page_size, cancel_token)

        seen = set()
        for query, books in zip(variations, responses):
            outcome.queries_tried.append(query.text)
            if books is None:
                outcome.failed_queries.append(query.text)
                continue

            for book in books:
                if not book.has_cover:
                    continue
                key = book.identifier
                if key is not None:
                    if key in seen:
                        continue
                    seen.add(key)
                outcome.candidates.append(book)

    async def _run_queries(
        self,
        queries: list[SearchQuery],
        page_size: int,
        cancel_token: Optional[CancellationToken],
    ) -> list[Optional[list[CatalogCandidate]]]:
        """
        Search every query, tolerating per-query failures.

        Returns one entry per query, in input order: the books found, or
        None when that query failed.
        """
        if self.concurrency == 1:
            results = []
            for query in queries:
                check_cancelled(cancel_token)
                results.append(await self._search_one(query.text, page_size))
            return results

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(query: SearchQuery):
            async with semaphore:
                check_cancelled(cancel_token)
                return await self._search_one(query.text, page_size)

        # Per-query failures are already None; anything raised here is fatal
        return await gather_or_cancel(bounded(q) for q in queries)

    async def _search_one(self, query: str, page_size: int) -> Optional[list[CatalogCandidate]]:
        try:
            return await self.catalog.search(query, 1, page_size)
        except CatalogRequestError as e:
            logger.warning(f"Failed to search for '{query}': {e}")
            return None

    async def _search_generic(
        self,
        query: str,
        page_size: int,
        outcome: SearchOutcome,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        check_cancelled(cancel_token)
        logger.info(f"Falling back to generic search with query: '{query}'")

        outcome.queries_tried.append(query)
        books = await self._search_one(query, page_size)
        if books is None:
            outcome.failed_queries.append(query)
            books = []

        outcome.candidates = [book for book in books if book.has_cover]
        outcome.method = SearchMethod.GENERIC if outcome.candidates else SearchMethod.NONE
