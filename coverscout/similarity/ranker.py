"""
Similarity Ranker

Scores catalog candidates against a target image by perceptual-hash
Hamming distance, then filters, sorts and truncates.

similarity = (1 - distance / bit_length) * 100, rounded half-up to 2 places.
"""

import asyncio
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Optional

from loguru import logger

from coverscout.cancellation import CancellationToken, check_cancelled, gather_or_cancel
from coverscout.models import CatalogCandidate, ScoredMatch
from coverscout.similarity.phash import (
    HASH_BITS,
    HashComputationError,
    ImageFetcher,
    PerceptualHasher,
    get_hasher,
)


ProgressCallback = Callable[[int, int, str], Any]


def compute_similarity(hamming_distance: int, max_distance: int = HASH_BITS) -> float:
    """
    Convert a Hamming distance into a similarity percentage.

    Examples:
        0 of 64 bits -> 100.0, 16 -> 75.0, 64 -> 0.0
    """
    if max_distance <= 0:
        raise ValueError("Bit length must be positive.")
    if hamming_distance < 0:
        raise ValueError("Hamming distance cannot be negative.")

    ratio = Decimal(hamming_distance) / Decimal(max_distance)
    similarity = (Decimal(1) - ratio) * 100
    similarity = similarity.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return max(0.0, min(100.0, float(similarity)))


class SimilarityRanker:
    """Rank candidates by visual similarity to a target image."""

    def __init__(
        self,
        hasher: Optional[PerceptualHasher] = None,
        fetcher: Optional[ImageFetcher] = None,
        concurrency: int = 1,
    ):
        """
        Initialize ranker.

        Args:
            hasher: Hash primitive; the process-wide hasher if omitted
            fetcher: Downloads candidate covers
            concurrency: Parallel cover downloads (1 = sequential)
        """
        self.hasher = hasher or get_hasher()
        self.fetcher = fetcher or ImageFetcher()
        self.concurrency = max(1, concurrency)

    async def hash_image(self, image_bytes: bytes):
        """Hash image bytes off the event loop."""
        return await asyncio.to_thread(self.hasher.compute_hash, image_bytes)

    async def rank(
        self,
        target_image_bytes: bytes,
        candidates: list[CatalogCandidate],
        threshold: float,
        top_n: int,
        on_progress: Optional[ProgressCallback] = None,
        matched_by_title: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> list[ScoredMatch]:
        """
        Hash the target and rank candidates against it.

        Raises:
            HashComputationError: The target image cannot be hashed
        """
        target_hash = await self.hash_image(target_image_bytes)
        return await self.rank_against_hash(
            target_hash,
            candidates,
            threshold,
            top_n,
            on_progress=on_progress,
            matched_by_title=matched_by_title,
            cancel_token=cancel_token,
        )

    async def rank_against_hash(
        self,
        target_hash,
        candidates: list[CatalogCandidate],
        threshold: float,
        top_n: int,
        on_progress: Optional[ProgressCallback] = None,
        matched_by_title: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> list[ScoredMatch]:
        """
        Rank candidates against an already computed target hash.

        Candidates whose cover cannot be fetched or hashed are skipped.
        Matches below ``threshold`` are dropped; the rest are sorted by
        similarity (stable, so ties keep discovery order) and cut to
        ``top_n``.
        """
        total = len(candidates)
        scored: list[Optional[ScoredMatch]] = [None] * total

        if self.concurrency == 1:
            for index, candidate in enumerate(candidates):
                check_cancelled(cancel_token)
                self._notify(on_progress, index + 1, total, candidate.title)
                scored[index] = await self._score(target_hash, candidate, matched_by_title)
        else:
            semaphore = asyncio.Semaphore(self.concurrency)
            started = 0

            async def bounded(index: int, candidate: CatalogCandidate):
                nonlocal started
                async with semaphore:
                    check_cancelled(cancel_token)
                    started += 1
                    self._notify(on_progress, started, total, candidate.title)
                    scored[index] = await self._score(target_hash, candidate, matched_by_title)

            await gather_or_cancel(bounded(i, c) for i, c in enumerate(candidates))

        matches = [
            match for match in scored
            if match is not None and match.similarity >= threshold
        ]
        matches.sort(key=lambda match: match.similarity, reverse=True)

        logger.info(
            f"Compared {total} candidates, {len(matches)} at or above {threshold}% similarity"
        )
        return matches[:max(0, top_n)]

    async def _score(
        self,
        target_hash,
        candidate: CatalogCandidate,
        matched_by_title: bool,
    ) -> Optional[ScoredMatch]:
        try:
            cover_bytes = await self.fetcher.fetch(candidate.cover_url)
            candidate_hash = await self.hash_image(cover_bytes)
        except HashComputationError as e:
            logger.warning(f"Failed to compare with book: {candidate.title}: {e}")
            return None

        distance = self.hasher.hamming_distance(target_hash, candidate_hash)
        return ScoredMatch(
            candidate=candidate,
            similarity=compute_similarity(distance, self.hasher.bit_length),
            hash_hex=self.hasher.hex_encode(candidate_hash),
            hamming_distance=distance,
            matched_by_title=matched_by_title,
        )

    @staticmethod
    def _notify(on_progress: Optional[ProgressCallback], current: int, total: int, title: str) -> None:
        if on_progress is None:
            return
        try:
            on_progress(current, total, title)
        except Exception as e:
            logger.warning(f"Progress callback raised: {e}")
