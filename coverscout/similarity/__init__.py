"""
Similarity Module

Perceptual hashing of covers and ranking by Hamming distance.
"""

from coverscout.similarity.phash import (
    PerceptualHasher,
    ImageFetcher,
    HashComputationError,
    get_hasher,
    HASH_BITS,
)
from coverscout.similarity.ranker import SimilarityRanker, compute_similarity

__all__ = [
    # Hashing
    "PerceptualHasher",
    "ImageFetcher",
    "HashComputationError",
    "get_hasher",
    "HASH_BITS",
    # Ranking
    "SimilarityRanker",
    "compute_similarity",
]
