"""
Candidate Search Module

Derives search phrases from filenames and drives the two-tier catalog search.
"""

from coverscout.search.title_normalizer import TitleNormalizer
from coverscout.search.translation import (
    MultilingualExpander,
    LibreTranslateClient,
    TranslationError,
    TARGET_LANGUAGES,
    COMMON_TRANSLATIONS,
)
from coverscout.search.orchestrator import SearchOrchestrator

__all__ = [
    # Normalization
    "TitleNormalizer",
    # Translation
    "MultilingualExpander",
    "LibreTranslateClient",
    "TranslationError",
    "TARGET_LANGUAGES",
    "COMMON_TRANSLATIONS",
    # Orchestration
    "SearchOrchestrator",
]
