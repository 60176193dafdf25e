"""
Title Normalizer

Turns raw filenames and titles into catalog search phrases:
- Canonical lower-case form with collapsed separators
- Lexical variations (stop-words removed, spelled-out numbers as digits)
- Title extraction from image filenames

Pure text transforms, no network access.
"""

import re
from typing import Iterable

from coverscout.models import QuerySource, SearchQuery


class TitleNormalizer:
    """Normalize titles and derive search variations."""

    # Removed as whole words to build the stripped variation
    STOP_WORDS = ("the", "a", "an", "copy", "book", "novel")

    # Low-value spelled-out numbers swapped for digits
    NUMBER_WORDS = {
        "one": "1",
        "two": "2",
        "three": "3",
    }

    IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "svg", "webp", "gif")

    def __init__(self):
        self._separator_pattern = re.compile(r"[-_]")
        self._whitespace_pattern = re.compile(r"\s+")
        self._stop_word_pattern = re.compile(
            r"\b(?:%s)\b" % "|".join(self.STOP_WORDS),
            re.IGNORECASE,
        )
        self._number_patterns = [
            (re.compile(rf"\b{word}\b"), digit)
            for word, digit in self.NUMBER_WORDS.items()
        ]
        self._extension_pattern = re.compile(
            r"\.(?:%s)$" % "|".join(self.IMAGE_EXTENSIONS),
            re.IGNORECASE,
        )
        # "copy", "copy 2", "copy (3)" at the end of a name
        self._copy_suffix_pattern = re.compile(
            r"\s*-?\s*\bcopy\b\s*(?:\(\d+\)|\d+)?\s*$",
            re.IGNORECASE,
        )

    def normalize(self, raw_text: str) -> str:
        """
        Lower-case, turn ``-``/``_`` into spaces, collapse whitespace and trim.

        Args:
            raw_text: Title or filename fragment

        Returns:
            Canonical search phrase (may be empty)
        """
        text = raw_text.lower()
        text = self._separator_pattern.sub(" ", text)
        return self._collapse(text)

    def variations(self, raw_text: str) -> list[SearchQuery]:
        """
        Build the lexical variation set for a title.

        Always contains the normalized form and the unmodified input. Adds
        a stop-word stripped form and a number-swapped form when they
        differ from the normalized one. Order is stable and members are
        unique by text.

        Args:
            raw_text: Title as extracted from a filename

        Returns:
            Ordered, deduplicated list of SearchQuery
        """
        normalized = self.normalize(raw_text)

        queries = [
            SearchQuery(normalized, QuerySource.NORMALIZED),
            SearchQuery(raw_text, QuerySource.ORIGINAL),
        ]

        without_stop_words = self.strip_stop_words(normalized)
        if without_stop_words and without_stop_words != normalized:
            queries.append(SearchQuery(without_stop_words, QuerySource.LEXICAL_VARIANT))

        with_digits = self.swap_number_words(normalized)
        if with_digits != normalized:
            queries.append(SearchQuery(with_digits, QuerySource.LEXICAL_VARIANT))

        return unique_queries(queries)

    def strip_stop_words(self, text: str) -> str:
        """Remove stop-words as whole words."""
        return self._collapse(self._stop_word_pattern.sub("", text))

    def swap_number_words(self, text: str) -> str:
        """Replace ``one``/``two``/``three`` with digits."""
        for pattern, digit in self._number_patterns:
            text = pattern.sub(digit, text)
        return text

    def extract_from_filename(self, filename: str) -> str:
        """
        Extract a probable book title from an image filename.

        ``"My_Book - copy (2).jpg"`` becomes ``"My Book"``. Case is kept.
        """
        title = self._extension_pattern.sub("", filename)
        title = self._separator_pattern.sub(" ", title)

        # Repeated suffixes, e.g. "title copy copy 2"
        while True:
            stripped = self._copy_suffix_pattern.sub("", title)
            if stripped == title:
                break
            title = stripped

        return self._collapse(title)

    def _collapse(self, text: str) -> str:
        return self._whitespace_pattern.sub(" ", text).strip()


def unique_queries(queries: Iterable[SearchQuery]) -> list[SearchQuery]:
    """Drop empty and repeated query strings, keeping first-seen order."""
    seen = set()
    result = []
    for query in queries:
        if not query.text or query.text in seen:
            continue
        seen.add(query.text)
        result.append(query)
    return result
