"""
Multilingual Variation Expander

Augments title variations with machine translations and a curated table
of alternate-script titles. Translation is advisory: every failure is
swallowed and simply contributes no variation.
"""

import asyncio
import os
from typing import Optional

import httpx
from loguru import logger

from coverscout.models import QuerySource, SearchQuery
from coverscout.search.title_normalizer import TitleNormalizer, unique_queries


# Priority order for translation targets
TARGET_LANGUAGES = [
    "en",  # English
    "es",  # Spanish
    "fr",  # French
    "de",  # German
    "it",  # Italian
    "pt",  # Portuguese
    "ru",  # Russian
    "ja",  # Japanese
    "zh",  # Chinese
    "ko",  # Korean
    "ar",  # Arabic
    "hi",  # Hindi
]

# Curated alternate titles for well-known books, keyed by normalized title
COMMON_TRANSLATIONS = {
    "harry potter": ["harry potter", "гарри поттер", "ハリー・ポッター", "哈利·波特"],
    "lord of the rings": ["lord of the rings", "señor de los anillos", "властелин колец"],
    "the little prince": ["the little prince", "le petit prince", "el principito", "маленький принц"],
    "war and peace": ["war and peace", "война и мир", "guerra y paz", "guerre et paix"],
}


class TranslationError(Exception):
    """A single translation attempt failed."""


class LibreTranslateClient:
    """
    Client for a LibreTranslate-compatible endpoint.

    Best-effort only. Public instances are rate limited, so callers
    should keep the number of target languages small.
    """

    DEFAULT_URL = "https://libretranslate.com/translate"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        source_language: str = "en",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or os.getenv("TRANSLATION_URL", self.DEFAULT_URL)
        self.api_key = api_key or os.getenv("TRANSLATION_API_KEY")
        self.source_language = source_language
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def translate(self, text: str, target_language: str) -> str:
        """
        Translate text into the target language.

        Raises:
            TranslationError: On transport errors, non-200 status or
                a response without ``translatedText``.
        """
        client = await self._get_client()

        payload = {
            "q": text,
            "source": self.source_language,
            "target": target_language,
            "format": "text",
        }
        if self.api_key:
            payload["api_key"] = self.api_key

        try:
            response = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise TranslationError(f"Translation to {target_language} failed: {e}") from e

        if response.status_code != 200:
            raise TranslationError(
                f"Translation to {target_language} failed: "
                f"{response.status_code} {response.reason_phrase}"
            )

        try:
            translated = response.json()["translatedText"]
        except (ValueError, KeyError, TypeError) as e:
            raise TranslationError(f"Malformed translation response: {e}") from e

        if not isinstance(translated, str):
            raise TranslationError("Malformed translation response: translatedText is not a string")

        return translated

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class MultilingualExpander:
    """
    Expand a title into lexical, curated and translated variations.

    The lexical variations and curated alternates are always present;
    translations are added only when they succeed.
    """

    def __init__(
        self,
        normalizer: Optional[TitleNormalizer] = None,
        translator: Optional[LibreTranslateClient] = None,
        max_languages: int = 5,
        curated: Optional[dict[str, list[str]]] = None,
    ):
        self.normalizer = normalizer or TitleNormalizer()
        self.translator = translator
        self.max_languages = max_languages
        self.curated = COMMON_TRANSLATIONS if curated is None else curated

    @property
    def translation_enabled(self) -> bool:
        return self.translator is not None and self.max_languages > 0

    async def expand(self, raw_text: str, max_languages: Optional[int] = None) -> list[SearchQuery]:
        """
        Build the full variation list for a title.

        Args:
            raw_text: Title as extracted from a filename
            max_languages: Number of TARGET_LANGUAGES to try, in priority
                order. Defaults to the instance setting.

        Returns:
            Ordered, deduplicated list of SearchQuery
        """
        normalized = self.normalizer.normalize(raw_text)
        queries = list(self.normalizer.variations(raw_text))

        for alternate in self.curated.get(normalized, []):
            queries.append(SearchQuery(alternate, QuerySource.TRANSLATED))

        if max_languages is None:
            max_languages = self.max_languages

        if self.translator is not None and normalized and max_languages > 0:
            languages = TARGET_LANGUAGES[:max_languages]
            translations = await asyncio.gather(
                *(self._try_translate(normalized, lang) for lang in languages)
            )
            for translated in translations:
                if translated:
                    queries.append(SearchQuery(translated, QuerySource.TRANSLATED))

        return unique_queries(queries)

    async def _try_translate(self, normalized: str, language: str) -> Optional[str]:
        try:
            translated = await self.translator.translate(normalized, language)
        except Exception as e:
            logger.debug(f"Translation to {language} skipped: {e}")
            return None

        translated = translated.strip()
        if not translated or translated == normalized:
            return None
        return translated
