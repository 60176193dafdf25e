"""
Perceptual Hash Primitive

Thin adapter over ``imagehash.phash``:
- compute_hash(bytes) -> ImageHash (8x8 grid, 64 bits)
- hex_encode(hash) -> str
- hamming_distance(hash, hash) -> int

The hasher is process-wide and initialized lazily on first use.
"""

import io
import threading
from typing import Optional

import httpx
import imagehash
from loguru import logger
from PIL import Image, UnidentifiedImageError


HASH_SIZE = 8
HASH_BITS = HASH_SIZE * HASH_SIZE


class HashComputationError(Exception):
    """An image could not be fetched, decoded or hashed."""


class PerceptualHasher:
    """pHash over an 8x8 grid."""

    def __init__(self, hash_size: int = HASH_SIZE):
        self.hash_size = hash_size
        self._ready = False
        self._lock = threading.Lock()

    @property
    def bit_length(self) -> int:
        return self.hash_size * self.hash_size

    def ensure_ready(self) -> "PerceptualHasher":
        """Load Pillow's decoder plugins once. Idempotent."""
        if self._ready:
            return self
        with self._lock:
            if not self._ready:
                Image.init()
                self._ready = True
                logger.debug(f"Perceptual hasher initialized ({self.bit_length} bits)")
        return self

    def compute_hash(self, image_bytes: bytes) -> imagehash.ImageHash:
        """
        Hash raw image bytes.

        Raises:
            HashComputationError: Bytes are empty, not a decodable image,
                or claim a size beyond Pillow's decompression bomb limit
        """
        self.ensure_ready()

        if not image_bytes:
            raise HashComputationError("Empty image data")

        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                if image.mode != "RGB":
                    image = image.convert("RGB")
                return imagehash.phash(image, hash_size=self.hash_size)
        # Pillow plugins raise SyntaxError on some corrupt data
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
            raise HashComputationError(f"Failed to decode image: {e}") from e

    @staticmethod
    def hex_encode(image_hash: imagehash.ImageHash) -> str:
        return str(image_hash)

    @staticmethod
    def hamming_distance(first: imagehash.ImageHash, second: imagehash.ImageHash) -> int:
        return int(first - second)


_hasher: Optional[PerceptualHasher] = None
_hasher_lock = threading.Lock()


def get_hasher() -> PerceptualHasher:
    """Return the process-wide hasher, creating it on first call."""
    global _hasher
    if _hasher is None:
        with _hasher_lock:
            if _hasher is None:
                _hasher = PerceptualHasher().ensure_ready()
    return _hasher


class ImageFetcher:
    """Download image bytes for hashing."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def fetch(self, url: str) -> bytes:
        """
        Fetch an image.

        Raises:
            HashComputationError: Transport failure or non-success status
        """
        client = await self._get_client()

        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise HashComputationError(f"Failed to fetch image {url}: {e}") from e

        if not response.is_success:
            raise HashComputationError(
                f"Failed to fetch image {url}: {response.status_code} {response.reason_phrase}"
            )

        return response.content

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
