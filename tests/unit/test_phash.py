"""
Unit tests for the perceptual hash primitive and image fetcher.
"""

import httpx
import pytest

from coverscout.similarity.phash import (
    HASH_BITS,
    HashComputationError,
    ImageFetcher,
    PerceptualHasher,
    get_hasher,
)
from tests.fakes import image_to_bytes, png_claiming_size


class TestPerceptualHasher:
    """Tests for PerceptualHasher."""

    def test_process_wide_instance(self):
        assert get_hasher() is get_hasher()

    def test_bit_length(self):
        assert PerceptualHasher().bit_length == HASH_BITS == 64

    def test_ensure_ready_is_idempotent(self):
        hasher = PerceptualHasher()

        assert hasher.ensure_ready() is hasher
        assert hasher.ensure_ready() is hasher

    def test_hex_encoding_length(self, sample_cover_bytes):
        hasher = get_hasher()

        encoded = hasher.hex_encode(hasher.compute_hash(sample_cover_bytes))

        assert len(encoded) == 16
        int(encoded, 16)

    def test_identical_images_have_zero_distance(self, sample_cover_bytes):
        hasher = get_hasher()

        first = hasher.compute_hash(sample_cover_bytes)
        second = hasher.compute_hash(sample_cover_bytes)

        assert hasher.hamming_distance(first, second) == 0

    def test_format_does_not_matter(self, sample_book_cover_image):
        hasher = get_hasher()

        png = hasher.compute_hash(image_to_bytes(sample_book_cover_image, "PNG"))
        bmp = hasher.compute_hash(image_to_bytes(sample_book_cover_image, "BMP"))

        assert hasher.hamming_distance(png, bmp) == 0

    def test_resized_image_is_close(self, sample_book_cover_image):
        hasher = get_hasher()
        smaller = sample_book_cover_image.resize((150, 225))

        original = hasher.compute_hash(image_to_bytes(sample_book_cover_image))
        resized = hasher.compute_hash(image_to_bytes(smaller))

        assert hasher.hamming_distance(original, resized) <= 6

    def test_grayscale_input_accepted(self, sample_book_cover_image):
        hasher = get_hasher()

        image_hash = hasher.compute_hash(image_to_bytes(sample_book_cover_image.convert("L")))

        assert len(hasher.hex_encode(image_hash)) == 16

    def test_different_images_differ(self, sample_book_cover_image, noise_image):
        hasher = get_hasher()

        cover = hasher.compute_hash(image_to_bytes(sample_book_cover_image))
        noise = hasher.compute_hash(image_to_bytes(noise_image))
        flipped = hasher.compute_hash(image_to_bytes(sample_book_cover_image.rotate(180)))

        assert hasher.hamming_distance(cover, noise) > 0
        assert hasher.hamming_distance(cover, flipped) > 0

    def test_empty_bytes_rejected(self):
        with pytest.raises(HashComputationError, match="Empty"):
            get_hasher().compute_hash(b"")

    def test_undecodable_bytes_rejected(self):
        with pytest.raises(HashComputationError):
            get_hasher().compute_hash(b"definitely not an image")

    def test_decompression_bomb_rejected(self):
        with pytest.raises(HashComputationError):
            get_hasher().compute_hash(png_claiming_size(20000, 20000))

    def test_truncated_image_rejected(self, sample_book_cover_image):
        jpeg = image_to_bytes(sample_book_cover_image, "JPEG")

        with pytest.raises(HashComputationError):
            get_hasher().compute_hash(jpeg[: len(jpeg) // 3])


@pytest.mark.asyncio
class TestImageFetcher:
    """Tests for ImageFetcher.fetch."""

    async def test_returns_body(self, sample_cover_bytes):
        fetcher = ImageFetcher(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=sample_cover_bytes)),
        )

        data = await fetcher.fetch("https://images.test/dune.jpg")
        await fetcher.close()

        assert data == sample_cover_bytes

    async def test_error_status_raises(self):
        fetcher = ImageFetcher(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

        with pytest.raises(HashComputationError, match="404"):
            await fetcher.fetch("https://images.test/missing.jpg")

    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        fetcher = ImageFetcher(transport=httpx.MockTransport(handler))

        with pytest.raises(HashComputationError):
            await fetcher.fetch("https://images.test/slow.jpg")

    async def test_close_is_safe_before_use(self):
        fetcher = ImageFetcher()

        await fetcher.close()
