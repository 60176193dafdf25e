"""
Unit tests for title normalization and lexical variations.
"""

import pytest

from coverscout.models import QuerySource
from coverscout.search.title_normalizer import TitleNormalizer


@pytest.fixture
def normalizer():
    return TitleNormalizer()


class TestNormalize:
    """Tests for TitleNormalizer.normalize."""

    def test_lowercases_and_collapses_separators(self, normalizer):
        assert normalizer.normalize("The_Great-Gatsby") == "the great gatsby"

    def test_collapses_whitespace_runs(self, normalizer):
        assert normalizer.normalize("  War   and\tPeace \n") == "war and peace"

    def test_mixed_separator_runs(self, normalizer):
        assert normalizer.normalize("lord__of - the_rings") == "lord of the rings"

    def test_empty_input(self, normalizer):
        assert normalizer.normalize("") == ""


class TestVariations:
    """Tests for TitleNormalizer.variations."""

    def test_contains_normalized_and_original(self, normalizer):
        variations = [q.text for q in normalizer.variations("Dune_Messiah")]

        assert "dune messiah" in variations
        assert "Dune_Messiah" in variations
        assert len(variations) >= 2

    def test_single_member_when_original_is_normalized(self, normalizer):
        variations = normalizer.variations("dune")

        assert [q.text for q in variations] == ["dune"]

    def test_normalized_form_comes_first(self, normalizer):
        variations = normalizer.variations("Foundation")

        assert variations[0].text == "foundation"
        assert variations[0].source == QuerySource.NORMALIZED
        assert variations[1].text == "Foundation"
        assert variations[1].source == QuerySource.ORIGINAL

    def test_stop_words_removed(self, normalizer):
        variations = {q.text: q.source for q in normalizer.variations("The Great Gatsby")}

        assert variations["great gatsby"] == QuerySource.LEXICAL_VARIANT

    def test_stop_words_match_whole_words_only(self, normalizer):
        # "an" inside "anathem" must not be stripped
        variations = [q.text for q in normalizer.variations("Anathem")]

        assert variations == ["anathem", "Anathem"]

    def test_stop_word_only_title_adds_nothing(self, normalizer):
        variations = [q.text for q in normalizer.variations("The Book")]

        assert variations == ["the book", "The Book"]

    def test_number_words_swapped(self, normalizer):
        variations = [q.text for q in normalizer.variations("Book One")]

        assert variations == ["book one", "Book One", "one", "book 1"]

    def test_all_number_words(self, normalizer):
        variations = [q.text for q in normalizer.variations("one two three")]

        assert "1 2 3" in variations

    def test_number_words_inside_words_untouched(self, normalizer):
        variations = [q.text for q in normalizer.variations("Someone")]

        assert variations == ["someone", "Someone"]

    def test_no_duplicates(self, normalizer):
        variations = [q.text for q in normalizer.variations("the one")]

        assert len(variations) == len(set(variations))

    def test_empty_input_yields_nothing(self, normalizer):
        assert normalizer.variations("") == []


class TestExtractFromFilename:
    """Tests for TitleNormalizer.extract_from_filename."""

    def test_copy_suffix_with_counter(self, normalizer):
        assert normalizer.extract_from_filename("My_Book - copy (2).jpg") == "My Book"

    @pytest.mark.parametrize("filename, expected", [
        ("Dune.png", "Dune"),
        ("Dune.JPEG", "Dune"),
        ("dune-messiah.webp", "dune messiah"),
        ("Dune copy.gif", "Dune"),
        ("Dune COPY 3.svg", "Dune"),
        ("Dune copy copy.jpg", "Dune"),
        ("Children_of__Dune.jpg", "Children of Dune"),
    ])
    def test_common_patterns(self, normalizer, filename, expected):
        assert normalizer.extract_from_filename(filename) == expected

    def test_keeps_case(self, normalizer):
        assert normalizer.extract_from_filename("The_HOBBIT.jpg") == "The HOBBIT"

    def test_copy_inside_word_kept(self, normalizer):
        assert normalizer.extract_from_filename("Copycat.jpg") == "Copycat"

    def test_unknown_extension_kept(self, normalizer):
        assert normalizer.extract_from_filename("scan.tiff") == "scan.tiff"

    def test_extension_only_in_the_middle_kept(self, normalizer):
        assert normalizer.extract_from_filename("cover.jpg.bak") == "cover.jpg.bak"
