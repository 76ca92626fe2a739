"""Tests for catalog normalization: truncation and adult-flag derivation."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mangasync.models.catalog import MANGA_TITLE_WIDTH, TAG_TITLE_WIDTH
from mangasync.schemas.catalog import MangaSchema, TagSchema
from mangasync.services.normalization import (
    derive_nsfw,
    manga_row,
    normalize_manga,
    tag_row,
    truncate,
)
from tests.conftest import make_manga, make_tag


class TestTruncate:
    def test_none_passes_through(self) -> None:
        assert truncate(None, 10) is None

    def test_short_value_unchanged(self) -> None:
        assert truncate("Berserk", 84) == "Berserk"

    def test_cuts_by_character_not_byte(self) -> None:
        assert truncate("ベルセルク", 3) == "ベルセ"

    @given(value=st.text(max_size=300), width=st.integers(min_value=0, max_value=300))
    def test_result_is_prefix_within_width(self, value: str, width: int) -> None:
        result = truncate(value, width)
        assert result is not None
        assert len(result) <= width
        assert value.startswith(result)


class TestDeriveNsfw:
    @pytest.mark.parametrize(
        ("nsfw", "content_rating", "expected"),
        [
            (1, None, True),
            (1, "safe", True),
            (None, "Adult", True),
            (None, "ADULT", True),
            (None, "adult", True),
            (0, "adult", True),
            (-1, "Adult", True),
            (0, None, False),
            (None, None, False),
            (None, "suggestive", False),
            (0, "safe", False),
        ],
    )
    def test_precedence(self, nsfw: int | None, content_rating: str | None, expected: bool) -> None:
        assert derive_nsfw(nsfw, content_rating) is expected


class TestRows:
    def test_manga_row_truncates_title_to_column_width(self) -> None:
        manga = MangaSchema.model_validate(make_manga(title="x" * 200))
        row = manga_row(manga)
        assert row["title"] == "x" * MANGA_TITLE_WIDTH
        assert row["id"] == 42

    def test_manga_row_uses_stored_flag_name(self) -> None:
        manga = MangaSchema.model_validate(make_manga(content_rating="Adult"))
        row = manga_row(manga)
        assert row["is_nsfw"] is True
        assert "nsfw" not in row
        assert "content_rating" not in row

    def test_tag_row_truncates_title(self) -> None:
        tag = TagSchema.model_validate(make_tag(title="t" * 100))
        assert tag_row(tag)["title"] == "t" * TAG_TITLE_WIDTH


class TestNormalizeManga:
    def test_reports_flag_as_number_and_rating(self) -> None:
        adult = normalize_manga(MangaSchema.model_validate(make_manga(content_rating="adult")))
        assert adult.nsfw == 1
        assert adult.content_rating == "ADULT"

        safe = normalize_manga(MangaSchema.model_validate(make_manga(content_rating="safe")))
        assert safe.nsfw == 0
        assert safe.content_rating is None

    def test_tags_deduplicated_and_sorted(self) -> None:
        manga = MangaSchema.model_validate(
            make_manga(
                tags=[
                    make_tag(9, title="Drama"),
                    make_tag(3, title="Comedy"),
                    make_tag(9, title="Drama v2"),
                ]
            )
        )
        tags = normalize_manga(manga).tags
        assert [tag.tag_id for tag in tags] == [3, 9]
        assert tags[1].title == "Drama v2"
