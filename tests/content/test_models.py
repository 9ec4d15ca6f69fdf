"""Tests for content domain models."""

from datetime import UTC, date, datetime
from pathlib import Path

import pytest
from fieldnotes.content.models import (
    RECOGNIZED_KEYS,
    ContentKind,
    Page,
    Post,
    slugify,
)
from pydantic import ValidationError


def _make_post(**kwargs: object) -> Post:
    fields: dict[str, object] = {
        "title": "Retries are a product decision",
        "date": datetime(2025, 3, 1, 9, 30, tzinfo=UTC),
        "slug": "retries",
    }
    fields.update(kwargs)
    return Post.model_validate(fields)


class TestContentKind:
    def test_values(self):
        assert ContentKind.POST == "post"
        assert ContentKind.PAGE == "page"


class TestRecognizedKeys:
    def test_matches_front_matter_contract(self):
        assert RECOGNIZED_KEYS == {
            "layout", "title", "date", "categories", "comments", "tags", "icon", "order",
        }


class TestSlugify:
    def test_basic(self):
        assert slugify("Retries Are a Product Decision") == "retries-are-a-product-decision"

    def test_punctuation_collapses(self):
        assert slugify("Tools, tools & more tools!") == "tools-tools-more-tools"

    def test_accents_are_folded(self):
        assert slugify("Café agents") == "cafe-agents"

    def test_nothing_usable(self):
        assert slugify("!!!") == ""


class TestPost:
    def test_defaults(self):
        post = _make_post()
        assert post.layout == "post"
        assert post.comments is True
        assert post.categories == []
        assert post.tags == []
        assert post.body == ""
        assert post.kind == ContentKind.POST

    def test_terms_from_string_split_on_whitespace(self):
        post = _make_post(tags="agents retries")
        assert post.tags == ["agents", "retries"]

    def test_terms_deduplicated_in_order(self):
        post = _make_post(categories=["Agents", "Engineering", "Agents"])
        assert post.categories == ["Agents", "Engineering"]

    def test_comments_coerced_from_string(self):
        assert _make_post(comments="false").comments is False
        assert _make_post(comments="yes").comments is True

    def test_invalid_comments_rejected(self):
        with pytest.raises(ValidationError):
            _make_post(comments="maybe")

    def test_naive_date_rejected(self):
        with pytest.raises(ValidationError, match="timezone-aware"):
            _make_post(date=datetime(2025, 3, 1, 9, 30))

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            _make_post(title="")

    def test_identity_is_date_and_folded_title(self):
        post = _make_post(title="  Retries Are Hard ")
        assert post.identity == (date(2025, 3, 1), "retries are hard")

    def test_word_count(self):
        assert _make_post(body="one two\nthree").word_count == 3

    def test_unknown_keys_kept_in_extra(self):
        post = _make_post(extra={"pin": "true"})
        assert post.extra == {"pin": "true"}


class TestPage:
    def test_defaults(self):
        page = Page(title="About", slug="about")
        assert page.layout == "page"
        assert page.icon == ""
        assert page.order is None
        assert page.source_path == Path(".")
        assert page.kind == ContentKind.PAGE

    def test_order_coerced(self):
        assert Page(title="About", slug="about", order="4").order == 4

    def test_invalid_order_rejected(self):
        with pytest.raises(ValidationError):
            Page(title="About", slug="about", order="first")
