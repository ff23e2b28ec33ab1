"""
Unit tests for upload spec parsing.
"""

import pytest

from uploader.common.errors import InvalidSpec
from uploader.ingest.rules import Bounds, ThumbnailRule, UploadSpec


class TestFromDict:
    """Test both accepted input styles."""

    def test_list_style(self):
        spec = UploadSpec.from_dict({
            "img_1": [
                {"name": "img_1_thumb_1", "w": 100, "h": 100},
                {"name": "img_1_thumb_2", "w": 50, "h": 50},
            ],
            "img_2": [],
        })

        rule = spec.rule_for("img_1")
        assert rule.downsize is None
        assert rule.thumbnails == (
            ThumbnailRule(name="img_1_thumb_1", max_width=100, max_height=100),
            ThumbnailRule(name="img_1_thumb_2", max_width=50, max_height=50),
        )
        assert spec.rule_for("img_2").thumbnails == ()

    def test_mapping_style_with_downsize(self):
        spec = UploadSpec.from_dict({
            "photo": {
                "downsize": {"w": 1600},
                "thumbs": [{"name": "photo_small", "h": 120}],
            },
        })

        rule = spec.rule_for("photo")
        assert rule.downsize == Bounds(max_width=1600, max_height=None)
        assert rule.thumbnails[0].max_width is None
        assert rule.thumbnails[0].max_height == 120

    def test_long_bound_names(self):
        spec = UploadSpec.from_dict(
            {"photo": [{"name": "t", "max_width": 10, "max_height": 20}]})
        assert spec.rule_for("photo").thumbnails[0] == ThumbnailRule(
            name="t", max_width=10, max_height=20)

    def test_field_order_is_kept(self):
        spec = UploadSpec.from_dict({"b": [], "a": [], "c": []})
        assert [rule.name for rule in spec] == ["b", "a", "c"]


class TestValidation:
    """Test malformed specs are rejected."""

    def test_empty_spec(self):
        with pytest.raises(InvalidSpec):
            UploadSpec.from_dict({})

    def test_thumbnail_without_bounds(self):
        with pytest.raises(InvalidSpec, match="at least one"):
            UploadSpec.from_dict({"photo": [{"name": "thumb"}]})

    def test_downsize_without_bounds(self):
        with pytest.raises(InvalidSpec):
            UploadSpec.from_dict({"photo": {"downsize": {}}})

    @pytest.mark.parametrize("bad", [0, -5, "100", 1.5, True])
    def test_bounds_must_be_positive_integers(self, bad):
        with pytest.raises(InvalidSpec):
            UploadSpec.from_dict({"photo": [{"name": "thumb", "w": bad}]})

    def test_thumbnail_needs_a_name(self):
        with pytest.raises(InvalidSpec, match="name"):
            UploadSpec.from_dict({"photo": [{"w": 10}]})

    def test_duplicate_thumbnail_names(self):
        with pytest.raises(InvalidSpec, match="Duplicate"):
            UploadSpec.from_dict({
                "a": [{"name": "thumb", "w": 10}],
                "b": [{"name": "thumb", "w": 20}],
            })

    def test_thumbnail_name_clashing_with_field(self):
        with pytest.raises(InvalidSpec, match="Duplicate"):
            UploadSpec.from_dict({
                "a": [{"name": "b", "w": 10}],
                "b": [],
            })

    def test_thumbs_must_be_a_list(self):
        with pytest.raises(InvalidSpec):
            UploadSpec.from_dict({"photo": "thumb"})


class TestLookups:
    """Test name helpers."""

    @pytest.fixture
    def spec(self):
        return UploadSpec.from_dict({
            "photo": [{"name": "photo_thumb", "w": 100, "h": 100}],
            "doc": [],
        })

    def test_names_lists_fields_then_thumbnails(self, spec):
        assert spec.names() == ["photo", "doc", "photo_thumb"]

    def test_owner_of(self, spec):
        assert spec.owner_of("photo_thumb").name == "photo"
        assert spec.owner_of("photo") is None

    def test_rule_for_unknown(self, spec):
        with pytest.raises(InvalidSpec):
            spec.rule_for("missing")

    def test_contains(self, spec):
        assert "photo" in spec
        assert "photo_thumb" not in spec
