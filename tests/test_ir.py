"""Tests for Segment serialization in the intermediate representation."""

import pytest

from subtitle_segmenter.core.ir import Segment


class TestSegmentFromDict:

    def test_defaults(self):
        seg = Segment.from_dict({"text": "Hi", "start_seconds": 0, "end_seconds": 1.5})
        assert seg == Segment("", "Hi", 0.0, 1.5, 1.0, "", "")

    def test_round_trip_of_full_record(self):
        seg = Segment("s1", "Hello.", 1.0, 2.0, 0.8, "en", "vid")
        assert Segment.from_dict(seg.to_dict()) == seg

    @pytest.mark.parametrize("data", ["x", 3, None, ["text"]])
    def test_non_object_rejected(self, data):
        with pytest.raises(ValueError, match="object"):
            Segment.from_dict(data)

    @pytest.mark.parametrize("key", ["text", "start_seconds", "end_seconds"])
    def test_missing_required_field(self, key):
        data = {"text": "Hi", "start_seconds": 0.0, "end_seconds": 1.0}
        del data[key]
        with pytest.raises(ValueError, match=key):
            Segment.from_dict(data)

    @pytest.mark.parametrize("key, value", [
        ("text", 42),
        ("id", 7),
        ("language", None),
        ("start_seconds", "0.5"),
        ("end_seconds", True),
        ("confidence", float("nan")),
        ("end_seconds", float("inf")),
    ])
    def test_wrong_type_rejected(self, key, value):
        data = {"text": "Hi", "start_seconds": 0.0, "end_seconds": 1.0}
        data[key] = value
        with pytest.raises(ValueError, match=key):
            Segment.from_dict(data)
