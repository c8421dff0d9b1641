"""Tests for the FastAPI subtitle segmentation API.

WHY: Validates that the three endpoints behave correctly: happy paths,
validation errors, and the mapping of engine errors to HTTP status codes.

HOW: FastAPI TestClient drives the app in-process. The engine is not
mocked; it is pure and fast, so the tests assert on real segment output.
Segment lists in responses are validated against the packaged JSON Schema.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- Option defaults come from a cleared environment (see conftest)
"""

from __future__ import annotations

import jsonschema
import pytest
from fastapi.testclient import TestClient

from subtitle_segmenter import __version__
from subtitle_segmenter.server.app import app


@pytest.fixture
def client():
    return TestClient(app)


# ---------------------------------------------------------------------------
# POST /segments
# ---------------------------------------------------------------------------


class TestCreateSegments:

    def test_word_response(self, client, word_response, segments_schema):
        response = client.post("/segments", json={
            "transcript": word_response,
            "language": "en",
            "video_id": "vid",
        })
        assert response.status_code == 200
        body = response.json()
        jsonschema.validate({"segments": body["segments"]}, segments_schema)
        assert [s["text"] for s in body["segments"]] == ["Hello world.", "Next sentence."]
        assert body["segments"][0]["id"] == "optimized_segment_0"
        assert body["segments"][0]["video_id"] == "vid"

    def test_statistics_included(self, client, word_response):
        body = client.post("/segments", json={"transcript": word_response}).json()
        assert body["generation_stats"]["total_words"] == 4
        assert body["generation_stats"]["total_segments"] == 2
        assert body["generation_stats"]["total_duration"] == pytest.approx(3.8)
        assert body["optimization_stats"]["original_count"] == 2
        assert body["optimization_stats"]["improvements"] == []

    def test_without_optimization(self, client, word_response):
        body = client.post("/segments", json={
            "transcript": word_response,
            "video_id": "vid",
            "optimize": False,
        }).json()
        assert [s["id"] for s in body["segments"]] == ["vid_segment_0", "vid_segment_1"]
        assert body["optimization_stats"] is None

    def test_utterance_response(self, client, utterance_response):
        body = client.post("/segments", json={"transcript": utterance_response}).json()
        assert [s["text"] for s in body["segments"]] == [
            "Good morning everyone.",
            "Today we look at tides and why they matter.",
        ]

    def test_text_only_response(self, client):
        body = client.post("/segments", json={"transcript": {"text": "One. Two."}}).json()
        assert len(body["segments"]) == 2
        assert body["segments"][1]["start_seconds"] == pytest.approx(5.0)

    def test_empty_transcript(self, client):
        response = client.post("/segments", json={"transcript": {}})
        assert response.status_code == 200
        assert response.json()["segments"] == []

    def test_option_override(self, client, word_response):
        body = client.post("/segments", json={
            "transcript": word_response,
            "options": {"merge_short_segments": False, "max_segment_length_chars": 200},
        }).json()
        assert len(body["segments"]) == 2

    def test_unsorted_tokens_return_422(self, client):
        response = client.post("/segments", json={"transcript": {"words": [
            {"text": "b", "start": 1000, "end": 1200},
            {"text": "a", "start": 500, "end": 700},
        ]}})
        assert response.status_code == 422
        assert "sorted" in response.json()["detail"]

    def test_missing_transcript_returns_422(self, client):
        assert client.post("/segments", json={"language": "en"}).status_code == 422

    def test_bad_option_type_returns_422(self, client, word_response):
        response = client.post("/segments", json={
            "transcript": word_response,
            "options": {"max_segment_length_chars": "lots"},
        })
        assert response.status_code == 422

    def test_misconfigured_environment_returns_500(self, client, word_response, monkeypatch):
        monkeypatch.setenv("SUBTITLE_MAX_SEGMENT_DURATION", "forever")
        response = client.post("/segments", json={"transcript": word_response})
        assert response.status_code == 500
        assert "forever" not in response.json()["detail"]


# ---------------------------------------------------------------------------
# POST /optimize
# ---------------------------------------------------------------------------


class TestOptimizeSegments:

    def test_short_segments_merged(self, client, segments_schema):
        response = client.post("/optimize", json={"segments": [
            {"id": "a", "text": "Hi", "start_seconds": 0.0, "end_seconds": 0.4},
            {"id": "b", "text": "there friend.", "start_seconds": 0.5, "end_seconds": 1.2},
        ]})
        assert response.status_code == 200
        body = response.json()
        jsonschema.validate({"segments": body["segments"]}, segments_schema)
        assert [s["text"] for s in body["segments"]] == ["Hi there friend."]
        assert body["optimization_stats"]["improvements"] == ["merged 1 short segments"]
        assert body["generation_stats"] is None

    def test_passes_can_be_disabled(self, client):
        body = client.post("/optimize", json={
            "segments": [
                {"text": "Hi", "start_seconds": 0.0, "end_seconds": 0.4},
                {"text": "there friend.", "start_seconds": 0.5, "end_seconds": 1.2},
            ],
            "options": {"merge_short_segments": False},
        }).json()
        assert len(body["segments"]) == 2

    def test_empty_list(self, client):
        body = client.post("/optimize", json={"segments": []}).json()
        assert body["segments"] == []
        assert body["optimization_stats"]["optimized_count"] == 0

    def test_unsorted_segments_return_422(self, client):
        response = client.post("/optimize", json={"segments": [
            {"text": "A perfectly normal line of text.", "start_seconds": 5.0, "end_seconds": 6.0},
            {"text": "ok", "start_seconds": 0.0, "end_seconds": 0.5},
        ]})
        assert response.status_code == 422
        assert "sorted" in response.json()["detail"]

    def test_negative_duration_returns_422(self, client):
        response = client.post("/optimize", json={"segments": [
            {"text": "backwards", "start_seconds": 3.0, "end_seconds": 2.0},
        ]})
        assert response.status_code == 422

    def test_confidence_out_of_range_returns_422(self, client):
        response = client.post("/optimize", json={"segments": [
            {"text": "Hi", "start_seconds": 0.0, "end_seconds": 1.0, "confidence": 1.5},
        ]})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}
