"""Tests for the ASR response adapter.

WHY: The adapter is the only place that knows the provider's JSON shape
and the only place that converts milliseconds to seconds. A unit slip
here shifts every subtitle by a factor of a thousand.

HOW: Raw response dicts go through response_to_input() and AsrEntry
parsing; the resulting tagged input is inspected directly, and once
end-to-end through the segmentation engine.

RULES:
- Malformed payloads never raise; they degrade to fewer entries or FlatText
"""

import pytest

from subtitle_segmenter.adapters.asr_adapter import AsrEntry, AsrResponse, response_to_input
from subtitle_segmenter.core.ir import FlatText, Token, UtteranceTokens, WordTokens
from subtitle_segmenter.core.segmenter import segment_input


class TestShapePreference:

    def test_utterances_preferred_over_words(self, utterance_response):
        transcript = response_to_input(utterance_response)
        assert isinstance(transcript, UtteranceTokens)
        assert [t.text for t in transcript.tokens] == [
            "Good morning everyone.",
            "Today we look at tides",
            "and why they matter.",
        ]

    def test_words_when_no_utterances(self, word_response):
        transcript = response_to_input(word_response)
        assert isinstance(transcript, WordTokens)
        assert len(transcript.tokens) == 4

    def test_empty_utterances_fall_through_to_words(self, word_response):
        word_response["utterances"] = []
        assert isinstance(response_to_input(word_response), WordTokens)

    def test_text_only(self):
        transcript = response_to_input({"text": "Just text. No timing."})
        assert transcript == FlatText("Just text. No timing.")

    def test_empty_arrays_fall_through_to_text(self):
        transcript = response_to_input({"utterances": [], "words": [], "text": "Hi."})
        assert transcript == FlatText("Hi.")

    @pytest.mark.parametrize("payload", [{}, None, [], "text", 42])
    def test_unusable_payload_is_empty_text(self, payload):
        assert response_to_input(payload) == FlatText("")


class TestEntryParsing:

    def test_milliseconds_converted_to_seconds(self, word_response):
        tokens = response_to_input(word_response).tokens
        assert tokens[2].start_seconds == pytest.approx(3.0)
        assert tokens[2].end_seconds == pytest.approx(3.3)

    def test_missing_confidence_defaults(self):
        entry = AsrEntry.from_dict({"text": "hi", "start": 0, "end": 100})
        assert entry.confidence == pytest.approx(0.9)

    @pytest.mark.parametrize("raw, expected", [(1.3, 1.0), (-0.2, 0.0), (0.42, 0.42)])
    def test_confidence_clamped(self, raw, expected):
        entry = AsrEntry.from_dict({"text": "hi", "start": 0, "end": 100, "confidence": raw})
        assert entry.confidence == pytest.approx(expected)

    def test_numeric_strings_accepted(self):
        entry = AsrEntry.from_dict({"text": "hi", "start": "1500", "end": "2000"})
        assert entry.to_token().start_seconds == pytest.approx(1.5)

    def test_extra_keys_ignored(self):
        entry = AsrEntry.from_dict(
            {"text": "hi", "start": 0, "end": 500, "speaker": "B", "channel": 1}
        )
        assert entry.to_token() == Token("hi", 0.0, 0.5, 0.9)

    @pytest.mark.parametrize("raw", ["nan", "inf", float("nan")])
    def test_non_finite_confidence_defaults(self, raw):
        entry = AsrEntry.from_dict({"text": "hi", "start": 0, "end": 100, "confidence": raw})
        assert entry.confidence == pytest.approx(0.9)

    @pytest.mark.parametrize("raw", [
        "not a dict",
        {"start": 0, "end": 100},
        {"text": "   ", "start": 0, "end": 100},
        {"text": "hi", "end": 100},
        {"text": "hi", "start": "soon", "end": 100},
        {"text": "hi", "start": True, "end": 100},
        {"text": "hi", "start": "nan", "end": 100},
        {"text": "hi", "start": 0, "end": "inf"},
        {"text": "hi", "start": float("nan"), "end": 100},
    ])
    def test_unusable_entries_rejected(self, raw):
        assert AsrEntry.from_dict(raw) is None

    def test_malformed_entries_dropped_not_fatal(self):
        response = AsrResponse.from_dict({
            "words": [
                {"text": "good", "start": 0, "end": 200},
                {"text": "bad"},
                "junk",
                {"text": "also.", "start": 200, "end": 500},
            ],
        })
        assert [w.text for w in response.words] == ["good", "also."]

    def test_non_list_arrays_ignored(self):
        response = AsrResponse.from_dict({"words": {"text": "x"}, "text": "fallback"})
        assert response.words == []
        assert response.to_transcript_input() == FlatText("fallback")


class TestThroughEngine:

    def test_nan_timestamps_never_reach_engine(self):
        transcript = response_to_input({"words": [
            {"text": "b", "start": 1000, "end": 1200},
            {"text": "a", "start": "nan", "end": 700},
            {"text": "c.", "start": 1200, "end": 1400},
        ]})
        assert [s.text for s in segment_input(transcript)] == ["b c."]

    def test_word_response_segments(self, word_response):
        segments = segment_input(response_to_input(word_response), "en", "vid")
        assert [s.text for s in segments] == ["Hello world.", "Next sentence."]
        assert segments[1].start_seconds == pytest.approx(3.0)

    def test_utterance_response_segments(self, utterance_response):
        segments = segment_input(response_to_input(utterance_response), "en", "tide")
        assert [s.text for s in segments] == [
            "Good morning everyone.",
            "Today we look at tides and why they matter.",
        ]
        assert segments[0].start_seconds == pytest.approx(0.5)
