"""Tests for caption sidecar writing."""

import json

from clipflow.editors.captions import _format_srt_time, _format_vtt_time, write_captions
from clipflow.models import Transcript, TranscriptSegment

TRANSCRIPT = Transcript(
    text="Hello there. General Kenobi.",
    language="en",
    duration=4.0,
    segments=[
        TranscriptSegment(id=0, start=0.0, end=1.5, text="Hello there."),
        TranscriptSegment(id=1, start=1.5, end=3.25, text="General Kenobi."),
    ],
)


class TestTimeFormat:
    def test_srt(self):
        assert _format_srt_time(3723.456) == "01:02:03,456"

    def test_vtt(self):
        assert _format_vtt_time(61.5) == "00:01:01.500"

    def test_rounds_up_into_next_second(self):
        assert _format_srt_time(1.9996) == "00:00:02,000"


class TestWriteCaptions:
    def test_srt(self, tmp_path):
        path = write_captions(TRANSCRIPT, tmp_path / "out.srt")
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[:3] == ["1", "00:00:00,000 --> 00:00:01,500", "Hello there."]
        assert "00:00:01,500 --> 00:00:03,250" in lines

    def test_vtt(self, tmp_path):
        text = write_captions(TRANSCRIPT, tmp_path / "out.vtt").read_text(encoding="utf-8")
        assert text.startswith("WEBVTT\n")
        assert "00:00:01.500 --> 00:00:03.250" in text

    def test_json(self, tmp_path):
        data = json.loads(write_captions(TRANSCRIPT, tmp_path / "out.json").read_text())
        assert data["language"] == "en"
        assert data["segments"][1] == {
            "id": 1, "start": 1.5, "end": 3.25, "text": "General Kenobi."
        }
