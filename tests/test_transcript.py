"""Tests for transcript.py"""

from feeds.core.transcript import captions_to_text, parse_captions

AUTO_CAPTIONS = """WEBVTT
Kind: captions
Language: en

00:00:00.000 --> 00:00:02.000 align:start position:0%
welcome<00:00:00.500><c> to</c><00:00:01.000><c> the</c><00:00:01.500><c> show</c>

00:00:02.000 --> 00:00:02.010 align:start position:0%
welcome to the show

00:00:02.010 --> 00:00:04.000 align:start position:0%
welcome to the show
today we talk about rss

00:00:04.000 --> 00:00:06.000 align:start position:0%
today we talk about rss
and reading &amp; writing
"""


class TestParseCaptions:
    def test_headers_never_in_output(self):
        segments = parse_captions(AUTO_CAPTIONS)
        joined = " ".join(segments)
        assert "WEBVTT" not in joined
        assert "Kind:" not in joined
        assert "Language:" not in joined

    def test_timing_lines_skipped(self):
        segments = parse_captions(AUTO_CAPTIONS)
        assert not any("-->" in s for s in segments)

    def test_repeated_lines_emitted_once(self):
        segments = parse_captions(AUTO_CAPTIONS)
        assert segments == [
            "welcome to the show",
            "today we talk about rss",
            "and reading & writing",
        ]

    def test_repeat_separated_by_other_cue(self):
        """A line repeated after an unrelated cue is still dropped."""
        doc = """WEBVTT

00:00:01.000 --> 00:00:02.000
alpha

00:00:02.000 --> 00:00:03.000
beta

00:00:03.000 --> 00:00:04.000
alpha
"""
        assert parse_captions(doc) == ["alpha", "beta"]

    def test_note_blocks_skipped(self):
        doc = "WEBVTT\n\nNOTE generated by tool\n\n00:01.000 --> 00:02.000\nhello\n"
        assert parse_captions(doc) == ["hello"]

    def test_entities_decoded(self):
        doc = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\n1 &lt; 2 &gt; 0&nbsp;ok\n"
        assert parse_captions(doc) == ["1 < 2 > 0 ok"]

    def test_tag_only_line_dropped(self):
        doc = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\n<c></c>\nreal text\n"
        assert parse_captions(doc) == ["real text"]

    def test_empty_document(self):
        assert parse_captions("") == []
        assert parse_captions("WEBVTT\nKind: captions\nLanguage: en\n") == []

    def test_byte_order_mark(self):
        doc = "\ufeffWEBVTT\n\n00:00:01.000 --> 00:00:02.000\nhi\n"
        assert parse_captions(doc) == ["hi"]


class TestCaptionsToText:
    def test_joined_with_single_spaces(self):
        text = captions_to_text(AUTO_CAPTIONS)
        assert text == "welcome to the show today we talk about rss and reading & writing"

    def test_inner_whitespace_collapsed(self):
        doc = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nlots    of\tspace\n"
        assert captions_to_text(doc) == "lots of space"

    def test_empty(self):
        assert captions_to_text("WEBVTT\n") == ""
