"""Tests for the renderer's text helpers"""

import pytest

from sonix_lyrics.lyrics import LyricsIndex, parse
from sonix_lyrics.ui import (
	display_lines,
	fit_width,
	format_clock,
	get_color_value,
	progress_bar,
	text_width,
	wrap_text,
)


class TestTextHelpers:
	def test_format_clock(self):
		assert format_clock(0) == "00:00"
		assert format_clock(65) == "01:05"
		assert format_clock(3600) == "60:00"

	@pytest.mark.parametrize("fraction, filled", [(0.0, 0), (0.5, 11), (1.0, 22), (1.5, 22), (-0.2, 0)])
	def test_progress_bar(self, fraction, filled):
		bar = progress_bar(fraction)
		assert len(bar) == 24
		assert bar.count("█") == filled

	def test_fit_width_wide_characters(self):
		assert text_width("日本語") == 6
		assert fit_width("日本語", 5) == "日本"
		assert fit_width("short", 10) == "short"
		assert fit_width("anything", 0) == ""

	def test_wrap_text(self):
		assert wrap_text("one two three four", 9) == ["one two", "three", "four"]
		assert wrap_text("", 10) == [""]
		assert wrap_text("text", 0) == []

	def test_color_values(self):
		assert get_color_value("magenta") == 5
		assert get_color_value("208") == 208
		assert get_color_value("nonsense") == 7
		assert get_color_value(3) == 3


class TestDisplayLines:
	def test_synced_uses_timed_text(self):
		index = parse("[00:01.00]<00:01.00>Hi <00:02.00>there\n[00:03.00]plain")
		assert display_lines(index) == ["Hi there", "plain"]

	def test_plain_fallback(self):
		assert display_lines(LyricsIndex.placeholder()) == ["No lyrics found"]
