"""Tests for the Navidrome now-playing client"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

from sonix_lyrics.errors import InvalidResponseError, NavidromeTransportError, NoTrackError
from sonix_lyrics.navidrome import (
	TrackSample,
	fetch_current_track,
	now_playing_params,
	parse_now_playing,
	parse_played_timestamp,
)


def payload(entries=None, status="ok", now_playing=True):
	response = {"status": status, "version": "1.16.1"}
	if now_playing:
		response["nowPlaying"] = {} if entries is None else {"entry": entries}
	return {"subsonic-response": response}


ENTRY = {
	"title": "Song",
	"artist": "Band",
	"album": "Record",
	"duration": 215,
	"played": "2024-05-01T12:00:00.123456789Z",
}


class TestParsePlayedTimestamp:
	def test_nanoseconds_and_zulu(self):
		assert parse_played_timestamp("2024-05-01T12:00:00.123456789Z") == \
			datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

	def test_offset_converted_to_utc(self):
		assert parse_played_timestamp("2024-05-01T14:00:00+02:00") == \
			datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

	def test_short_fraction(self):
		assert parse_played_timestamp("2024-05-01T12:00:00.5Z").microsecond == 500000

	@pytest.mark.parametrize("value", [None, "", "yesterday", "2024-05-01T12:00:00", 12345])
	def test_unusable(self, value):
		assert parse_played_timestamp(value) is None


class TestParseNowPlaying:
	def test_first_entry(self):
		second = dict(ENTRY, title="Other")
		sample = parse_now_playing(payload([ENTRY, second]))
		assert sample == TrackSample(
			title="Song", artist="Band", album="Record", duration_seconds=215,
			start_instant=datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc))

	def test_missing_fields_default(self):
		sample = parse_now_playing(payload([{}]))
		assert sample == TrackSample(title="", artist="", album="", duration_seconds=0, start_instant=None)

	def test_single_entry_object(self):
		assert parse_now_playing(payload(ENTRY)).title == "Song"

	def test_failed_status(self):
		data = payload([ENTRY], status="failed")
		data["subsonic-response"]["error"] = {"code": 40, "message": "Wrong username or password"}
		with pytest.raises(InvalidResponseError) as excinfo:
			parse_now_playing(data)
		assert "Wrong username" in str(excinfo.value)

	@pytest.mark.parametrize("data", [None, [], {"other": {}}, {"subsonic-response": "x"}])
	def test_malformed(self, data):
		with pytest.raises(InvalidResponseError):
			parse_now_playing(data)

	def test_bad_duration(self):
		with pytest.raises(InvalidResponseError):
			parse_now_playing(payload([dict(ENTRY, duration="long")]))

	@pytest.mark.parametrize("data", [payload(now_playing=False), payload(), payload([])])
	def test_nothing_playing(self, data):
		with pytest.raises(NoTrackError):
			parse_now_playing(data)


class TestFetchCurrentTrack:
	def test_request(self, config_manager):
		config_manager.NAVIDROME_URL = "http://music.local"
		session = Mock()
		session.get.return_value.json.return_value = payload([ENTRY])

		sample = fetch_current_track(config_manager, session=session)

		assert sample.title == "Song"
		args, kwargs = session.get.call_args
		assert args[0] == "http://music.local/rest/getNowPlaying"
		assert kwargs["params"] == now_playing_params(config_manager)
		assert kwargs["params"]["v"] == "1.16.1"
		assert kwargs["params"]["c"] == "sonix"
		assert kwargs["params"]["f"] == "json"
		assert kwargs["timeout"] == (2, 4)

	def test_transport_error(self, config_manager):
		session = Mock()
		session.get.side_effect = requests.ConnectionError("refused")
		with pytest.raises(NavidromeTransportError):
			fetch_current_track(config_manager, session=session)

	def test_http_error(self, config_manager):
		session = Mock()
		session.get.return_value.raise_for_status.side_effect = requests.HTTPError("500")
		with pytest.raises(NavidromeTransportError):
			fetch_current_track(config_manager, session=session)

	def test_invalid_json(self, config_manager):
		session = Mock()
		session.get.return_value.json.side_effect = ValueError("not json")
		with pytest.raises(InvalidResponseError):
			fetch_current_track(config_manager, session=session)
