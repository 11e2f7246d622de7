"""Test configuration and fixtures"""

from datetime import datetime, timedelta, timezone

import pytest

from sonix_lyrics import lyrics
from sonix_lyrics.config import ConfigManager
from sonix_lyrics.lyrics import LyricsIndex, parse
from sonix_lyrics.navidrome import TrackSample
from sonix_lyrics.playback import PlaybackState

T1 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(minutes=4)

KARAOKE_LINE = "[00:12.50]Hello <00:12.50>Hello <00:13.00>world"


@pytest.fixture
def sample_lrc():
	return "\n".join([
		"[ar:Test Artist]",
		"[ti:Test Song]",
		"[00:01.00]First line",
		"[00:05.50]Second line",
		"[00:10.00]Third line",
		"[00:15.25]Fourth line",
	])


@pytest.fixture
def make_sample():
	def factory(title="A", start=T1, artist="Artist", album="Album", duration=200):
		return TrackSample(title=title, artist=artist, album=album,
						   duration_seconds=duration, start_instant=start)
	return factory


@pytest.fixture
def state():
	return PlaybackState()


@pytest.fixture
def lyrics_calls():
	return []


@pytest.fixture
def fake_fetcher(lyrics_calls):
	"""Lyrics collaborator that records its calls and returns one karaoke line"""
	def fetch(artist, title):
		lyrics_calls.append((artist, title))
		return parse(KARAOKE_LINE)
	return fetch


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
	for name in ("NAVIDROME_URL", "NAVIDROME_USER", "NAVIDROME_TOKEN", "NAVIDROME_SALT",
				 "KARAOKE_ENABLED", "DEBUG"):
		monkeypatch.delenv(name, raising=False)
	return ConfigManager(config_path=str(tmp_path / "config.json"))


@pytest.fixture
def empty_lyrics():
	return LyricsIndex()


class UndecodableResponse:
	"""aiohttp response whose body is not valid UTF-8"""

	def raise_for_status(self):
		pass

	async def text(self):
		raise UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")

	async def __aenter__(self):
		return self

	async def __aexit__(self, *exc_info):
		return False


class UndecodableSession:
	"""Stands in for aiohttp.ClientSession; every GET returns an undecodable body"""

	def __init__(self, *args, **kwargs):
		self.queries = []

	def get(self, url, params=None):
		self.queries.append((params or {}).get("q"))
		return UndecodableResponse()

	async def __aenter__(self):
		return self

	async def __aexit__(self, *exc_info):
		return False


@pytest.fixture
def undecodable_lrclib(monkeypatch):
	"""Route every LRCLIB request to a server that sends undecodable bytes"""
	monkeypatch.setattr(lyrics.aiohttp, "ClientSession", UndecodableSession)
	return UndecodableSession
