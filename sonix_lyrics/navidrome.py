import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import requests

from .errors import InvalidResponseError, NavidromeTransportError, NoTrackError
from .logger import LOGGER

FRACTION_PATTERN = re.compile(r'\.(\d+)')


@dataclass(frozen=True)
class TrackSample:
	"""One now-playing snapshot reported by the media server"""
	title: str
	artist: str
	album: str
	duration_seconds: int
	start_instant: Optional[datetime] = None


def parse_played_timestamp(value) -> Optional[datetime]:
	"""Parse the RFC 3339 "played" field into an aware UTC datetime"""
	if not isinstance(value, str) or not value.strip():
		return None

	text = value.strip()
	if text[-1] in "Zz":
		text = text[:-1] + "+00:00"
	# Servers send nanoseconds, datetime takes at most microseconds
	text = FRACTION_PATTERN.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)

	try:
		parsed = datetime.fromisoformat(text)
	except ValueError:
		return None
	if parsed.tzinfo is None:
		return None
	return parsed.astimezone(timezone.utc)


def parse_now_playing(payload) -> TrackSample:
	"""Extract the first now-playing entry from a getNowPlaying JSON payload"""
	if not isinstance(payload, dict) or not isinstance(payload.get("subsonic-response"), dict):
		raise InvalidResponseError(details={"payload": str(payload)[:200]})

	response = payload["subsonic-response"]
	if response.get("status") != "ok":
		error = response.get("error") or {}
		message = error.get("message") if isinstance(error, dict) else None
		raise InvalidResponseError(f"Invalid response: {message}" if message else "Invalid response",
								   details={"status": response.get("status")})

	now_playing = response.get("nowPlaying")
	if not isinstance(now_playing, dict):
		raise NoTrackError()

	entries = now_playing.get("entry") or []
	if isinstance(entries, dict):
		entries = [entries]
	if not isinstance(entries, list):
		raise InvalidResponseError(details={"entry": str(entries)[:200]})
	if not entries:
		raise NoTrackError()

	entry = entries[0]
	if not isinstance(entry, dict):
		raise InvalidResponseError(details={"entry": str(entry)[:200]})

	try:
		duration = int(entry.get("duration") or 0)
	except (TypeError, ValueError):
		raise InvalidResponseError(details={"duration": entry.get("duration")})

	return TrackSample(
		title=str(entry.get("title") or ""),
		artist=str(entry.get("artist") or ""),
		album=str(entry.get("album") or ""),
		duration_seconds=max(0, duration),
		start_instant=parse_played_timestamp(entry.get("played"))
	)


def now_playing_params(config):
	return {
		'u': config.NAVIDROME_USER,
		't': config.NAVIDROME_TOKEN,
		's': config.NAVIDROME_SALT,
		'v': config.NAVIDROME_API_VERSION,
		'c': config.NAVIDROME_CLIENT,
		'f': 'json'
	}


def fetch_current_track(config, session=None) -> TrackSample:
	"""Ask Navidrome what is playing right now"""
	url = f"{config.NAVIDROME_URL}/rest/getNowPlaying"
	http = session or requests
	LOGGER.log_trace("Navidrome polling...")

	try:
		response = http.get(url, params=now_playing_params(config),
							timeout=(config.NAVIDROME_CONNECT_TIMEOUT, config.NAVIDROME_TIMEOUT))
		response.raise_for_status()
	except requests.RequestException as e:
		raise NavidromeTransportError(f"HTTP: {e}", details={'url': url, 'original_error': e})

	try:
		payload = response.json()
	except ValueError:
		raise InvalidResponseError(details={'url': url})

	return parse_now_playing(payload)
