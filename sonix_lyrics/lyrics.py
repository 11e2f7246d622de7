import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import List, Optional

import aiohttp

from .errors import LyricsNotFoundError, LyricsProtocolError, LyricsTransportError
from .logger import LOGGER

LRCLIB_URL = "https://lrclib.net"
USER_AGENT = "sonix_lyrics"
INSTRUMENTAL = "[Instrumental]"

# minutes:seconds[.fraction], digits only
TIMESTAMP_PATTERN = re.compile(r'(?P<m>\d+):(?P<s>\d+(?:\.\d*)?|\.\d+)', re.ASCII)


@dataclass
class TimedWord:
	offset_ms: int
	text: str


@dataclass
class TimedLine:
	offset_ms: int
	text: str
	words: List[TimedWord] = field(default_factory=list)


@dataclass
class LyricsIndex:
	plain_lines: List[str] = field(default_factory=list)
	timed_lines: List[TimedLine] = field(default_factory=list)

	@classmethod
	def placeholder(cls, message="No lyrics found"):
		return cls(plain_lines=[message], timed_lines=[])

	@property
	def is_synced(self):
		return bool(self.timed_lines)


# ======================
#  LRC PARSING
# ======================
def parse_timestamp(token) -> Optional[int]:
	"""Convert an mm:ss.ff token to milliseconds, None when it does not parse"""
	match = TIMESTAMP_PATTERN.fullmatch(token)
	if not match:
		return None
	whole, _, fraction = match.group('s').partition('.')
	try:
		minutes = int(match.group('m'))
		# Rounded on the digits themselves, halves up: "0.0025" -> 3
		millis = int(whole or 0) * 1000 + int((fraction + "000")[:3])
	except ValueError:
		# Beyond the interpreter's int digit limit
		return None
	if len(fraction) > 3 and fraction[3] >= '5':
		millis += 1
	return minutes * 60000 + millis


def parse_karaoke_words(body) -> List[TimedWord]:
	"""Extract <mm:ss.ff>word tags from a line body, left to right"""
	words = []
	length = len(body)
	i = 0

	while i < length:
		if body[i] != '<':
			i += 1
			continue

		close = body.find('>', i + 1)
		if close == -1:
			# Truncated tag ends the body
			break

		offset = parse_timestamp(body[i + 1:close])
		if offset is None:
			i = close + 1
			continue

		next_tag = body.find('<', close + 1)
		if next_tag == -1:
			next_tag = length

		text = body[close + 1:next_tag].strip()
		if text:
			words.append(TimedWord(offset, text))
		i = next_tag

	return words


def parse_lrc(text) -> List[TimedLine]:
	"""Parse LRC text into timed lines sorted by offset"""
	lines = []

	for raw_line in text.splitlines():
		if not raw_line.startswith('['):
			continue
		end = raw_line.find(']')
		if end == -1:
			continue

		offset = parse_timestamp(raw_line[1:end])
		if offset is None:
			continue

		body = raw_line[end + 1:].strip()
		words = parse_karaoke_words(body)
		display = " ".join(word.text for word in words) if words else body
		lines.append(TimedLine(offset, display, words))

	# list.sort is stable, equal offsets keep file order
	lines.sort(key=lambda line: line.offset_ms)
	return lines


def strip_line_timestamp(line):
	"""Drop a leading [..] tag from a raw LRC line"""
	if line.startswith('['):
		end = line.find(']')
		if end != -1:
			return line[end + 1:].strip()
	return line.strip()


def build_index(plain_text=None, synced_text=None) -> LyricsIndex:
	"""Build a LyricsIndex from the plain and/or synced text of a lyrics record"""
	timed_lines = parse_lrc(synced_text) if synced_text else []

	if plain_text:
		plain_lines = plain_text.splitlines()
	elif synced_text:
		plain_lines = [strip_line_timestamp(line) for line in synced_text.splitlines()]
	else:
		plain_lines = []

	return LyricsIndex(plain_lines=plain_lines, timed_lines=timed_lines)


def parse(raw_text) -> LyricsIndex:
	"""Parse raw synced-lyrics text; malformed parts are dropped, never raised"""
	if not raw_text:
		return LyricsIndex()
	return build_index(synced_text=raw_text)


# ================
#  LRCLIB CLIENT
# ================
async def search_lrclib_async(session, query, base_url=LRCLIB_URL):
	"""Run one LRCLIB search and return the list of result records"""
	LOGGER.log_debug(f"Querying LRCLIB search: {query}")
	try:
		async with session.get(f"{base_url}/api/search", params={'q': query}) as response:
			response.raise_for_status()
			content = await response.text()
	except (aiohttp.ClientError, asyncio.TimeoutError) as e:
		raise LyricsTransportError(f"HTTP: {e}", details={'query': query, 'original_error': e})
	except UnicodeDecodeError as e:
		raise LyricsProtocolError(f"Encoding: {e}", details={'query': query})

	try:
		data = json.loads(content)
	except ValueError as e:
		LOGGER.log_debug(f"LRCLIB error: Invalid JSON. Raw response: {content[:200]}")
		raise LyricsProtocolError(f"JSON: {e}", details={'query': query})

	if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
		raise LyricsProtocolError("JSON: expected a list of results", details={'query': query})
	return data


def index_from_record(record) -> LyricsIndex:
	plain = record.get('plainLyrics') or None
	synced = record.get('syncedLyrics') or None
	if not plain and not synced and record.get('instrumental', False):
		return LyricsIndex(plain_lines=[INSTRUMENTAL])
	return build_index(plain_text=plain, synced_text=synced)


async def fetch_lyrics_async(artist, title, base_url=LRCLIB_URL, timeout=4, connect_timeout=2,
							 user_agent=USER_AGENT):
	"""Search by title, then by "artist title", and parse the best match"""
	client_timeout = aiohttp.ClientTimeout(total=timeout, connect=connect_timeout)
	async with aiohttp.ClientSession(timeout=client_timeout, headers={'User-Agent': user_agent}) as session:
		try:
			results = await search_lrclib_async(session, title, base_url)
		except (LyricsTransportError, LyricsProtocolError) as e:
			LOGGER.log_debug(f"Title-only search failed for {title}: {e}")
			results = []

		if not results:
			results = await search_lrclib_async(session, f"{artist} {title}", base_url)

	if not results:
		raise LyricsNotFoundError(details={'artist': artist, 'title': title})

	best = results[0]
	LOGGER.log_info(f"LRCLIB matched {best.get('artistName')} - {best.get('trackName')}")
	return index_from_record(best)


def fetch_lyrics(artist, title, **options) -> LyricsIndex:
	"""Sync wrapper for async LRCLIB fetch"""
	return asyncio.run(fetch_lyrics_async(artist, title, **options))
