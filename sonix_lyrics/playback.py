"""
Playback clock, lyric cursor and the coordinator that owns playback state.

The main loop holds one PlaybackState for the whole session. Track samples go
through UpdateCoordinator.apply(); every cycle refresh_position() turns the
wall clock into an elapsed position and a line/word/scroll cursor.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple

from .errors import LyricsError
from .logger import LOGGER
from .lyrics import LyricsIndex
from .navidrome import TrackSample

SCROLL_CONTEXT = 5


class TrackChange(Enum):
	SONG_CHANGE = "song_change"
	RESTART = "restart"
	NOOP = "noop"


@dataclass
class PlaybackState:
	current_track: Optional[TrackSample] = None
	lyrics: LyricsIndex = field(default_factory=lambda: LyricsIndex(plain_lines=["No lyrics loaded"]))
	elapsed_seconds: int = 0
	elapsed_fraction: float = 0.0
	current_line_index: int = 0
	current_word: Optional[str] = None
	scroll_offset: int = 0
	status: str = "Press r to refresh · q to quit · j/k scroll"

	@property
	def duration_seconds(self):
		return self.current_track.duration_seconds if self.current_track else 0

	@property
	def start_instant(self):
		return self.current_track.start_instant if self.current_track else None


# ================
#  PLAYBACK CLOCK
# ================
def position_ms(track, now) -> int:
	"""Elapsed milliseconds since the track started, clamped to [0, duration]"""
	if track is None or track.start_instant is None:
		return 0
	# Negative when the server clock runs ahead of ours
	raw_ms = (now - track.start_instant) // timedelta(milliseconds=1)
	return min(max(raw_ms, 0), track.duration_seconds * 1000)


def position_seconds(track, now) -> float:
	return position_ms(track, now) / 1000.0


def elapsed_from(seconds, duration) -> Tuple[int, float]:
	fraction = seconds / duration if duration > 0 else 0.0
	return int(math.floor(seconds)), fraction


def position(state, now) -> Tuple[int, float]:
	"""(elapsed_seconds, elapsed_fraction) for the held track at wall-clock time now"""
	return elapsed_from(position_seconds(state.current_track, now), state.duration_seconds)


# ================
#  LYRIC CURSOR
# ================
def update_cursor(state, position_ms, karaoke_enabled=False, scroll_context=SCROLL_CONTEXT):
	"""Return (line_index, word, scroll_offset) for position_ms; state is left untouched"""
	timed_lines = state.lyrics.timed_lines
	line_index = state.current_line_index
	scroll_offset = state.scroll_offset

	if timed_lines:
		line_index = 0
		for i, line in enumerate(timed_lines):
			if line.offset_ms <= position_ms:
				line_index = i
			else:
				break

	# Latest word start across every reached line, not just the active one
	word = None
	if karaoke_enabled:
		for line in timed_lines:
			if line.offset_ms <= position_ms:
				for timed_word in line.words:
					if timed_word.offset_ms <= position_ms:
						word = timed_word.text

	# Recentre only when the active line moves, so manual scrolling sticks
	if line_index != state.current_line_index:
		scroll_offset = max(0, line_index - scroll_context)

	return line_index, word, scroll_offset


def refresh_position(state, now=None, karaoke_enabled=False, scroll_context=SCROLL_CONTEXT):
	"""Recompute clock and cursor for this cycle and store them on state"""
	now = now or datetime.now(timezone.utc)
	elapsed_ms = position_ms(state.current_track, now)
	seconds = elapsed_ms / 1000.0
	state.elapsed_seconds, state.elapsed_fraction = elapsed_from(seconds, state.duration_seconds)

	line_index, word, scroll_offset = update_cursor(state, elapsed_ms, karaoke_enabled, scroll_context)
	state.current_line_index = line_index
	state.current_word = word
	state.scroll_offset = scroll_offset
	return seconds


def scroll_down(state):
	state.scroll_offset += 1


def scroll_up(state):
	state.scroll_offset = max(0, state.scroll_offset - 1)


# ==================
#  UPDATE COORDINATOR
# ==================
class UpdateCoordinator:
	"""Classifies incoming track samples and swaps lyrics in on song changes"""

	def __init__(self, state, fetch_lyrics, placeholder="No lyrics found"):
		self.state = state
		self.fetch_lyrics = fetch_lyrics
		self.placeholder = placeholder

	def apply(self, sample) -> TrackChange:
		previous = self.state.current_track
		previous_start = self.state.start_instant

		# Identity is the title alone
		title_changed = previous is None or previous.title != sample.title
		restarted = previous_start != sample.start_instant

		self.state.current_track = sample

		if title_changed or restarted:
			self.state.elapsed_seconds = 0
			self.state.elapsed_fraction = 0.0

		if title_changed:
			LOGGER.log_info(f"New track detected: {sample.artist} - {sample.title}")
			self.load_lyrics(sample)
			return TrackChange.SONG_CHANGE

		if restarted:
			LOGGER.log_debug(f"Track restarted: {sample.title}")
			return TrackChange.RESTART

		return TrackChange.NOOP

	def load_lyrics(self, track):
		"""Fetch and install lyrics for track, falling back to the placeholder"""
		try:
			lyrics = self.fetch_lyrics(track.artist, track.title)
		except LyricsError as e:
			self.state.lyrics = LyricsIndex.placeholder(self.placeholder)
			self.state.status = f"Lyrics not found ({e})"
			LOGGER.log_error(f"Lyrics error: {e}")
			success = False
		else:
			self.state.lyrics = lyrics
			self.state.status = f"Now playing: {track.title}"
			LOGGER.log_info(f"Loaded lyrics for {track.title} ({len(lyrics.timed_lines)} timed lines)")
			success = True

		self.state.current_line_index = 0
		self.state.current_word = None
		self.state.scroll_offset = 0
		return success

	def refetch(self):
		"""Re-run the song-change fetch for the held track"""
		if self.state.current_track is None:
			LOGGER.log_debug("Refetch requested with no track")
			return False
		LOGGER.log_info(f"Manual refetch: {self.state.current_track.title}")
		return self.load_lyrics(self.state.current_track)
