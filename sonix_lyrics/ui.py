import curses
import textwrap

from wcwidth import wcswidth, wcwidth

COLOR_NAMES = {
	"black": 0, "red": 1, "green": 2, "yellow": 3,
	"blue": 4, "magenta": 5, "cyan": 6, "white": 7
}

# Color pair slots
INFO_BORDER = 1
LYRICS_BORDER = 2
ACTIVE = 3
WORD = 4
STATUS = 5
PROGRESS = 6

INFO_PANE_PERCENT = 35
PROGRESS_WIDTH = 22


# ==============
#  TEXT HELPERS
# ==============
def get_color_value(color_input):
	"""Convert color input to a terminal color number"""
	if isinstance(color_input, int):
		return max(0, color_input)
	if isinstance(color_input, str):
		if color_input.isdigit():
			return int(color_input)
		return COLOR_NAMES.get(color_input.lower(), 7)
	return 7


def text_width(text):
	width = wcswidth(text)
	if width >= 0:
		return width
	return sum(max(wcwidth(ch), 0) for ch in text)


def fit_width(text, width):
	"""Cut text so it occupies at most width terminal cells"""
	if width <= 0:
		return ""
	if text_width(text) <= width:
		return text
	out = []
	used = 0
	for ch in text:
		cells = max(wcwidth(ch), 0)
		if used + cells > width:
			break
		out.append(ch)
		used += cells
	return "".join(out)


def wrap_text(text, width):
	if width <= 0:
		return []
	rows = textwrap.wrap(text, width) or [""]
	return [fit_width(row, width) for row in rows]


def format_clock(seconds):
	return f"{seconds // 60:02d}:{seconds % 60:02d}"


def progress_bar(fraction, width=PROGRESS_WIDTH):
	filled = min(width, max(0, int(fraction * width)))
	return "[" + "█" * filled + "░" * (width - filled) + "]"


def display_lines(lyrics):
	"""Timed line texts when the lyrics are synced, the plain lines otherwise"""
	if lyrics.is_synced:
		return [line.text for line in lyrics.timed_lines]
	return list(lyrics.plain_lines)


# ==============
#  UI RENDERING
# ==============
class LyricsRenderer:
	"""Two-pane curses view: track info on the left, lyrics on the right"""

	def __init__(self, stdscr, config):
		self.stdscr = stdscr
		self.karaoke_enabled = config.KARAOKE_ENABLED
		self.colors = config.COLORS
		self._dims = None
		self.info_win = None
		self.lyrics_win = None

		# Wrapped rows per lyric line index, rebuilt when lyrics or width change
		self._cached_lyrics = None
		self._cached_width = None
		self._rows = {}

		self.setup_colors()

	def setup_colors(self):
		try:
			curses.start_color()
			curses.use_default_colors()
			background = -1
		except curses.error:
			background = curses.COLOR_BLACK

		pairs = {
			INFO_BORDER: "info_border",
			LYRICS_BORDER: "lyrics_border",
			ACTIVE: "active",
			WORD: "word",
			STATUS: "status",
			PROGRESS: "progress"
		}
		for slot, name in pairs.items():
			try:
				curses.init_pair(slot, get_color_value(self.colors.get(name, "white")), background)
			except curses.error:
				pass

	def invalidate(self):
		self._dims = None

	def layout(self):
		height, width = self.stdscr.getmaxyx()
		if self._dims == (height, width):
			return
		info_width = max(1, width * INFO_PANE_PERCENT // 100)
		self.info_win = curses.newwin(height, info_width, 0, 0)
		self.lyrics_win = curses.newwin(height, max(1, width - info_width), 0, info_width)
		self._dims = (height, width)

	def wrapped_rows(self, lyrics, lines, index, width):
		if self._cached_lyrics is not lyrics or self._cached_width != width:
			self._cached_lyrics = lyrics
			self._cached_width = width
			self._rows = {}
		if index not in self._rows:
			self._rows[index] = wrap_text(lines[index], width)
		return self._rows[index]

	def draw(self, state):
		self.layout()
		self.draw_info(state)
		self.draw_lyrics(state)
		curses.doupdate()

	def put(self, win, y, x, text, attr=0):
		try:
			win.addstr(y, x, text, attr)
		except curses.error:
			pass

	def draw_frame(self, win, title, color):
		win.attron(curses.color_pair(color))
		try:
			win.box()
		except curses.error:
			pass
		win.attroff(curses.color_pair(color))
		self.put(win, 0, 2, f" {title} ", curses.A_BOLD)

	def draw_info(self, state):
		win = self.info_win
		win.erase()
		self.draw_frame(win, "Track Info", INFO_BORDER)
		height, width = win.getmaxyx()
		inner = width - 2
		y = 1

		def line(label, value):
			nonlocal y
			if y >= height - 1:
				return
			self.put(win, y, 1, fit_width(label, inner), curses.A_BOLD)
			self.put(win, y, 1 + text_width(label), fit_width(value, max(0, inner - text_width(label))))
			y += 1

		track = state.current_track
		if track is not None:
			line("Title: ", track.title)
			line("Artist: ", track.artist)
			if track.album:
				line("Album: ", track.album)

			if track.duration_seconds > 0 and y + 1 < height - 1:
				y += 1
				clock = f" {format_clock(state.elapsed_seconds)} / {format_clock(track.duration_seconds)}"
				bar = progress_bar(state.elapsed_fraction, max(0, min(PROGRESS_WIDTH, inner - len(clock) - 2)))
				self.put(win, y, 1, fit_width(bar + clock, inner), curses.color_pair(PROGRESS))
				y += 1

			if state.current_word and y + 1 < height - 1:
				y += 1
				self.put(win, y, 1, fit_width(f"♪ {state.current_word} ♪", inner),
						 curses.color_pair(WORD) | curses.A_BOLD)
				y += 1

		y += 1
		for row in wrap_text(state.status, inner):
			if y >= height - 1:
				break
			self.put(win, y, 1, row, curses.color_pair(STATUS))
			y += 1

		win.noutrefresh()

	def draw_lyrics(self, state):
		win = self.lyrics_win
		win.erase()
		self.draw_frame(win, "Lyrics", LYRICS_BORDER)
		height, width = win.getmaxyx()
		inner = width - 2

		lyrics = state.lyrics
		lines = display_lines(lyrics)
		synced = lyrics.is_synced
		y = 1

		for index in range(state.scroll_offset, len(lines)):
			if y >= height - 1:
				break
			active = synced and index == state.current_line_index
			attr = curses.color_pair(ACTIVE) | curses.A_BOLD if active else 0
			for row in self.wrapped_rows(lyrics, lines, index, inner):
				if y >= height - 1:
					break
				self.put(win, y, 1, row, attr)
				if active and self.karaoke_enabled and state.current_word:
					self.highlight_word(win, y, row, state.current_word)
				y += 1

		win.noutrefresh()

	def highlight_word(self, win, y, row, word):
		start = row.find(word)
		if start == -1:
			return
		x = 1 + text_width(row[:start])
		self.put(win, y, x, word, curses.color_pair(WORD) | curses.A_BOLD | curses.A_UNDERLINE)
