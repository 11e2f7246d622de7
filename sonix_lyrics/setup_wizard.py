"""
First-run setup form for the Navidrome connection.

Three text fields are edited in turn. Tab cycles Url -> User -> Password -> Url,
Enter moves forward and finishes on the password field, Esc aborts. The
password itself is never stored: a random salt and md5(password + salt) are,
which is what Subsonic token authentication expects.
"""
import curses
import hashlib
import secrets
import string
from enum import Enum

ESCAPE = 27
ENTER_KEYS = (curses.KEY_ENTER, 10, 13)
BACKSPACE_KEYS = (curses.KEY_BACKSPACE, 127, 8)
TAB = 9
SALT_LENGTH = 12


class Field(Enum):
	URL = "url"
	USER = "user"
	PASSWORD = "password"


# Tab cycles through every field
TAB_TRANSITIONS = {
	Field.URL: Field.USER,
	Field.USER: Field.PASSWORD,
	Field.PASSWORD: Field.URL
}

# Enter advances but stays on the last field
ENTER_TRANSITIONS = {
	Field.URL: Field.USER,
	Field.USER: Field.PASSWORD,
	Field.PASSWORD: Field.PASSWORD
}

LABELS = {
	Field.URL: "Navidrome URL",
	Field.USER: "Username",
	Field.PASSWORD: "Password"
}


def generate_salt(length=SALT_LENGTH):
	return "".join(secrets.choice(string.ascii_lowercase) for _ in range(length))


def make_token(password, salt):
	return hashlib.md5(f"{password}{salt}".encode("utf-8")).hexdigest()


class SetupForm:
	"""Editing state of the wizard, independent of the terminal"""

	def __init__(self):
		self.values = {field: "" for field in Field}
		self.field = Field.URL
		self.cursor = 0
		self.finished = False
		self.aborted = False

	@property
	def current(self):
		return self.values[self.field]

	def move_to(self, field):
		self.field = field
		self.cursor = 0

	def handle_key(self, key):
		"""Apply one key code to the form"""
		text = self.current

		if key == ESCAPE:
			self.aborted = True
		elif key == TAB:
			self.move_to(TAB_TRANSITIONS[self.field])
		elif key == curses.KEY_LEFT:
			self.cursor = max(0, self.cursor - 1)
		elif key == curses.KEY_RIGHT:
			self.cursor = min(len(text), self.cursor + 1)
		elif key in BACKSPACE_KEYS:
			if self.cursor > 0:
				self.values[self.field] = text[:self.cursor - 1] + text[self.cursor:]
				self.cursor -= 1
		elif key in ENTER_KEYS:
			if self.field is Field.PASSWORD:
				self.finished = True
			else:
				self.move_to(ENTER_TRANSITIONS[self.field])
		elif 32 <= key < 127:
			self.values[self.field] = text[:self.cursor] + chr(key) + text[self.cursor:]
			self.cursor += 1

	def result(self, salt=None):
		"""Connection settings in the shape ConfigManager.apply_setup expects"""
		salt = salt or generate_salt()
		return {
			"navidrome_url": self.values[Field.URL].strip().rstrip("/"),
			"navidrome_user": self.values[Field.USER].strip(),
			"navidrome_token": make_token(self.values[Field.PASSWORD], salt),
			"navidrome_salt": salt,
			"refresh_interval": 2,
			"karaoke_enabled": False
		}


def draw_form(stdscr, form):
	stdscr.erase()
	height, width = stdscr.getmaxyx()

	def put(y, x, text, attr=0):
		try:
			stdscr.addstr(y, x, text[:max(0, width - x - 1)], attr)
		except curses.error:
			pass

	put(0, 1, "Sonix Lyrics — First-Time Setup", curses.A_BOLD)
	y = 2
	for field in Field:
		value = form.values[field]
		shown = "*" * len(value) if field is Field.PASSWORD else value
		attr = curses.A_REVERSE if field is form.field else 0
		put(y, 1, f"{LABELS[field]}:", curses.A_BOLD)
		put(y + 1, 3, shown or " ", attr)
		y += 3
	put(y, 1, "Tab: next field · Enter: confirm · Esc: cancel")

	cursor_y = 3 + 3 * list(Field).index(form.field)
	try:
		stdscr.move(cursor_y, min(width - 1, 3 + form.cursor))
	except curses.error:
		pass
	stdscr.refresh()


def run_setup_wizard(stdscr):
	"""Collect Navidrome credentials; returns None when the user cancels"""
	try:
		curses.curs_set(1)
	except curses.error:
		pass
	stdscr.keypad(True)

	form = SetupForm()
	while not (form.finished or form.aborted):
		draw_form(stdscr, form)
		form.handle_key(stdscr.getch())

	if form.aborted:
		return None
	return form.result()
