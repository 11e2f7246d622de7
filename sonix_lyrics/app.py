import curses
import queue
import threading
import time
from datetime import datetime, timezone
from functools import partial

from .errors import NavidromeError
from .logger import LOGGER
from .lyrics import fetch_lyrics
from .navidrome import fetch_current_track
from .playback import PlaybackState, UpdateCoordinator, refresh_position, scroll_down, scroll_up
from .ui import LyricsRenderer

PULSE = object()


# ================
#  BACKGROUND WORKERS
# ================
def poll_once(config, samples, fetch=fetch_current_track):
	"""One poller step: fetch the playing track and hand it to the main loop"""
	try:
		sample = fetch(config)
	except NavidromeError as e:
		LOGGER.log_error(f"Navidrome error: {e}")
		return None
	# Blocks while the previous sample is still undrained
	samples.put(sample)
	return sample


def poll_worker(config, samples, fetch=fetch_current_track):
	while True:
		poll_once(config, samples, fetch)
		time.sleep(config.REFRESH_INTERVAL)


def tick_worker(pulses, interval=0.1):
	while True:
		pulses.put(PULSE)
		time.sleep(interval)


def start_workers(config, samples, pulses, fetch=fetch_current_track):
	"""Start the poller and ticker threads; they die with the process"""
	workers = [
		threading.Thread(target=poll_worker, args=(config, samples, fetch), name="poller", daemon=True),
		threading.Thread(target=tick_worker, args=(pulses, config.TICK_INTERVAL), name="ticker", daemon=True)
	]
	for worker in workers:
		worker.start()
	return workers


def drain_sample(samples, coordinator):
	"""Apply at most one pending track sample without blocking"""
	try:
		sample = samples.get_nowait()
	except queue.Empty:
		return None
	return coordinator.apply(sample)


def take_pulse(pulses):
	try:
		pulses.get_nowait()
	except queue.Empty:
		return False
	return True


# ================
#  INPUT HANDLING
# ================
def parse_key_config(key_config):
	"""Convert key config strings to key codes"""
	if isinstance(key_config, list):
		return [parse_single_key(k) for k in key_config]
	return [parse_single_key(key_config)]


def parse_single_key(key_str):
	"""Convert single key string to key code"""
	if key_str.startswith("KEY_"):
		return getattr(curses, key_str, None)
	elif len(key_str) == 1:
		return ord(key_str)
	return None


def load_key_bindings(config):
	"""Load and parse key bindings from config with None handling"""
	bindings = config.get("key_bindings", {})
	parsed = {}

	for action, key_config in bindings.items():
		keys = parse_key_config(key_config)
		parsed[action] = [k for k in keys if k is not None]

	defaults = {
		"quit": [ord("q")],
		"refresh": [ord("r")],
		"scroll_up": [ord("k"), curses.KEY_UP],
		"scroll_down": [ord("j"), curses.KEY_DOWN]
	}

	for key, default in defaults.items():
		if not parsed.get(key):
			parsed[key] = default

	return parsed


def handle_key(key, state, coordinator, key_bindings):
	"""Apply one key press; returns False when the app should quit"""
	if key in key_bindings["quit"]:
		return False

	if key in key_bindings["refresh"]:
		coordinator.refetch()
	elif key in key_bindings["scroll_down"]:
		scroll_down(state)
	elif key in key_bindings["scroll_up"]:
		scroll_up(state)

	return True


# ================
#  MAIN APPLICATION
# ================
def run(stdscr, config, fetch_track=fetch_current_track, lyrics_fetcher=None):
	LOGGER.log_info("Initializing UI")

	if lyrics_fetcher is None:
		lyrics_fetcher = partial(
			fetch_lyrics,
			base_url=config.LYRICS_BASE_URL,
			timeout=config.LYRICS_TIMEOUT,
			connect_timeout=config.LYRICS_CONNECT_TIMEOUT,
			user_agent=config.LYRICS_USER_AGENT
		)

	curses.curs_set(0)
	stdscr.keypad(True)
	stdscr.timeout(config.INPUT_WAIT_MS)

	state = PlaybackState(status=config.HELP_MESSAGE)
	state.lyrics.plain_lines = [config.EMPTY_MESSAGE]
	coordinator = UpdateCoordinator(state, lyrics_fetcher, placeholder=config.PLACEHOLDER)
	renderer = LyricsRenderer(stdscr, config)
	key_bindings = load_key_bindings(config.config)

	# Single-slot channels give the workers backpressure
	samples = queue.Queue(maxsize=1)
	pulses = queue.Queue(maxsize=1)
	start_workers(config, samples, pulses, fetch_track)

	last_draw = 0.0

	while True:
		try:
			drain_sample(samples, coordinator)

			refresh_position(state, datetime.now(timezone.utc), config.KARAOKE_ENABLED, config.SCROLL_CONTEXT)

			current_time = time.perf_counter()
			if current_time - last_draw >= config.RENDER_INTERVAL:
				renderer.draw(state)
				last_draw = current_time

			if take_pulse(pulses):
				continue

			key = stdscr.getch()
			if key == curses.KEY_RESIZE:
				renderer.invalidate()
			elif key != -1 and not handle_key(key, state, coordinator, key_bindings):
				LOGGER.log_info("Quit requested")
				break

		except Exception as e:
			LOGGER.log_error(f"Main loop error: {e}")
			time.sleep(1)

	return state
