import argparse
import curses
import sys

from . import VERSION
from .app import run
from .config import ConfigManager
from .errors import ConfigError
from .logger import LOGGER
from .setup_wizard import run_setup_wizard


def parse_args(argv=None):
	parser = argparse.ArgumentParser(description="Sonix Lyrics - synced lyrics for Navidrome")
	parser.add_argument("-c", "--config", help="Path to configuration file")
	parser.add_argument("-d", "--default", action="store_true", help="Use default settings without loading a config file")
	parser.add_argument("-k", "--karaoke", action="store_true", help="Enable word-level karaoke highlighting")
	parser.add_argument("--setup", action="store_true", help="Run the setup wizard and save a new config")
	parser.add_argument("--version", action="version", version=VERSION)
	return parser.parse_args(argv)


def main(argv=None):
	args = parse_args(argv)

	try:
		config_manager = ConfigManager(
			config_path=args.config,
			use_default=args.default,
			karaoke_override=True if args.karaoke else None
		)
	except ConfigError as e:
		print(e, file=sys.stderr)
		return 1

	LOGGER.configure(config_manager)

	if args.setup or (not args.default and not config_manager.file_exists()):
		if not args.setup:
			print(f"No config found at {config_manager.config_path}, launching setup wizard...")
		result = curses.wrapper(run_setup_wizard)
		if result is None:
			print("Setup aborted.")
			return 0
		config_manager.apply_setup(**result)
		path = config_manager.save()
		LOGGER.log_info(f"Saved config to {path}")

	LOGGER.log_info("Sonix Lyrics starting...")

	try:
		curses.wrapper(run, config_manager)
	except KeyboardInterrupt:
		print("Exited by user (Ctrl+C).")
	except curses.error as e:
		LOGGER.log_fatal(f"Terminal error: {e}")
		print(f"Error: {e}", file=sys.stderr)
		return 1

	return 0
