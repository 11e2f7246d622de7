import copy
import json
import os

import appdirs

from .errors import ConfigError

# ==============
#  CONFIGURATION
# ==============
APP_NAME = "sonix_lyrics"
CONFIG_FILE = "config.json"

DEFAULT_CONFIG = {
	"global": {
		"logs_dir": appdirs.user_log_dir(APP_NAME),
		"log_file": "application.log",
		"log_level": "INFO",
		"debug_log": "debug.log",
		"max_debug_count": 100,
		"max_log_count": 1000,
		"enable_debug": {"env": "DEBUG", "default": "0"}
	},
	"navidrome": {
		"url": {"env": "NAVIDROME_URL", "default": ""},
		"user": {"env": "NAVIDROME_USER", "default": ""},
		"token": {"env": "NAVIDROME_TOKEN", "default": ""},
		"salt": {"env": "NAVIDROME_SALT", "default": ""},
		"api_version": "1.16.1",
		"client": "sonix",
		"timeout": 4,
		"connect_timeout": 2
	},
	"lyrics": {
		"base_url": "https://lrclib.net",
		"timeout": 4,
		"connect_timeout": 2,
		"user_agent": "sonix_lyrics"
	},
	"sync": {
		"refresh_interval": 2,
		"tick_ms": 100,
		"render_interval_ms": 33,
		"input_wait_ms": 10,
		"scroll_context": 5,
		"karaoke_enabled": {"env": "KARAOKE_ENABLED", "default": False}
	},
	"ui": {
		"colors": {
			"info_border": "green",
			"lyrics_border": "blue",
			"active": "yellow",
			"word": "magenta",
			"status": "yellow",
			"progress": "green"
		},
		"placeholder": "No lyrics found",
		"empty": "No lyrics loaded",
		"help": "Press r to refresh · q to quit · j/k scroll"
	},
	"key_bindings": {
		"quit": ["q"],
		"refresh": ["r"],
		"scroll_up": ["k", "KEY_UP"],
		"scroll_down": ["j", "KEY_DOWN"]
	}
}


def default_config_path():
	return os.path.join(appdirs.user_config_dir(APP_NAME), CONFIG_FILE)


def deep_merge_dicts(base, updates):
	for key, value in updates.items():
		if key in base and isinstance(base[key], dict) and isinstance(value, dict) \
				and not ("env" in base[key] and "default" in base[key]):
			deep_merge_dicts(base[key], value)
		else:
			base[key] = value


def resolve_value(item):
	"""Resolve {"env": ..., "default": ...} into actual value"""
	if isinstance(item, dict) and "env" in item and "default" in item:
		return os.environ.get(item["env"], item["default"])
	return item


def parse_bool(value):
	if isinstance(value, bool):
		return value
	return str(value).strip().lower() in ("1", "true", "yes", "on")


def parse_int(value, default):
	try:
		return int(value)
	except (TypeError, ValueError):
		return default


class ConfigManager:
	def __init__(self, config_path=None, use_default=False, karaoke_override=None):
		self.config_path = os.path.expanduser(config_path) if config_path else default_config_path()
		self.use_default = use_default
		self.karaoke_override = karaoke_override

		self.config = self.load_config()
		self.setup_logging()
		self.setup_navidrome()
		self.setup_lyrics()
		self.setup_sync()
		self.setup_ui()

	@staticmethod
	def normalize_path(path: str) -> str:
		path = os.path.expanduser(path)
		if os.path.isabs(path):
			return os.path.normpath(path)
		return os.path.normpath(os.path.abspath(path))

	def file_exists(self):
		return os.path.exists(self.config_path)

	def load_config(self):
		merged_config = copy.deepcopy(DEFAULT_CONFIG)

		if not self.use_default and self.file_exists():
			try:
				with open(self.config_path, "r", encoding="utf-8") as f:
					file_config = json.load(f)
			except (OSError, ValueError) as e:
				raise ConfigError(f"Error loading config from {self.config_path}: {e}",
								  details={"path": self.config_path})
			if not isinstance(file_config, dict):
				raise ConfigError(f"Config in {self.config_path} must be a JSON object",
								  details={"path": self.config_path})
			deep_merge_dicts(merged_config, file_config)

		merged_config["global"]["enable_debug"] = str(resolve_value(merged_config["global"]["enable_debug"])) == "1"
		return merged_config

	def setup_logging(self):
		settings = self.config["global"]
		self.LOG_DIR = self.normalize_path(settings["logs_dir"])
		self.LOG_FILE = settings["log_file"]
		self.LOG_LEVEL = settings["log_level"]
		self.DEBUG_LOG = settings["debug_log"]
		self.MAX_DEBUG_COUNT = settings["max_debug_count"]
		self.MAX_LOG_COUNT = settings["max_log_count"]
		self.ENABLE_DEBUG_LOGGING = settings["enable_debug"]

	def setup_navidrome(self):
		settings = self.config["navidrome"]
		self.NAVIDROME_URL = str(resolve_value(settings["url"]) or "").rstrip("/")
		self.NAVIDROME_USER = str(resolve_value(settings["user"]) or "")
		self.NAVIDROME_TOKEN = str(resolve_value(settings["token"]) or "")
		self.NAVIDROME_SALT = str(resolve_value(settings["salt"]) or "")
		self.NAVIDROME_API_VERSION = settings["api_version"]
		self.NAVIDROME_CLIENT = settings["client"]
		self.NAVIDROME_TIMEOUT = settings["timeout"]
		self.NAVIDROME_CONNECT_TIMEOUT = settings["connect_timeout"]

	def setup_lyrics(self):
		settings = self.config["lyrics"]
		self.LYRICS_BASE_URL = settings["base_url"].rstrip("/")
		self.LYRICS_TIMEOUT = settings["timeout"]
		self.LYRICS_CONNECT_TIMEOUT = settings["connect_timeout"]
		self.LYRICS_USER_AGENT = settings["user_agent"]

	def setup_sync(self):
		settings = self.config["sync"]
		self.REFRESH_INTERVAL = parse_int(resolve_value(settings["refresh_interval"]), 2)
		self.TICK_INTERVAL = settings["tick_ms"] / 1000.0
		self.RENDER_INTERVAL = settings["render_interval_ms"] / 1000.0
		self.INPUT_WAIT_MS = settings["input_wait_ms"]
		self.SCROLL_CONTEXT = settings["scroll_context"]
		if self.karaoke_override is not None:
			self.KARAOKE_ENABLED = bool(self.karaoke_override)
		else:
			self.KARAOKE_ENABLED = parse_bool(resolve_value(settings["karaoke_enabled"]))

	def setup_ui(self):
		settings = self.config["ui"]
		self.COLORS = settings["colors"]
		self.PLACEHOLDER = settings["placeholder"]
		self.EMPTY_MESSAGE = settings["empty"]
		self.HELP_MESSAGE = settings["help"]

	def apply_setup(self, navidrome_url, navidrome_user, navidrome_token, navidrome_salt,
					refresh_interval=2, karaoke_enabled=False):
		"""Install the credentials produced by the setup wizard"""
		self.config["navidrome"].update({
			"url": navidrome_url,
			"user": navidrome_user,
			"token": navidrome_token,
			"salt": navidrome_salt
		})
		self.config["sync"]["refresh_interval"] = refresh_interval
		self.config["sync"]["karaoke_enabled"] = karaoke_enabled
		self.setup_navidrome()
		self.setup_sync()

	def save(self):
		"""Write the user-specific settings to the config file"""
		data = {
			"navidrome": {
				"url": self.NAVIDROME_URL,
				"user": self.NAVIDROME_USER,
				"token": self.NAVIDROME_TOKEN,
				"salt": self.NAVIDROME_SALT
			},
			"sync": {
				"refresh_interval": self.REFRESH_INTERVAL,
				"karaoke_enabled": self.KARAOKE_ENABLED
			}
		}
		directory = os.path.dirname(self.config_path)
		if directory:
			os.makedirs(directory, exist_ok=True)
		with open(self.config_path, "w", encoding="utf-8") as f:
			json.dump(data, f, indent=2)
		return self.config_path
