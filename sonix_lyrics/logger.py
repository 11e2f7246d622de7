import os
import sys
import threading
from datetime import datetime

LOG_LEVELS = {
	"FATAL": 5,
	"ERROR": 4,
	"WARN": 3,
	"INFO": 2,
	"DEBUG": 1,
	"TRACE": 0
}


def trim_file(path, keep):
	"""Keep only the last `keep` lines of a log file"""
	if not os.path.exists(path):
		return
	try:
		with open(path, "r+", encoding="utf-8") as f:
			lines = f.readlines()
			if len(lines) > keep:
				f.seek(0)
				f.truncate()
				f.writelines(lines[-keep:])
	except OSError as e:
		sys.stderr.write(f"Log cleanup failed for {path}: {e}\n")


def thread_tag():
	"""Worker threads tag their entries; the main loop writes untagged"""
	current = threading.current_thread()
	if current is threading.main_thread():
		return ""
	return f"[{current.name}] "


# ================
#  LOGGING SYSTEM
# ================
class Logger:
	"""File logger shared by the main loop, the poller and the ticker.

	Entries below the configured level are dropped from the main log. With
	debug logging enabled, DEBUG and TRACE entries also go to a separate,
	shorter debug log. Nothing is written until a log directory is known.
	"""

	def __init__(self, log_dir=None, log_file="application.log", debug_log="debug.log",
				 log_level="INFO", max_log_count=1000, max_debug_count=100, enable_debug=False):
		self.LOG_DIR = log_dir
		self.LOG_FILE = log_file
		self.DEBUG_LOG = debug_log
		self.LOG_LEVEL = log_level
		self.MAX_LOG_COUNT = max_log_count
		self.MAX_DEBUG_COUNT = max_debug_count
		self.ENABLE_DEBUG_LOGGING = enable_debug
		self._lock = threading.Lock()

	def configure(self, config_manager):
		"""Adopt the logging section of a loaded ConfigManager"""
		self.LOG_DIR = config_manager.LOG_DIR
		self.LOG_FILE = config_manager.LOG_FILE
		self.DEBUG_LOG = config_manager.DEBUG_LOG
		self.LOG_LEVEL = config_manager.LOG_LEVEL
		self.MAX_LOG_COUNT = config_manager.MAX_LOG_COUNT
		self.MAX_DEBUG_COUNT = config_manager.MAX_DEBUG_COUNT
		self.ENABLE_DEBUG_LOGGING = config_manager.ENABLE_DEBUG_LOGGING

	def format_entry(self, level, message):
		timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')
		return f"{timestamp} | {level} | {thread_tag()}{message}\n"

	def append(self, file_name, entry, keep):
		path = os.path.join(self.LOG_DIR, file_name)
		with open(path, "a", encoding="utf-8") as f:
			f.write(entry)
		# Main log is trimmed only once it passes roughly `keep` KiB
		if file_name == self.DEBUG_LOG or os.path.getsize(path) > keep * 1024:
			trim_file(path, keep)

	def log_message(self, level: str, message: str):
		if not self.LOG_DIR:
			return

		level = level.upper()
		message_level = LOG_LEVELS.get(level, 2)
		configured_level = LOG_LEVELS.get(str(self.LOG_LEVEL).upper(), 2)
		write_debug = self.ENABLE_DEBUG_LOGGING and message_level <= LOG_LEVELS["DEBUG"]
		write_main = message_level >= configured_level
		if not (write_debug or write_main):
			return

		entry = self.format_entry(level, message)
		try:
			# Poller and main loop share the files
			with self._lock:
				os.makedirs(self.LOG_DIR, exist_ok=True)
				if write_debug:
					self.append(self.DEBUG_LOG, entry, self.MAX_DEBUG_COUNT)
				if write_main:
					self.append(self.LOG_FILE, entry, self.MAX_LOG_COUNT)
		except OSError as e:
			sys.stderr.write(f"Logging failed: {e}\n")

	def log_fatal(self, message: str):
		self.log_message("FATAL", message)

	def log_error(self, message: str):
		self.log_message("ERROR", message)

	def log_warn(self, message: str):
		self.log_message("WARN", message)

	def log_info(self, message: str):
		self.log_message("INFO", message)

	def log_debug(self, message: str):
		self.log_message("DEBUG", message)

	def log_trace(self, message: str):
		self.log_message("TRACE", message)


# Shared logger, configured once the config is loaded
LOGGER = Logger()
