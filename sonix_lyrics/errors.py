"""
Exception classes for sonix_lyrics.

Exception Hierarchy:
	SonixError (base)
		ConfigError - unusable configuration file
		TransportError - network/HTTP failure reaching a remote service
		ProtocolError - a response arrived but had an unexpected shape
		NotFoundError - the service answered but had nothing usable

	NavidromeError (track source)
		NavidromeTransportError, InvalidResponseError, NoTrackError
	LyricsError (lyrics lookup)
		LyricsTransportError, LyricsProtocolError, LyricsNotFoundError

Every error raised by a remote collaborator is recoverable: the poller logs
track-source errors and keeps the previous state, the coordinator turns lyrics
errors into a placeholder. Malformed lyric text never raises at all.
"""


class SonixError(Exception):
	"""
	Base exception for all sonix_lyrics errors.

	Attributes:
		message: Human-readable error description.
		details: Optional dictionary with extra context (query, url, original error).
	"""

	def __init__(self, message, details=None):
		super().__init__(message)
		self.message = message
		self.details = details or {}

	def __str__(self):
		return self.message


class ConfigError(SonixError):
	"""Raised when the configuration file exists but cannot be used."""
	pass


class TransportError(SonixError):
	pass


class ProtocolError(SonixError):
	pass


class NotFoundError(SonixError):
	pass


# ================
#  TRACK SOURCE
# ================
class NavidromeError(SonixError):
	"""Base for failures of the now-playing lookup."""
	pass


class NavidromeTransportError(NavidromeError, TransportError):
	pass


class InvalidResponseError(NavidromeError, ProtocolError):
	def __init__(self, message="Invalid response", details=None):
		super().__init__(message, details)


class NoTrackError(NavidromeError, NotFoundError):
	def __init__(self, message="No song playing", details=None):
		super().__init__(message, details)


# ================
#  LYRICS SOURCE
# ================
class LyricsError(SonixError):
	"""Base for failures of the lyrics lookup."""
	pass


class LyricsTransportError(LyricsError, TransportError):
	pass


class LyricsProtocolError(LyricsError, ProtocolError):
	pass


class LyricsNotFoundError(LyricsError, NotFoundError):
	def __init__(self, message="Not found", details=None):
		super().__init__(message, details)
