"""Synchronized lyrics for the track playing on a Navidrome server."""

VERSION = "0.1.0"
