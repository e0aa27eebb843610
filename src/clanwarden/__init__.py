"""Clan join-review and server setup bot."""

__version__ = "0.1.0"
