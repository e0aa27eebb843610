from __future__ import annotations


class ClanWardenError(Exception):
    """Base class for errors raised by the bot itself."""


class ConfigurationError(ClanWardenError):
    """Raised when required settings are missing or invalid."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])

