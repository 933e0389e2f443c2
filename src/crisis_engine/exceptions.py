"""Exception hierarchy for the crisis engine."""

from __future__ import annotations


class CrisisEngineError(Exception):
    """Base class for errors raised by the engine."""


class AlertPersistenceError(CrisisEngineError):
    """An alert could not be durably written.

    Callers must treat this as a system failure: a detected crisis signal
    that is not stored has not been handled.
    """

    def __init__(self, message: str, *, subject_id: str | None = None) -> None:
        super().__init__(message)
        self.subject_id = subject_id


class ChannelNotConfiguredError(CrisisEngineError):
    """A notification was sent to a channel with no delivery target."""

    def __init__(self, channel: str) -> None:
        super().__init__(f"No delivery target configured for channel '{channel}'")
        self.channel = channel


class ConfigError(CrisisEngineError):
    """The thresholds file is not shaped the way the loader expects."""
