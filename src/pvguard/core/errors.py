#!/usr/bin/env python3
"""
PVGUARD ERRORS
--------------
Every failure the gate can produce. None of them is recovered locally;
they all travel up to the CLI boundary, which turns them into a single
failure signal.

Author: PVGuard Team
"""


class GuardError(Exception):
    """Base class for every run-ending condition."""


class ConfigError(GuardError):
    """Missing or malformed runtime configuration."""


class EventError(GuardError):
    """The triggering event is not a usable push."""


class CollaboratorError(GuardError):
    """The hosting API failed, answered unsuccessfully, or returned an unusable body."""


class IntegrityError(GuardError):
    """The push payload and the repository tree disagree."""


class ManifestParseError(GuardError):
    """A removed manifest is not valid multi-document YAML of mappings."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class UnconfirmedDeletionError(GuardError):
    """One or more PersistentVolume deletions lack confirmation."""

    def __init__(self, outcome, message: str = "There is one or more unconfirmed persistent volume deletions"):
        super().__init__(message)
        self.outcome = outcome
