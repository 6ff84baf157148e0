"""
Scheduler exceptions.

The engine itself degrades gracefully and does not raise for malformed
attempts. These errors are reserved for caller-level problems such as a
storage record that cannot be mapped onto the topic taxonomy.
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for adaptive scheduler errors."""


class InvalidRecordError(SchedulerError, ValueError):
    """A persisted record could not be converted into engine state."""


class ClassifierUnavailableError(SchedulerError):
    """The external topic classifier could not produce a usable label."""
