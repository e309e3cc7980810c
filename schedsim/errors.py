from __future__ import annotations


class SchedulerError(ValueError):
    """
    Base class for every error raised by the simulator.

    Subclasses ValueError so callers that only know about bad values keep
    working.
    """


class EmptyInputError(SchedulerError):
    """The process set has no entries."""


class InvalidRecordError(SchedulerError):
    """A process has a bad pid, a negative arrival or a non-positive burst."""


class InvalidConfigurationError(SchedulerError):
    """An algorithm was asked to run with unusable settings."""


class FormatError(SchedulerError):
    """A workload source could not be parsed."""
