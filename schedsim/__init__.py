"""
Discrete-time CPU scheduling simulator.

Runs FCFS, SRTF, Preemptive Priority and Round Robin over a process set,
producing a tick-by-tick timeline and per-process and system metrics.
"""

from .algorithms import ALGORITHMS, run_algorithm, run_many
from .errors import (
    EmptyInputError,
    FormatError,
    InvalidConfigurationError,
    InvalidRecordError,
    SchedulerError,
)
from .models import IDLE, Process, ScheduleResult, Timeline

__all__ = [
    "ALGORITHMS",
    "IDLE",
    "EmptyInputError",
    "FormatError",
    "InvalidConfigurationError",
    "InvalidRecordError",
    "Process",
    "ScheduleResult",
    "SchedulerError",
    "Timeline",
    "cli",
    "run_algorithm",
    "run_many",
]
