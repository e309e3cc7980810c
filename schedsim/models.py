from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .errors import EmptyInputError

# Timeline owner for a tick where no process holds the CPU.
IDLE = 0


@dataclass(frozen=True)
class Process:
    """
    Input descriptor for one process. Never mutated by a simulation run.
    """

    pid: int
    arrival_time: int
    burst_time: int
    priority: int = 0


@dataclass
class ProcessRecord:
    """
    Simulation state of a process, owned by a single scheduling run.
    """

    pid: int
    arrival_time: int
    burst_time: int
    priority: int
    remaining: int
    start: Optional[int] = None
    completion: Optional[int] = None

    @classmethod
    def from_process(cls, process: Process) -> "ProcessRecord":
        return cls(
            pid=process.pid,
            arrival_time=process.arrival_time,
            burst_time=process.burst_time,
            priority=process.priority,
            remaining=process.burst_time,
        )

    @property
    def finished(self) -> bool:
        return self.remaining <= 0

    def is_eligible(self, tick: int) -> bool:
        return self.arrival_time <= tick and self.remaining > 0

    def dispatch(self, tick: int) -> None:
        """
        Run this process for the single tick `tick`.
        """
        if self.remaining <= 0:
            raise RuntimeError(f"P{self.pid} dispatched after completion")
        if self.start is None:
            self.start = tick
        self.remaining -= 1
        if self.remaining == 0:
            self.completion = tick + 1


def new_run(processes: Iterable[Process]) -> List[ProcessRecord]:
    """
    Fresh, unshared records for one scheduling run, ordered by pid.
    """
    processes = list(processes)
    if not processes:
        raise EmptyInputError("Cannot schedule an empty process set")
    return [ProcessRecord.from_process(p) for p in sorted(processes, key=lambda p: p.pid)]


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: int
    start_time: int
    end_time: int


class Timeline(list):
    """
    Tick owners of one run: entry t is the pid on the CPU during tick t,
    or IDLE.
    """

    @property
    def makespan(self) -> int:
        return len(self)

    @property
    def idle_ticks(self) -> int:
        return sum(1 for owner in self if owner == IDLE)

    @property
    def busy_ticks(self) -> int:
        return len(self) - self.idle_ticks

    def slices(self) -> List[ScheduledSlice]:
        """
        Collapse consecutive ticks with the same owner. Idle runs are left out.
        """
        slices: List[ScheduledSlice] = []
        for tick, owner in enumerate(self):
            if owner == IDLE:
                continue
            if slices and slices[-1].pid == owner and slices[-1].end_time == tick:
                slices[-1].end_time = tick + 1
            else:
                slices.append(ScheduledSlice(pid=owner, start_time=tick, end_time=tick + 1))
        return slices


@dataclass
class ProcessMetrics:
    pid: int
    arrival_time: int
    burst_time: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int
    priority: int = 0


@dataclass
class SystemMetrics:
    makespan: int
    cpu_busy_time: int
    completed: int
    context_switches: int
    throughput: float
    cpu_utilization: float  # percent
    avg_waiting: float = 0.0
    avg_turnaround: float = 0.0
    avg_response: float = 0.0


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int]
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: Timeline = field(default_factory=Timeline)
    system: Optional[SystemMetrics] = None

    def by_pid(self, pid: int) -> ProcessMetrics:
        for p in self.processes:
            if p.pid == pid:
                return p
        raise KeyError(pid)
