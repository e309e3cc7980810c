from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple, Union

from .errors import InvalidConfigurationError, SchedulerError
from .metrics import evaluate
from .models import IDLE, Process, ProcessRecord, ScheduleResult, Timeline, new_run
from .workload_io import validate_processes

log = logging.getLogger(__name__)

SelectionKey = Callable[[ProcessRecord], Tuple[int, ...]]


def _pick(records: List[ProcessRecord], tick: int, key: SelectionKey) -> Optional[ProcessRecord]:
    """
    Eligible record with the smallest key, or None if the CPU has to idle.

    Every key ends in the pid, so ties resolve to the lowest pid.
    """
    eligible = [r for r in records if r.is_eligible(tick)]
    if not eligible:
        return None
    return min(eligible, key=key)


def _run_preemptive(records: List[ProcessRecord], key: SelectionKey, label: str) -> Timeline:
    """
    Tick-by-tick loop shared by SRTF and Preemptive Priority.
    """
    timeline = Timeline()
    tick = 0
    current: Optional[ProcessRecord] = None

    while any(not r.finished for r in records):
        chosen = _pick(records, tick, key)
        if chosen is None:
            log.debug("%s t=%d: idle", label, tick)
            timeline.append(IDLE)
            tick += 1
            current = None
            continue

        if current is not None and current is not chosen and not current.finished:
            log.debug("%s t=%d: P%d preempts P%d", label, tick, chosen.pid, current.pid)

        chosen.dispatch(tick)
        timeline.append(chosen.pid)
        tick += 1
        current = chosen

        if chosen.finished:
            log.debug("%s t=%d: P%d completes", label, tick, chosen.pid)

    return timeline


def schedule_fcfs(processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    First-Come First-Serve (non-preemptive) scheduling.

    Processes are served in (arrival, pid) order; the CPU idles until the
    next process has arrived.
    """
    records = new_run(processes)

    tick = 0
    timeline = Timeline()

    for r in sorted(records, key=lambda r: (r.arrival_time, r.pid)):
        while tick < r.arrival_time:
            timeline.append(IDLE)
            tick += 1

        while not r.finished:
            r.dispatch(tick)
            timeline.append(r.pid)
            tick += 1

        log.debug("FCFS: P%d ran [%d, %d)", r.pid, r.start, r.completion)

    return evaluate("FCFS", None, records, timeline)


def schedule_srtf(processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Shortest Remaining Time First (preemptive SJF).

    Each tick the arrived process with the least remaining time runs.
    """
    records = new_run(processes)
    timeline = _run_preemptive(records, key=lambda r: (r.remaining, r.pid), label="SRTF")
    return evaluate("SRTF", None, records, timeline)


def schedule_priority(processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Preemptive Priority scheduling.

    Lower numeric priority value means higher priority. Each tick the
    arrived process with the smallest priority runs; ties go to the smaller
    remaining time, then the lower pid.
    """
    records = new_run(processes)
    timeline = _run_preemptive(records, key=lambda r: (r.priority, r.remaining, r.pid), label="Priority")
    return evaluate("Priority (preemptive)", None, records, timeline)


def schedule_rr(processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time quantum.
    """
    if quantum is None or isinstance(quantum, bool) or not isinstance(quantum, int) or quantum <= 0:
        raise InvalidConfigurationError(
            f"Round Robin requires a positive integer quantum, got {quantum!r}"
        )

    records = new_run(processes)
    ready: Deque[ProcessRecord] = deque()
    queued: Dict[int, bool] = {r.pid: False for r in records}

    tick = 0
    timeline = Timeline()

    # Admit arrivals in pid order; a record is queued at most once at a time.
    def enqueue_new_arrivals(current_tick: int) -> None:
        for r in records:
            if not queued[r.pid] and r.is_eligible(current_tick):
                ready.append(r)
                queued[r.pid] = True

    while any(not r.finished for r in records):
        enqueue_new_arrivals(tick)

        if not ready:
            log.debug("RR t=%d: idle", tick)
            timeline.append(IDLE)
            tick += 1
            continue

        r = ready.popleft()
        run_time = min(quantum, r.remaining)
        for _ in range(run_time):
            r.dispatch(tick)
            timeline.append(r.pid)
            tick += 1
            # Arrivals during the slice queue up ahead of the preempted process.
            enqueue_new_arrivals(tick)

        if not r.finished:
            ready.append(r)
        else:
            log.debug("RR t=%d: P%d completes", tick, r.pid)

    return evaluate("Round Robin", quantum, records, timeline)


ALGORITHMS = {
    "fcfs": schedule_fcfs,
    "srtf": schedule_srtf,
    "priority": schedule_priority,
    "rr": schedule_rr,
}

ALIASES = {
    "round_robin": "rr",
    "round-robin": "rr",
}

DEFAULT_ALGORITHMS = ("fcfs", "srtf", "priority", "rr")


def resolve_algorithm(name: str) -> str:
    key = name.strip().lower()
    key = ALIASES.get(key, key)
    if key not in ALGORITHMS:
        raise InvalidConfigurationError(
            f"Unknown algorithm '{name}' (choose from {', '.join(ALGORITHMS)})"
        )
    return key


def run_algorithm(name: str, processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. Quantum is only used by round-robin.

    The process set is validated first; bad records raise before any tick runs.
    """
    func = ALGORITHMS[resolve_algorithm(name)]
    validate_processes(processes)
    return func(processes, quantum=quantum)


def run_many(
    names: Sequence[str],
    processes: Sequence[Process],
    quantum: Optional[int] = None,
) -> List[Tuple[str, Union[ScheduleResult, SchedulerError]]]:
    """
    Run several algorithms over the same workload.

    Each run builds its own records, so runs cannot see each other's state.
    A run that fails contributes its error instead of a result.
    """
    outcomes: List[Tuple[str, Union[ScheduleResult, SchedulerError]]] = []
    for name in names:
        try:
            outcomes.append((name, run_algorithm(name, processes, quantum=quantum)))
        except SchedulerError as exc:
            log.warning("%s failed: %s", name, exc)
            outcomes.append((name, exc))
    return outcomes
