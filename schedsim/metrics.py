from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .errors import SchedulerError
from .models import IDLE, ProcessMetrics, ProcessRecord, ScheduleResult, SystemMetrics, Timeline

log = logging.getLogger(__name__)


def process_metrics(record: ProcessRecord) -> ProcessMetrics:
    """
    Derive waiting, turnaround and response time for a finished record.
    """
    if record.start is None or record.completion is None:
        raise SchedulerError(f"P{record.pid} did not complete; metrics are undefined")

    turnaround_time = record.completion - record.arrival_time
    return ProcessMetrics(
        pid=record.pid,
        arrival_time=record.arrival_time,
        burst_time=record.burst_time,
        start_time=record.start,
        completion_time=record.completion,
        waiting_time=turnaround_time - record.burst_time,
        turnaround_time=turnaround_time,
        response_time=record.start - record.arrival_time,
        priority=record.priority,
    )


def count_context_switches(timeline: Iterable[int]) -> int:
    """
    Count switches away from a running process.

    A change of owner counts when the previous owner was a process, whether
    the CPU goes to another process or idles. Idle -> process does not count.
    """
    switches = 0
    previous: Optional[int] = None
    for tick, owner in enumerate(timeline):
        if owner != previous:
            if tick > 0 and previous != IDLE:
                switches += 1
            previous = owner
    return switches


def compute_system_metrics(processes: List[ProcessMetrics], timeline: Timeline) -> SystemMetrics:
    """
    Compute averages, throughput and CPU utilization for a finished run.
    """
    makespan = len(timeline)
    if not processes or makespan == 0:
        return SystemMetrics(
            makespan=makespan,
            cpu_busy_time=0,
            completed=0,
            context_switches=0,
            throughput=0.0,
            cpu_utilization=0.0,
        )

    n = len(processes)
    total_burst = sum(p.burst_time for p in processes)
    summary = summarize_process_metrics(processes)

    return SystemMetrics(
        makespan=makespan,
        cpu_busy_time=total_burst,
        completed=n,
        context_switches=count_context_switches(timeline),
        throughput=n / makespan,
        cpu_utilization=total_burst / makespan * 100.0,
        avg_waiting=summary["avg_waiting"],
        avg_turnaround=summary["avg_turnaround"],
        avg_response=summary["avg_response"],
    )


def evaluate(
    algorithm: str,
    quantum: Optional[int],
    records: List[ProcessRecord],
    timeline: Timeline,
) -> ScheduleResult:
    """
    Turn the records and timeline of a finished run into a ScheduleResult.
    """
    processes = [process_metrics(r) for r in sorted(records, key=lambda r: r.pid)]
    system = compute_system_metrics(processes, timeline)
    log.info(
        "%s: makespan=%d avg_waiting=%.3f context_switches=%d",
        algorithm,
        system.makespan,
        system.avg_waiting,
        system.context_switches,
    )
    return ScheduleResult(
        algorithm=algorithm,
        quantum=quantum,
        processes=processes,
        timeline=timeline,
        system=system,
    )


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }
