import pytest

from schedsim.algorithms import (
    run_algorithm,
    run_many,
    schedule_fcfs,
    schedule_priority,
    schedule_rr,
    schedule_srtf,
)
from schedsim.errors import EmptyInputError, InvalidConfigurationError, InvalidRecordError
from schedsim.models import IDLE, Process


def _procs():
    return [
        Process(1, arrival_time=0, burst_time=5, priority=2),
        Process(2, arrival_time=1, burst_time=3, priority=1),
        Process(3, arrival_time=2, burst_time=8, priority=3),
    ]


def _classic_srtf():
    return [
        Process(1, arrival_time=0, burst_time=7),
        Process(2, arrival_time=2, burst_time=4),
        Process(3, arrival_time=4, burst_time=1),
        Process(4, arrival_time=5, burst_time=4),
    ]


def _gappy():
    return [
        Process(1, arrival_time=3, burst_time=2, priority=1),
        Process(2, arrival_time=9, burst_time=1, priority=0),
    ]


ALL = [
    lambda ps: schedule_fcfs(ps),
    lambda ps: schedule_srtf(ps),
    lambda ps: schedule_priority(ps),
    lambda ps: schedule_rr(ps, quantum=2),
]


def test_fcfs_scenario():
    procs = [
        Process(1, arrival_time=0, burst_time=5),
        Process(2, arrival_time=1, burst_time=3),
        Process(3, arrival_time=2, burst_time=1),
    ]
    res = schedule_fcfs(procs)
    assert res.timeline == [1] * 5 + [2] * 3 + [3]

    p1, p2, p3 = res.processes
    assert (p1.start_time, p1.completion_time, p1.waiting_time) == (0, 5, 0)
    assert (p2.start_time, p2.completion_time, p2.waiting_time) == (5, 8, 4)
    # turnaround 9 - 2 = 7, waiting 7 - 1 = 6
    assert (p3.start_time, p3.completion_time, p3.waiting_time) == (8, 9, 6)
    assert res.system.context_switches == 2


def test_fcfs_order():
    res = schedule_fcfs(_procs())
    assert [s.pid for s in res.timeline.slices()] == [1, 2, 3]
    assert res.by_pid(1).waiting_time == 0
    assert res.by_pid(2).waiting_time == 4
    assert res.by_pid(3).waiting_time == 6


def test_fcfs_same_arrival_goes_by_pid():
    procs = [
        Process(7, arrival_time=0, burst_time=1),
        Process(3, arrival_time=0, burst_time=2),
    ]
    res = schedule_fcfs(procs)
    assert res.timeline == [3, 3, 7]


def test_fcfs_idles_until_arrival():
    res = schedule_fcfs(_gappy())
    assert res.timeline == [IDLE, IDLE, IDLE, 1, 1, IDLE, IDLE, IDLE, IDLE, 2]
    assert res.by_pid(1).response_time == 0
    assert res.by_pid(2).completion_time == 10


def test_fcfs_is_idempotent():
    procs = _procs()
    first = schedule_fcfs(procs)
    second = schedule_fcfs(procs)
    assert first.timeline == second.timeline
    assert first.processes == second.processes


def test_rr_scenario():
    procs = [
        Process(1, arrival_time=0, burst_time=4),
        Process(2, arrival_time=1, burst_time=3),
    ]
    res = schedule_rr(procs, quantum=2)
    assert res.timeline == [1, 1, 2, 2, 1, 1, 2]
    assert res.by_pid(1).completion_time == 6
    assert res.by_pid(2).completion_time == 7
    assert res.quantum == 2


def test_rr_arrival_during_slice_goes_before_requeued_process():
    procs = [
        Process(1, arrival_time=0, burst_time=3),
        Process(2, arrival_time=0, burst_time=3),
        Process(3, arrival_time=2, burst_time=1),
    ]
    res = schedule_rr(procs, quantum=2)
    # P3 arrives while P1 runs its first slice and is queued behind P2, ahead of P1.
    assert res.timeline == [1, 1, 2, 2, 3, 1, 2]


def test_rr_large_quantum_matches_fcfs():
    procs = _procs()
    rr = schedule_rr(procs, quantum=max(p.burst_time for p in procs))
    fcfs = schedule_fcfs(procs)
    assert rr.timeline == fcfs.timeline
    assert [p.completion_time for p in rr.processes] == [p.completion_time for p in fcfs.processes]


def test_rr_idles_when_queue_empty():
    res = schedule_rr(_gappy(), quantum=1)
    assert res.timeline[:3] == [IDLE, IDLE, IDLE]
    assert res.timeline[-1] == 2


@pytest.mark.parametrize("quantum", [None, 0, -3])
def test_rr_rejects_bad_quantum(quantum):
    with pytest.raises(InvalidConfigurationError):
        schedule_rr(_procs(), quantum=quantum)


def test_srtf_classic_preemption():
    res = schedule_srtf(_classic_srtf())
    assert res.timeline == [1, 1, 2, 2, 3, 2, 2, 4, 4, 4, 4, 1, 1, 1, 1, 1]
    assert [p.completion_time for p in res.processes] == [16, 7, 5, 11]
    assert [p.waiting_time for p in res.processes] == [9, 1, 0, 2]
    assert res.by_pid(2).start_time == 2
    assert res.system.context_switches == 5


def test_srtf_tie_goes_to_lowest_pid():
    procs = [
        Process(5, arrival_time=0, burst_time=2),
        Process(2, arrival_time=0, burst_time=2),
    ]
    res = schedule_srtf(procs)
    assert res.timeline == [2, 2, 5, 5]


def test_priority_preempts_on_arrival():
    res = schedule_priority(_procs())
    # P2 (priority 1) arrives at t=1 and takes the CPU from P1.
    assert res.timeline[:5] == [1, 2, 2, 2, 1]
    assert res.by_pid(2).completion_time == 4
    assert res.by_pid(1).completion_time == 8
    assert res.by_pid(3).completion_time == 16


def test_priority_tie_uses_remaining_then_pid():
    procs = [
        Process(1, arrival_time=0, burst_time=3, priority=1),
        Process(2, arrival_time=0, burst_time=2, priority=1),
        Process(3, arrival_time=0, burst_time=2, priority=1),
    ]
    res = schedule_priority(procs)
    assert res.timeline == [2, 2, 3, 3, 1, 1, 1]


@pytest.mark.parametrize("run", ALL)
@pytest.mark.parametrize("procs", [_procs(), _classic_srtf(), _gappy()])
def test_common_properties(run, procs):
    res = run(procs)
    assert len(res.processes) == len(procs)

    for p in res.processes:
        assert p.completion_time >= p.arrival_time + p.burst_time
        assert p.waiting_time >= 0
        assert p.response_time >= 0
        assert p.start_time >= p.arrival_time

    assert len(res.timeline) == max(p.completion_time for p in res.processes)
    assert sum(p.waiting_time for p in res.processes) == sum(
        p.turnaround_time for p in res.processes
    ) - sum(p.burst_time for p in res.processes)

    for p in res.processes:
        assert res.timeline.count(p.pid) == p.burst_time

    assert round(res.system.throughput * res.system.makespan) == len(procs)
    assert res.system.cpu_utilization <= 100.0
    assert (res.system.cpu_utilization == 100.0) == (IDLE not in res.timeline)


def test_input_is_not_mutated_between_runs():
    procs = _classic_srtf()
    snapshot = list(procs)
    srtf = schedule_srtf(procs)
    rr = schedule_rr(procs, quantum=3)
    again = schedule_srtf(procs)
    assert procs == snapshot
    assert srtf.timeline == again.timeline
    assert rr.timeline != srtf.timeline


def test_run_algorithm_dispatch():
    res = run_algorithm("SRTF", _classic_srtf())
    assert res.algorithm == "SRTF"
    res = run_algorithm("round_robin", _procs(), quantum=2)
    assert res.algorithm == "Round Robin"


def test_run_algorithm_errors():
    with pytest.raises(InvalidConfigurationError):
        run_algorithm("sjf", _procs())
    with pytest.raises(EmptyInputError):
        run_algorithm("fcfs", [])
    with pytest.raises(ValueError):
        run_algorithm("rr", _procs(), quantum=0)


def test_run_many_isolates_failures():
    outcomes = run_many(["fcfs", "rr", "nope", "srtf"], _procs(), quantum=0)
    names = [name for name, _ in outcomes]
    assert names == ["fcfs", "rr", "nope", "srtf"]
    assert isinstance(outcomes[1][1], InvalidConfigurationError)
    assert isinstance(outcomes[2][1], InvalidConfigurationError)
    assert outcomes[0][1].timeline == schedule_fcfs(_procs()).timeline
    assert outcomes[3][1].timeline == schedule_srtf(_procs()).timeline


@pytest.mark.parametrize(
    "name, procs",
    [
        ("srtf", [Process(1, arrival_time=0, burst_time=-1)]),
        ("fcfs", [Process(1, arrival_time=-2, burst_time=1)]),
        ("rr", [Process(1, arrival_time=0, burst_time=2), Process(1, arrival_time=1, burst_time=2)]),
        ("priority", [Process(0, arrival_time=0, burst_time=1)]),
    ],
)
def test_run_algorithm_rejects_bad_records(name, procs):
    with pytest.raises(InvalidRecordError):
        run_algorithm(name, procs, quantum=1)


@pytest.mark.parametrize("run", ALL)
def test_policies_reject_empty_set(run):
    with pytest.raises(EmptyInputError):
        run([])
