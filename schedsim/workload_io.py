from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Sequence

from .errors import EmptyInputError, FormatError, InvalidRecordError
from .models import Process

log = logging.getLogger(__name__)


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a validated list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise FormatError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    validate_processes(processes)
    log.info("Loaded %d processes from %s", len(processes), path)
    return processes


def validate_processes(processes: Sequence[Process]) -> None:
    """
    Reject a process set the schedulers cannot run.
    """
    if not processes:
        raise EmptyInputError("Workload contains no processes")

    seen = set()
    for p in processes:
        if p.pid <= 0:
            raise InvalidRecordError(f"P{p.pid}: pid must be a positive integer")
        if p.pid in seen:
            raise InvalidRecordError(f"Duplicate pid {p.pid}")
        if p.arrival_time < 0:
            raise InvalidRecordError(f"P{p.pid}: arrival time must be >= 0, got {p.arrival_time}")
        if p.burst_time <= 0:
            raise InvalidRecordError(f"P{p.pid}: burst time must be > 0, got {p.burst_time}")
        seen.add(p.pid)


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise FormatError(f"{path}: invalid JSON ({exc})") from exc

    if not isinstance(raw, list):
        raise FormatError("JSON workload must be a list of process objects")

    processes: List[Process] = []
    for entry in raw:
        processes.append(_process_from_mapping(entry))

    return processes


def _is_blank(row: Sequence[str]) -> bool:
    return not any(cell.strip() for cell in row)


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))

    first = next((i for i, row in enumerate(rows) if not _is_blank(row)), None)
    if first is None:
        return []

    # A first row containing letters is a header.
    if any(ch.isalpha() for cell in rows[first] for ch in cell):
        header = [cell.strip() for cell in rows[first]]
        if "arrival_time" in header:
            return _parse_named_rows(header, rows[first + 1:], first_line=first + 2)
        return parse_rows(rows[first + 1:], first_line=first + 2)

    return parse_rows(rows)


def _parse_named_rows(header: List[str], rows: Iterable[Sequence[str]], first_line: int) -> List[Process]:
    processes: List[Process] = []
    for lineno, row in enumerate(rows, start=first_line):
        if _is_blank(row):
            continue
        if len(row) > len(header):
            raise FormatError(
                f"line {lineno}: expected at most {len(header)} columns, got {len(row)}"
            )
        try:
            processes.append(_process_from_mapping(dict(zip(header, row))))
        except FormatError as exc:
            raise FormatError(f"line {lineno}: {exc}") from exc
    return processes


def parse_rows(rows: Iterable[Sequence[str]], first_line: int = 1) -> List[Process]:
    """
    Parse headerless records.

    Three columns are `arrival,burst,priority` with pids assigned from 1;
    four columns are `pid,arrival,burst,priority`.
    """
    processes: List[Process] = []
    for lineno, row in enumerate(rows, start=first_line):
        if _is_blank(row):
            continue
        try:
            vals = [int(cell) for cell in row]
        except ValueError as exc:
            raise FormatError(f"line {lineno}: non-integer value in {list(row)!r}") from exc

        if len(vals) == 3:
            pid = len(processes) + 1
            arrival, burst, priority = vals
        elif len(vals) == 4:
            pid, arrival, burst, priority = vals
        else:
            raise FormatError(
                f"line {lineno}: expected 3 or 4 columns, got {len(vals)}"
            )

        processes.append(Process(pid=pid, arrival_time=arrival, burst_time=burst, priority=priority))
    return processes


def _process_from_mapping(mapping: Mapping) -> Process:
    try:
        pid = int(mapping["pid"])
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
    except (KeyError, TypeError, ValueError) as exc:
        raise FormatError(f"Invalid process entry: {mapping!r}") from exc

    priority_val = mapping.get("priority")
    try:
        priority = int(priority_val) if priority_val not in (None, "") else 0
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Invalid priority in process entry: {mapping!r}") from exc

    return Process(
        pid=pid,
        arrival_time=arrival_time,
        burst_time=burst_time,
        priority=priority,
    )


def _ask_int(
    prompt: str,
    input_fn: Callable[[str], str],
    output_fn: Callable[[str], None],
    minimum: int | None = None,
) -> int:
    while True:
        raw = input_fn(prompt).strip()
        try:
            value = int(raw)
        except ValueError:
            output_fn(f"Invalid input '{raw}'. Enter an integer.")
            continue
        if minimum is not None and value < minimum:
            output_fn(f"Value must be >= {minimum}.")
            continue
        return value


def read_interactive(
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> List[Process]:
    """
    Prompt for a process set. Pids are assigned 1..n in entry order.
    """
    count = _ask_int("Enter number of processes: ", input_fn, output_fn, minimum=1)

    processes: List[Process] = []
    for pid in range(1, count + 1):
        output_fn(f"=== Process {pid} ===")
        arrival = _ask_int("Arrival time: ", input_fn, output_fn, minimum=0)
        burst = _ask_int("Burst time  : ", input_fn, output_fn, minimum=1)
        priority = _ask_int("Priority    : ", input_fn, output_fn)
        processes.append(Process(pid=pid, arrival_time=arrival, burst_time=burst, priority=priority))

    validate_processes(processes)
    return processes
