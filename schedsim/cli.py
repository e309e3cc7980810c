from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import DEFAULT_ALGORITHMS, resolve_algorithm, run_algorithm, run_many
from .errors import SchedulerError
from .gantt import build_rich_gantt, render_gantt
from .models import IDLE, Process, ScheduleResult
from .workload_io import load_workload, read_interactive

log = logging.getLogger(__name__)

DEFAULT_QUANTUM = 2

# Menu numbering follows the classic simulator: 1 FCFS, 2 SRTF, 3 Priority, 4 RR.
MENU_CHOICES = {"1": "fcfs", "2": "srtf", "3": "priority", "4": "rr"}
MENU_LABELS = {
    "fcfs": "FCFS",
    "srtf": "SRTF (preemptive SJF)",
    "priority": "Preemptive Priority",
    "rr": "Round Robin",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="Discrete-time CPU scheduling simulator (FCFS, SRTF, Preemptive Priority, RR).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Shortcut for --log-level DEBUG.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm to use (fcfs, srtf, priority, rr).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round-robin (ignored by the other algorithms).",
    )
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Print the plain-text tick-by-tick Gantt chart instead of the colored one.",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(DEFAULT_ALGORITHMS),
        help="Algorithms to compare (default: fcfs srtf priority rr).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_QUANTUM,
        help=f"Time quantum used for RR when included (default: {DEFAULT_QUANTUM}).",
    )

    menu_parser = subparsers.add_parser(
        "menu",
        help="Interactive menu: enter processes or load a file, then pick algorithms.",
    )
    menu_parser.add_argument(
        "--workload",
        "-w",
        default=None,
        help="Workload file to use instead of asking for the input mode.",
    )
    menu_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Round Robin quantum; asked for interactively when omitted.",
    )

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _print_result(result: ScheduleResult, console: Console, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    if plain:
        console.print(render_gantt(result.timeline), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks, highlight=False)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Priority",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            f"P{p.pid}",
            str(p.arrival_time),
            str(p.burst_time),
            str(p.priority),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()

    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{sys.avg_waiting:.3f}")
        sys_table.add_row("Avg turnaround", f"{sys.avg_turnaround:.3f}")
        sys_table.add_row("Avg response", f"{sys.avg_response:.3f}")
        sys_table.add_row("Context switches", str(sys.context_switches))
        sys_table.add_row("Throughput (proc/unit time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization:.3f} %")

        console.print(sys_table)


def _print_compare(
    title: str,
    names: Sequence[str],
    processes: Sequence[Process],
    quantum: Optional[int],
    console: Console,
) -> None:
    """
    Run each algorithm on its own copy of the workload and tabulate the averages.

    Failed runs are listed under the table.
    """
    failures: List[str] = []
    summary_table = Table(title=title, box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm", no_wrap=True)
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("Switches", justify="right")
    summary_table.add_column("Throughput", justify="right")
    summary_table.add_column("CPU %", justify="right")

    for name, outcome in run_many(names, processes, quantum=quantum):
        if isinstance(outcome, SchedulerError):
            summary_table.add_row(name, "", "[red]failed[/red]", "", "", "", "", "")
            failures.append(f"{name}: {outcome}")
            continue
        sys = outcome.system
        summary_table.add_row(
            outcome.algorithm,
            "" if outcome.quantum is None else str(outcome.quantum),
            f"{sys.avg_waiting:.2f}",
            f"{sys.avg_turnaround:.2f}",
            f"{sys.avg_response:.2f}",
            str(sys.context_switches),
            f"{sys.throughput:.3f}",
            f"{sys.cpu_utilization:.1f}",
        )

    console.print(summary_table)
    for failure in failures:
        console.print(f"[red]{escape(failure)}[/red]")


def _animate_result(result: ScheduleResult, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual simulation using the computed timeline.
    """
    if not result.timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    console.print(f"[bold]Simulating {result.algorithm}[/bold] (duration {len(result.timeline)} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    run_length = 0
    previous = None
    for t, owner in enumerate(result.timeline):
        run_length = run_length + 1 if owner == previous else 1
        previous = owner
        if owner == IDLE:
            console.print(f"t={t:2d}: [dim]idle[/dim]")
        else:
            console.print(f"t={t:2d}: P{owner} [green]{'█' * run_length}[/green]")
        time.sleep(delay)


def _ask_quantum(
    input_fn: Callable[[str], str],
    console: Console,
) -> int:
    while True:
        raw = input_fn("Enter time quantum for Round Robin (positive integer): ").strip()
        try:
            quantum = int(raw)
        except ValueError:
            quantum = 0
        if quantum > 0:
            return quantum
        console.print("[red]Invalid quantum. Enter positive integer.[/red]")


def _parse_menu_choice(line: str) -> List[str]:
    """
    Map a menu answer such as "1 3" to algorithm keys; empty or 0 means all.
    """
    tokens = line.replace(",", " ").split()
    if not tokens or tokens == ["0"]:
        return list(DEFAULT_ALGORITHMS)

    return [MENU_CHOICES.get(tok, tok.lower()) for tok in tokens]


def _interactive_menu(
    workload: Optional[str],
    quantum: Optional[int],
    console: Console,
    input_fn: Callable[[str], str] = input,
) -> None:
    console.print("[bold cyan]CPU Scheduling Simulator[/bold cyan]")

    if workload is None:
        console.print("Options:\n  [yellow]1[/yellow]. Input from console\n  [yellow]2[/yellow]. Input from CSV/JSON file")
        mode = input_fn("Choose input mode (1/2): ").strip()
        if mode == "2":
            workload = input_fn("Enter workload file path: ").strip()

    if workload is not None:
        processes = load_workload(workload)
    else:
        processes = read_interactive(
            input_fn=input_fn,
            output_fn=lambda message: console.print(message, markup=False, highlight=False),
        )

    console.print("\n[bold]Select algorithms to run (e.g. 1 2 3 4) or 0 for all:[/bold]")
    for number, key in MENU_CHOICES.items():
        console.print(f"  [yellow]{number}[/yellow]. {MENU_LABELS[key]}")
    choice = input_fn("Choice: ")

    for name in _parse_menu_choice(choice):
        try:
            q = None
            if resolve_algorithm(name) == "rr":
                q = quantum if quantum is not None else _ask_quantum(input_fn, console)
            result = run_algorithm(name, processes, quantum=q)
        except SchedulerError as exc:
            console.print(f"[red]{name}: {escape(str(exc))}[/red]")
            continue
        _print_result(result, console, plain=True)
        console.print("-" * 45)

    console.print("Simulation complete.")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else args.log_level)

    console = Console()
    err_console = Console(stderr=True)

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = run_algorithm(args.algorithm, processes, quantum=args.quantum)
            if args.step:
                try:
                    _animate_result(result, delay=args.step_delay, console=console)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            _print_result(result, console, plain=args.plain)
            return 0

        if args.command == "compare":
            processes = load_workload(Path(args.workload))
            _print_compare("Algorithm comparison", args.algorithms, processes, args.quantum, console)
            return 0

        if args.command == "menu":
            _interactive_menu(args.workload, args.quantum, console)
            return 0
    except SchedulerError as exc:
        log.debug("command %s failed", args.command, exc_info=True)
        err_console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 2
    except OSError as exc:
        err_console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
