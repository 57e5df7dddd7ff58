from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import config
from .algorithms import QUANTUM_POLICIES, PolicyId
from .errors import UnknownPolicyError, WorkloadError
from .gantt import build_rich_gantt
from .models import SimulationResult
from .simulator import ALIASES, resolve_policy, simulate
from .workload_io import load_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="Discrete-event CPU scheduling simulator.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every scheduling decision.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling policy on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Policy id or alias (see 'schedsim list').",
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
        default=config.DEFAULT_QUANTUM,
        help=f"Time quantum for RR / MLFQ (default: {config.DEFAULT_QUANTUM}).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run several policies on the same workload and compare average metrics.",
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
        default=[p.value for p in PolicyId],
        help="Policies to compare (default: all).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=config.DEFAULT_QUANTUM,
        help=f"Time quantum used for RR / MLFQ when included (default: {config.DEFAULT_QUANTUM}).",
    )

    subparsers.add_parser("list", help="List the available scheduling policies.")

    return parser


def resolve_log_level(name: str) -> int:
    """Numeric level for a level name; unknown names fall back to WARNING."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else resolve_log_level(config.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[RichHandler(show_path=False)],
    )


def _print_result(result: SimulationResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(result.gantt_segments)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Priority",
        "Complete",
        "Turnaround",
        "Wait",
        "Response",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h == "PID" else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.completed_processes:
        proc_table.add_row(
            p.pid,
            str(p.arrival_time),
            str(p.burst_time),
            str(p.priority),
            str(p.completion_time),
            str(p.turnaround_time),
            str(p.waiting_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()

    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{sys.average_waiting_time:.2f}")
        sys_table.add_row("Avg turnaround", f"{sys.average_turnaround_time:.2f}")
        sys_table.add_row("Avg response", f"{sys.average_response_time:.2f}")
        sys_table.add_row("Makespan", str(sys.makespan))
        sys_table.add_row("Idle time", str(sys.idle_time))
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")

        console.print(sys_table)


def _print_policies(console: Console) -> None:
    by_policy = {policy: alias for alias, policy in ALIASES.items()}
    table = Table(title="Scheduling policies", box=box.SIMPLE_HEAVY)
    table.add_column("Policy id")
    table.add_column("Alias")
    table.add_column("Quantum", justify="center")
    for policy in PolicyId:
        table.add_row(policy.value, by_policy[policy], "yes" if policy in QUANTUM_POLICIES else "")
    console.print(table)


def _run_compare(processes, algorithms: List[str], quantum: int, console: Console) -> int:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")

    status = 0
    for alg in algorithms:
        outcome = simulate(processes, alg, quantum=quantum)
        if not outcome.ok:
            console.print(f"[red]{escape(alg)}: {escape(str(outcome.error))}[/red]")
            status = 1
            continue
        result = outcome.result
        sys = result.system
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{sys.average_waiting_time:.2f}",
            f"{sys.average_turnaround_time:.2f}",
            f"{sys.average_response_time:.2f}",
        )

    console.print(summary_table)
    return status


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    console = Console()

    if args.command == "list":
        _print_policies(console)
        return 0

    try:
        processes = load_workload(Path(args.workload))
    except (OSError, WorkloadError) as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1
    logger.debug("loaded %d processes from %s", len(processes), args.workload)

    if args.command == "run":
        try:
            policy = resolve_policy(args.algorithm)
        except UnknownPolicyError as exc:
            console.print(f"[red]Error: {escape(str(exc))}[/red]")
            return 1
        outcome = simulate(processes, policy, quantum=args.quantum)
        if not outcome.ok:
            console.print(f"[red]Simulation error: {escape(str(outcome.error))}[/red]")
            return 1
        _print_result(outcome.result, console)
        return 0

    if args.command == "compare":
        return _run_compare(processes, args.algorithms, args.quantum, console)

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
