from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List

from rich import box
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.table import Table

from .config import SimulationConfig, load_config
from .errors import SimulationError
from .gantt import build_rich_timeline
from .metrics import collect_process_metrics, compute_system_metrics, summarize_process_metrics
from .models import ProcessSpec
from .monitor import TimelineMonitor
from .policies import POLICIES
from .scheduler import Scheduler
from .timeline import snapshot
from .workload_io import load_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multicore-sched",
        description="Heterogeneous multicore scheduling simulator (performance and efficiency cores).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log scheduling events (completions, preemptions) to the terminal.",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="JSON configuration file; command-line flags take precedence.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Simulate a workload with one placement policy.")
    _add_machine_arguments(run_parser)
    run_parser.add_argument(
        "--policy",
        "-p",
        default=None,
        help=f"Placement policy ({', '.join(POLICIES)}; default: fcfs).",
    )
    run_parser.add_argument(
        "--window",
        type=int,
        default=None,
        help="Number of ticks shown in the timeline (default: 20).",
    )
    run_parser.add_argument(
        "--live",
        action="store_true",
        help="Redraw the timeline while the simulation runs.",
    )
    run_parser.add_argument(
        "--tick-delay",
        type=float,
        default=0.2,
        help="Seconds between ticks when --live is used (default: 0.2).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run several policies on the same workload and compare average metrics.",
    )
    _add_machine_arguments(compare_parser)
    compare_parser.add_argument(
        "--policies",
        "-p",
        nargs="+",
        default=list(POLICIES),
        help=f"Policies to compare (default: {' '.join(POLICIES)}).",
    )

    return parser


def _add_machine_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    parser.add_argument("--p-cores", type=int, default=None, help="Number of performance cores (default: 2).")
    parser.add_argument("--e-cores", type=int, default=None, help="Number of efficiency cores (default: 2).")
    parser.add_argument(
        "--p-rate",
        type=int,
        default=None,
        help="Work completed per tick on a performance core (default: 2).",
    )
    parser.add_argument(
        "--e-rate",
        type=int,
        default=None,
        help="Work completed per tick on an efficiency core (default: 1).",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Round-robin quantum in ticks (ignored by fcfs and srtf; default: 2).",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=100_000,
        help="Abort the run if it has not finished after this many ticks.",
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _resolve_config(args: argparse.Namespace) -> SimulationConfig:
    base = load_config(args.config) if args.config else SimulationConfig()
    return base.with_overrides(
        performance_cores=args.p_cores,
        efficiency_cores=args.e_cores,
        performance_rate=args.p_rate,
        efficiency_rate=args.e_rate,
        quantum=args.quantum,
        policy=getattr(args, "policy", None),
        window_size=getattr(args, "window", None),
    )


def _build_scheduler(config: SimulationConfig, specs: List[ProcessSpec]) -> Scheduler:
    scheduler = Scheduler.from_config(config)
    scheduler.add_workload(specs)
    return scheduler


def _print_result(scheduler: Scheduler, config: SimulationConfig, console: Console) -> None:
    console.print(f"[bold]Policy:[/bold] {POLICIES.get(config.policy.lower(), config.policy)}")
    if config.policy.lower() == "rr":
        console.print(f"[bold]Quantum:[/bold] {config.quantum}")
    console.print(
        f"[bold]Cores:[/bold] {config.performance_cores} performance "
        f"(rate {config.performance_rate}), {config.efficiency_cores} efficiency "
        f"(rate {config.efficiency_rate})"
    )
    console.print()

    console.print(build_rich_timeline(snapshot(scheduler, config.window_size)))
    console.print()

    headers = [
        "PID",
        "Arrive",
        "Workload",
        "Mission",
        "Burst",
        "Wait",
        "Complete",
        "Turnaround",
        "Normalized",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Mission"} else "right"
        proc_table.add_column(h, justify=justify)

    processes = collect_process_metrics(scheduler)
    for p in processes:
        proc_table.add_row(
            str(p.pid),
            str(p.arrival_time),
            str(p.workload),
            "yes" if p.mission else "",
            str(p.burst_time),
            str(p.waiting_time),
            "" if p.completion_time is None else str(p.completion_time),
            "" if p.turnaround_time is None else str(p.turnaround_time),
            "" if p.normalized_turnaround_time is None else f"{p.normalized_turnaround_time:.2f}",
        )

    console.print(proc_table)
    console.print()

    summary = summarize_process_metrics(processes)
    system = compute_system_metrics(scheduler)

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Makespan (ticks)", str(system.makespan))
    sys_table.add_row("Avg waiting", f"{summary['avg_waiting']:.2f}")
    sys_table.add_row("Avg turnaround", f"{summary['avg_turnaround']:.2f}")
    sys_table.add_row("Avg normalized turnaround", f"{summary['avg_normalized_turnaround']:.2f}")
    sys_table.add_row("Throughput (proc/tick)", f"{system.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{system.cpu_utilization*100:.1f}%")
    for processor in scheduler.get_processor_list():
        sys_table.add_row(
            f"  CPU{processor.processor_id} {processor.core.short_name}",
            f"{system.utilization[processor.processor_id]*100:.1f}%",
        )
    sys_table.add_row("Starvation count", str(system.starvation_count))

    console.print(sys_table)


def _run_live(scheduler: Scheduler, config: SimulationConfig, args: argparse.Namespace, console: Console) -> None:
    """
    Drive the simulation tick by tick while a TimelineMonitor redraws the
    chart from its own thread.
    """
    with Live(build_rich_timeline(snapshot(scheduler, config.window_size)), console=console) as live:
        monitor = TimelineMonitor(
            scheduler,
            on_frame=lambda frame: live.update(build_rich_timeline(frame)),
            window_size=config.window_size,
            poll_interval=config.poll_interval,
        )
        monitor.attach()
        try:
            while not scheduler.finished:
                if scheduler.get_elapsed_time() >= args.max_ticks:
                    raise SimulationError(f"Simulation did not finish within {args.max_ticks} ticks")
                scheduler.step()
                time.sleep(args.tick_delay)
        finally:
            monitor.stop()
            monitor.detach()


def _run(args: argparse.Namespace, console: Console) -> int:
    config = _resolve_config(args)
    specs = load_workload(Path(args.workload))
    scheduler = _build_scheduler(config, specs)

    if args.live:
        try:
            _run_live(scheduler, config, args, console)
        except KeyboardInterrupt:
            # The interrupt may have landed mid-tick; the run cannot be resumed.
            console.print(
                f"[yellow]Live view interrupted; run aborted at tick "
                f"{scheduler.get_elapsed_time()}.[/yellow]"
            )
            return 1
    else:
        scheduler.run(max_ticks=args.max_ticks)

    _print_result(scheduler, config, console)
    return 0


def _compare(args: argparse.Namespace, console: Console) -> int:
    specs = load_workload(Path(args.workload))
    config = _resolve_config(args)

    summary_table = Table(title=f"Policy comparison: {args.workload}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Policy")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Makespan", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg normalized", justify="right")
    summary_table.add_column("CPU util.", justify="right")

    for name in args.policies:
        policy_config = config.with_overrides(policy=name)
        scheduler = _build_scheduler(policy_config, specs)
        scheduler.run(max_ticks=args.max_ticks)

        summary = summarize_process_metrics(collect_process_metrics(scheduler))
        system = compute_system_metrics(scheduler)
        summary_table.add_row(
            POLICIES.get(name.lower(), name),
            str(policy_config.quantum) if name.lower() == "rr" else "",
            str(system.makespan),
            f"{summary['avg_waiting']:.2f}",
            f"{summary['avg_turnaround']:.2f}",
            f"{summary['avg_normalized_turnaround']:.2f}",
            f"{system.cpu_utilization*100:.1f}%",
        )

    console.print(summary_table)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    console = Console()

    commands = {"run": _run, "compare": _compare}
    try:
        return commands[args.command](args, console)
    except (SimulationError, ValueError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error: {exc}[/red]")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
