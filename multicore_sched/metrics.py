from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .scheduler import Scheduler


@dataclass
class ProcessMetrics:
    pid: int
    arrival_time: int
    workload: int
    mission: bool
    burst_time: int
    waiting_time: int
    turnaround_time: Optional[int] = None
    normalized_turnaround_time: Optional[float] = None
    completion_time: Optional[int] = None


@dataclass
class SystemMetrics:
    makespan: int
    busy_ticks: Dict[int, int] = field(default_factory=dict)
    utilization: Dict[int, float] = field(default_factory=dict)
    cpu_utilization: float = 0.0
    throughput: float = 0.0
    starvation_count: int = 0


def collect_process_metrics(scheduler: Scheduler) -> List[ProcessMetrics]:
    """
    Snapshot every process of a run. Turnaround fields stay None for
    processes that have not completed (or never executed).
    """
    metrics: List[ProcessMetrics] = []
    for p in scheduler.get_process_list():
        m = ProcessMetrics(
            pid=p.pid,
            arrival_time=p.arrival_time,
            burst_time=p.burst_time,
            workload=p.workload,
            mission=p.mission,
            waiting_time=p.waiting_time,
            completion_time=scheduler.completion_time(p),
        )
        if p.is_complete:
            m.turnaround_time = p.turnaround_time
            if p.burst_time > 0:
                m.normalized_turnaround_time = p.normalized_turnaround_time
        metrics.append(m)
    return metrics


def compute_system_metrics(scheduler: Scheduler) -> SystemMetrics:
    """
    Compute per-processor utilization, throughput and starvation from the
    ledger and the processes of a run.
    """
    makespan = scheduler.get_elapsed_time()
    processors = scheduler.get_processor_list()
    processes = scheduler.get_process_list()

    busy = {p.processor_id: scheduler.ledger.processor_record(p).busy_ticks() for p in processors}
    utilization = {pid: (ticks / makespan if makespan > 0 else 0.0) for pid, ticks in busy.items()}
    total_capacity = makespan * len(processors)
    cpu_utilization = sum(busy.values()) / total_capacity if total_capacity > 0 else 0.0

    completed = [p for p in processes if p.is_complete]
    throughput = len(completed) / makespan if makespan > 0 else 0.0

    # Starvation detection is policy-specific; count processes whose waiting
    # time is more than 2x the average waiting time.
    starvation_count = 0
    if processes:
        avg_wait = sum(p.waiting_time for p in processes) / len(processes)
        starvation_count = sum(1 for p in processes if p.waiting_time > 2 * avg_wait)

    return SystemMetrics(
        makespan=makespan,
        busy_ticks=busy,
        utilization=utilization,
        cpu_utilization=cpu_utilization,
        throughput=throughput,
        starvation_count=starvation_count,
    )


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison,
    over completed processes only.
    """
    done = [p for p in processes if p.turnaround_time is not None]
    if not done:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_normalized_turnaround": 0.0}

    n = len(done)
    normalized = [p.normalized_turnaround_time for p in done if p.normalized_turnaround_time is not None]
    return {
        "avg_waiting": sum(p.waiting_time for p in done) / n,
        "avg_turnaround": sum(p.turnaround_time for p in done) / n,
        "avg_normalized_turnaround": sum(normalized) / len(normalized) if normalized else 0.0,
    }
