"""
Reference placement policies.

A policy is any callable ``(eligible, processors, tick) -> {process: processor}``.
It sees each processor still bound to the process it ran last tick, and
returns the bindings for the current tick. The scheduler does the accounting.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, List, Mapping, Optional, Sequence

from .models import CoreType, Process, Processor

Placement = Dict[Process, Processor]
Policy = Callable[[Sequence[Process], Sequence[Processor], int], Mapping[Process, Processor]]


def _place(ordered: Sequence[Process], processors: Sequence[Processor]) -> Placement:
    """
    Bind up to ``len(processors)`` processes, in the given order.

    A chosen process that ran last tick keeps its processor. Mission processes
    prefer performance cores, others prefer efficiency cores; either falls
    back to any free core.
    """
    chosen = list(ordered[: len(processors)])
    placement: Placement = {}
    free: List[Processor] = []

    for processor in processors:
        if processor.process is not None and processor.process in chosen:
            placement[processor.process] = processor
        else:
            free.append(processor)

    for process in chosen:
        if process in placement:
            continue
        preferred = CoreType.PERFORMANCE if process.mission else CoreType.EFFICIENCY
        target = next((p for p in free if p.core is preferred), None)
        if target is None:
            target = free[0]
        free.remove(target)
        placement[process] = target

    return placement


def _running(processors: Sequence[Processor]) -> List[Process]:
    return [p.process for p in processors if p.process is not None]


def schedule_fcfs(eligible: Sequence[Process], processors: Sequence[Processor], tick: int) -> Placement:
    """
    First-Come First-Serve (non-preemptive).

    Processes already running keep running until they complete; free
    processors go to the earliest arrivals (ties broken by pid).
    """
    running = [p for p in _running(processors) if p in eligible]
    waiting = sorted(
        (p for p in eligible if p not in running),
        key=lambda p: (p.arrival_time, p.pid),
    )
    return _place(running + waiting, processors)


def schedule_srtf(eligible: Sequence[Process], processors: Sequence[Processor], tick: int) -> Placement:
    """
    Shortest Remaining Time First (preemptive).

    Every tick, the processes with the least remaining workload run; ties
    favour the process that is already running, then earlier arrival and pid.
    """
    running = set(_running(processors))
    ordered = sorted(
        eligible,
        key=lambda p: (p.remaining_workload, p not in running, p.arrival_time, p.pid),
    )
    return _place(ordered, processors)


class RoundRobin:
    """
    Round Robin with a quantum measured in consecutive ticks of execution.

    A running process is rotated to the back of the ready queue once its
    ``continuous_burst_time`` reaches the quantum and another process is
    waiting for a core.
    """

    def __init__(self, quantum: Optional[int]) -> None:
        if quantum is None or quantum <= 0:
            raise ValueError("Round Robin requires a positive quantum (use --quantum)")
        self.quantum = quantum
        self._ready: Deque[Process] = deque()

    def __call__(self, eligible: Sequence[Process], processors: Sequence[Processor], tick: int) -> Placement:
        eligible_set = set(eligible)
        running = [p for p in _running(processors) if p in eligible_set]

        # Drop completed processes, then enqueue new arrivals in arrival order.
        self._ready = deque(p for p in self._ready if p in eligible_set)
        for process in sorted(eligible, key=lambda p: (p.arrival_time, p.pid)):
            if process not in running and process not in self._ready:
                self._ready.append(process)

        keep: List[Process] = []
        for process in running:
            if process.continuous_burst_time >= self.quantum and self._ready:
                self._ready.append(process)
            else:
                keep.append(process)

        free_slots = len(processors) - len(keep)
        incoming = [self._ready.popleft() for _ in range(min(free_slots, len(self._ready)))]
        return _place(keep + incoming, processors)


POLICIES = {
    "fcfs": "First-Come First-Serve",
    "rr": "Round Robin",
    "srtf": "Shortest Remaining Time First",
}


def get_policy(name: str, quantum: Optional[int] = None) -> Policy:
    """
    Build the named policy. Round Robin is stateful, so every call returns a
    fresh instance.
    """
    name = name.lower()
    if name == "fcfs":
        return schedule_fcfs
    if name == "srtf":
        return schedule_srtf
    if name == "rr":
        return RoundRobin(quantum)
    raise ValueError(f"Unknown or unimplemented policy '{name}'")
