from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .errors import InvalidStateError

CompletionListener = Callable[[], None]


class CoreType(Enum):
    PERFORMANCE = "performance"
    EFFICIENCY = "efficiency"

    @property
    def short_name(self) -> str:
        return "P-Core" if self is CoreType.PERFORMANCE else "E-Core"


@dataclass(frozen=True)
class ProcessSpec:
    """
    Static description of a process as read from a workload file, before the
    simulation run assigns it an id.
    """

    arrival_time: int
    workload: int
    mission: bool = False


class Process:
    """
    A unit of work tracked tick by tick by the scheduler.

    Metrics only ever grow, except ``continuous_burst_time`` which drops back
    to zero on ``halt()``. Equality is identity, so processes can be used as
    mapping keys by placement policies.
    """

    def __init__(self, pid: int, arrival_time: int, workload: int, mission: bool = False) -> None:
        if workload < 0:
            raise ValueError(f"Process workload must be non-negative, got {workload}")
        if arrival_time < 0:
            raise ValueError(f"Process arrival time must be non-negative, got {arrival_time}")

        self.pid = pid
        self.arrival_time = arrival_time
        self.workload = workload
        self.mission = mission

        self.progress = 0
        self.burst_time = 0
        self.waiting_time = 0
        self.continuous_burst_time = 0

        self._listeners: Dict[int, CompletionListener] = {}
        self._next_slot = 0

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.workload

    @property
    def remaining_workload(self) -> int:
        return max(self.workload - self.progress, 0)

    @property
    def turnaround_time(self) -> int:
        if not self.is_complete:
            raise InvalidStateError(f"Process {self.pid} not complete")
        return self.waiting_time + self.burst_time

    @property
    def normalized_turnaround_time(self) -> float:
        turnaround = self.turnaround_time
        if self.burst_time == 0:
            raise InvalidStateError(f"Process {self.pid} completed without executing")
        return turnaround / self.burst_time

    def add_completion_listener(self, listener: CompletionListener) -> int:
        slot = self._next_slot
        self._next_slot += 1
        self._listeners[slot] = listener
        return slot

    def remove_listener(self, slot: int) -> None:
        self._listeners.pop(slot, None)

    def standby(self) -> None:
        """Account one tick spent eligible but not scheduled."""
        if self.is_complete:
            raise InvalidStateError(f"Process {self.pid} is complete and cannot wait")
        self.waiting_time += 1

    def work(self, amount: int) -> None:
        """
        Account one tick of execution that completes ``amount`` units of work.

        Completion listeners run synchronously, in registration order, on the
        call that makes the process complete.
        """
        if self.is_complete:
            raise InvalidStateError(f"Process {self.pid} is already complete")
        if amount < 0:
            raise ValueError(f"Work amount must be non-negative, got {amount}")

        self.progress += amount
        self.burst_time += 1
        self.continuous_burst_time += 1

        if self.is_complete:
            # Snapshot: listeners may deregister themselves or others.
            for listener in list(self._listeners.values()):
                listener()
            self._listeners.clear()

    def halt(self) -> None:
        self.continuous_burst_time = 0

    def __repr__(self) -> str:
        return (
            f"Process(pid={self.pid}, arrival={self.arrival_time}, "
            f"progress={self.progress}/{self.workload})"
        )


class Processor:
    """A simulated core. Its binding describes the current tick only."""

    __slots__ = ("processor_id", "core", "process")

    def __init__(self, processor_id: int, core: CoreType) -> None:
        self.processor_id = processor_id
        self.core = core
        self.process: Optional[Process] = None

    @property
    def is_active(self) -> bool:
        return self.process is not None

    def __repr__(self) -> str:
        running = f"P{self.process.pid}" if self.process is not None else "idle"
        return f"CPU{self.processor_id}({self.core.short_name}, {running})"
