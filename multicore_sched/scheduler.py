"""
Tick-driven simulation of one run on a heterogeneous multicore machine.

The Scheduler is the run context: it owns the processes, the processors, the
execution ledger and the lifecycle event bus. The placement policy decides who
runs where; the scheduler applies that decision and keeps the accounting.
"""

from __future__ import annotations

import itertools
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .config import SimulationConfig
from .errors import InvalidStateError, PlacementError, SimulationError
from .events import EventBus, EventListener, SimulationEvent
from .ledger import ExecutionLedger
from .models import CoreType, Process, ProcessSpec, Processor
from .policies import Policy, get_policy

logger = logging.getLogger(__name__)

DEFAULT_WORK_RATES = {CoreType.PERFORMANCE: 2, CoreType.EFFICIENCY: 1}


class Scheduler:
    def __init__(
        self,
        processors: Sequence[Processor],
        policy: Policy,
        work_rates: Optional[Mapping[CoreType, int]] = None,
    ) -> None:
        if not processors:
            raise ValueError("A simulation needs at least one processor")
        ids = [p.processor_id for p in processors]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate processor ids: {ids}")

        self.policy = policy
        self.work_rates = dict(DEFAULT_WORK_RATES)
        if work_rates:
            self.work_rates.update(work_rates)

        self.ledger = ExecutionLedger()
        self.events = EventBus()

        self._processors: List[Processor] = list(processors)
        self._processes: List[Process] = []
        self._pids = itertools.count()
        self._completion_ticks: Dict[int, int] = {}
        self._elapsed = 0
        self._started = False
        self._finished = False

        for processor in self._processors:
            self.ledger.register(processor)

    @classmethod
    def from_config(cls, config: SimulationConfig) -> "Scheduler":
        return cls(
            processors=config.build_processors(),
            policy=get_policy(config.policy, quantum=config.quantum),
            work_rates=config.work_rates(),
        )

    # Process management

    def create_process(self, arrival_time: int, workload: int, mission: bool = False) -> Process:
        if self._started:
            raise InvalidStateError("Processes must be created before the run starts")

        process = Process(next(self._pids), arrival_time, workload, mission=mission)
        process.add_completion_listener(lambda: self._on_complete(process))
        self._processes.append(process)
        return process

    def add_workload(self, specs: Sequence[ProcessSpec]) -> List[Process]:
        return [self.create_process(s.arrival_time, s.workload, mission=s.mission) for s in specs]

    def _on_complete(self, process: Process) -> None:
        self._completion_ticks[process.pid] = self._elapsed + 1
        logger.debug("Process %d completed at tick %d", process.pid, self._elapsed)

    # Read side, safe to call from a render thread

    def get_process_list(self) -> List[Process]:
        return list(self._processes)

    def get_processor_list(self) -> List[Processor]:
        return list(self._processors)

    def get_elapsed_time(self) -> int:
        return self._elapsed

    def process_at_time(self, processor: Processor, tick: int) -> Optional[Process]:
        return self.ledger.process_at(processor, tick)

    def completion_time(self, process: Process) -> Optional[int]:
        """Tick boundary at which the process finished, or None while running."""
        return self._completion_ticks.get(process.pid)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def finished(self) -> bool:
        return self._finished

    def subscribe(self, kind: SimulationEvent, listener: EventListener):
        return self.events.subscribe(kind, listener)

    def unsubscribe(self, handle) -> None:
        self.events.unsubscribe(handle)

    # Driver

    def step(self) -> None:
        """Process one tick."""
        if self._finished:
            raise InvalidStateError("Simulation already finished")

        if not self._started:
            self._start()
            if self._finish_if_done():
                return

        tick = self._elapsed
        eligible = [
            p for p in self._processes if p.arrival_time <= tick and not p.is_complete
        ]
        placement = self._validated(self.policy(eligible, self.get_processor_list(), tick), eligible)

        for process in eligible:
            if process not in placement:
                process.standby()

        previously_running = [p.process for p in self._processors if p.process is not None]
        for process in previously_running:
            if process not in placement and not process.is_complete:
                logger.debug("Process %d preempted at tick %d", process.pid, tick)
                process.halt()

        by_processor = {processor.processor_id: process for process, processor in placement.items()}
        for processor in self._processors:
            occupant = by_processor.get(processor.processor_id)
            processor.process = occupant
            self.ledger.record(processor, tick, occupant)

        for process, processor in placement.items():
            process.work(self.work_rates[processor.core])

        self._elapsed += 1
        self._finish_if_done()

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Step until every process completes; return the elapsed time."""
        while not self._finished:
            if max_ticks is not None and self._elapsed >= max_ticks:
                raise SimulationError(f"Simulation did not finish within {max_ticks} ticks")
            self.step()
        return self._elapsed

    def _start(self) -> None:
        self._started = True
        logger.info(
            "Simulation started: %d processes on %d processors",
            len(self._processes),
            len(self._processors),
        )
        self.events.publish(SimulationEvent.STARTED, self._elapsed)

    def _finish_if_done(self) -> bool:
        if not all(p.is_complete for p in self._processes):
            return False

        for processor in self._processors:
            processor.process = None
        self._finished = True
        logger.info("Simulation finished at tick %d", self._elapsed)
        self.events.publish(SimulationEvent.FINISHED, self._elapsed)
        return True

    def _validated(self, placement: Mapping[Process, Processor], eligible: List[Process]) -> Dict[Process, Processor]:
        eligible_ids = {id(p) for p in eligible}
        processor_ids = {id(p) for p in self._processors}
        used = set()

        for process, processor in placement.items():
            if id(process) not in eligible_ids:
                raise PlacementError(f"Process {process.pid} is not eligible at tick {self._elapsed}")
            if id(processor) not in processor_ids:
                raise PlacementError(f"Processor {processor.processor_id} is not part of this run")
            if processor.processor_id in used:
                raise PlacementError(
                    f"Processor {processor.processor_id} assigned twice at tick {self._elapsed}"
                )
            used.add(processor.processor_id)

        return dict(placement)
