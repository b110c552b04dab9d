from __future__ import annotations

import threading
from typing import Dict, List, Optional

from .errors import LedgerContractError, OutOfRangeError
from .models import Process, Processor


class ProcessorRecord:
    """
    Append-only history of one processor: entry ``t`` is the process that
    occupied it during tick ``t``, or ``None`` when it was idle.
    """

    def __init__(self, processor_id: int) -> None:
        self.processor_id = processor_id
        self._entries: List[Optional[Process]] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, tick: int, occupant: Optional[Process]) -> None:
        with self._lock:
            expected = len(self._entries)
            if tick < expected:
                raise LedgerContractError(
                    f"Tick {tick} already recorded for processor {self.processor_id}"
                )
            if tick > expected:
                raise LedgerContractError(
                    f"Tick {tick} recorded out of order for processor {self.processor_id} "
                    f"(expected {expected})"
                )
            self._entries.append(occupant)

    def process_at(self, tick: int) -> Optional[Process]:
        with self._lock:
            if tick < 0 or tick >= len(self._entries):
                raise OutOfRangeError(
                    f"Tick {tick} not recorded for processor {self.processor_id} "
                    f"(recorded: {len(self._entries)})"
                )
            return self._entries[tick]

    def busy_ticks(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries if entry is not None)


class ExecutionLedger:
    """Per-processor execution history for one simulation run."""

    def __init__(self) -> None:
        self._records: Dict[int, ProcessorRecord] = {}

    def register(self, processor: Processor) -> ProcessorRecord:
        record = self._records.get(processor.processor_id)
        if record is None:
            record = ProcessorRecord(processor.processor_id)
            self._records[processor.processor_id] = record
        return record

    def processor_record(self, processor: Processor) -> ProcessorRecord:
        try:
            return self._records[processor.processor_id]
        except KeyError:
            raise OutOfRangeError(f"No record for processor {processor.processor_id}") from None

    def record(self, processor: Processor, tick: int, occupant: Optional[Process]) -> None:
        self.register(processor).append(tick, occupant)

    def process_at(self, processor: Processor, tick: int) -> Optional[Process]:
        return self.processor_record(processor).process_at(tick)
