from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .errors import OutOfRangeError
from .ledger import ProcessorRecord
from .models import Process, Processor

if TYPE_CHECKING:
    from .scheduler import Scheduler


@dataclass
class TimelineSegment:
    """
    One contiguous run of a process on a processor, as seen through a window.

    ``start`` is relative to the first tick of the window.
    """

    process: Process
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass
class TimelineFrame:
    lo: int
    hi: int
    elapsed: int
    rows: Dict[Processor, List[TimelineSegment]] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.hi - self.lo + 1 if self.hi >= self.lo else 0


def reconstruct_segments(record: ProcessorRecord, lo: int, hi: int) -> List[TimelineSegment]:
    """
    Coalesce the ticks ``lo..hi`` (inclusive) of a processor record into
    maximal runs of the same process.

    Idle ticks produce no segment. A run that started before ``lo`` is
    reported from 0 with only its visible length.
    """
    if lo < 0 or hi < lo:
        raise OutOfRangeError(f"Invalid window [{lo}, {hi}]")
    if hi >= len(record):
        raise OutOfRangeError(
            f"Window end {hi} not recorded for processor {record.processor_id}"
        )

    segments: List[TimelineSegment] = []
    current: Optional[Process] = None
    start = 0
    length = 0

    for index in range(hi - lo + 1):
        now = record.process_at(lo + index)
        if now is current:
            if now is not None:
                length += 1
            continue

        if current is not None:
            segments.append(TimelineSegment(process=current, start=start, length=length))

        current = now
        start = index
        length = 1 if now is not None else 0

    if current is not None:
        segments.append(TimelineSegment(process=current, start=start, length=length))

    return segments


def visible_window(elapsed: int, window_size: int) -> Optional[Tuple[int, int]]:
    """
    Return the inclusive tick range shown by a sliding window of
    ``window_size`` ticks, or None if nothing has been recorded yet.
    """
    if window_size <= 0:
        raise ValueError(f"Window size must be positive, got {window_size}")
    if elapsed <= 0:
        return None

    lo = max(elapsed - window_size, 0)
    hi = min(lo + window_size, elapsed) - 1
    return lo, hi


def snapshot(scheduler: "Scheduler", window_size: int) -> TimelineFrame:
    elapsed = scheduler.get_elapsed_time()
    processors = scheduler.get_processor_list()
    window = visible_window(elapsed, window_size)

    if window is None:
        return TimelineFrame(lo=0, hi=-1, elapsed=elapsed, rows={p: [] for p in processors})

    lo, hi = window
    rows = {
        processor: reconstruct_segments(scheduler.ledger.processor_record(processor), lo, hi)
        for processor in processors
    }
    return TimelineFrame(lo=lo, hi=hi, elapsed=elapsed, rows=rows)
