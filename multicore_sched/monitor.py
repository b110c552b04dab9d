from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .events import Event, SimulationEvent
from .scheduler import Scheduler
from .timeline import TimelineFrame, snapshot

logger = logging.getLogger(__name__)

FrameCallback = Callable[[TimelineFrame], None]


class TimelineMonitor:
    """
    Periodic, read-only view of a running simulation.

    Once attached, the monitor starts polling when the run starts and stops
    when it finishes, delivering a final frame so the last ticks are shown.
    Each poll calls ``on_frame`` from the monitor's own thread.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_frame: FrameCallback,
        window_size: int = 20,
        poll_interval: float = 0.1,
    ) -> None:
        if window_size <= 0:
            raise ValueError(f"Window size must be positive, got {window_size}")
        if poll_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {poll_interval}")

        self.scheduler = scheduler
        self.on_frame = on_frame
        self.window_size = window_size
        self.poll_interval = poll_interval
        self.frames_delivered = 0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._handles = []

    def attach(self) -> None:
        self._handles = [
            self.scheduler.subscribe(SimulationEvent.STARTED, self._on_started),
            self.scheduler.subscribe(SimulationEvent.FINISHED, self._on_finished),
        ]

    def detach(self) -> None:
        for handle in self._handles:
            self.scheduler.unsubscribe(handle)
        self._handles = []

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="timeline-monitor", daemon=True)
        self._thread.start()

    def stop(self, final_frame: bool = False) -> None:
        """Cancel polling between cycles; optionally deliver one last frame."""
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        if final_frame:
            self.poll()

    def poll(self) -> TimelineFrame:
        frame = snapshot(self.scheduler, self.window_size)
        self.on_frame(frame)
        self.frames_delivered += 1
        return frame

    def _loop(self) -> None:
        logger.debug("Timeline monitor started (interval %.3fs)", self.poll_interval)
        while not self._stop.is_set():
            try:
                self.poll()
            except Exception:
                logger.exception("Timeline monitor failed; no further frames")
                return
            self._stop.wait(self.poll_interval)
        logger.debug("Timeline monitor stopped after %d frames", self.frames_delivered)

    def _on_started(self, event: Event) -> None:
        self.start()

    def _on_finished(self, event: Event) -> None:
        self.stop(final_frame=True)
