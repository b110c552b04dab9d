"""
Simulation lifecycle events.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple


class SimulationEvent(Enum):
    STARTED = "started"
    FINISHED = "finished"


@dataclass(frozen=True)
class Event:
    kind: SimulationEvent
    tick: int


EventListener = Callable[[Event], None]


class EventBus:
    """
    Publish/subscribe hub scoped to one simulation run.

    Listeners are called synchronously, in registration order, on the thread
    that publishes.
    """

    def __init__(self) -> None:
        self._listeners: Dict[SimulationEvent, Dict[int, EventListener]] = {
            kind: {} for kind in SimulationEvent
        }
        self._tokens = itertools.count()

    def subscribe(self, kind: SimulationEvent, listener: EventListener) -> Tuple[SimulationEvent, int]:
        token = next(self._tokens)
        self._listeners[kind][token] = listener
        return kind, token

    def unsubscribe(self, handle: Tuple[SimulationEvent, int]) -> None:
        kind, token = handle
        self._listeners[kind].pop(token, None)

    def publish(self, kind: SimulationEvent, tick: int) -> None:
        event = Event(kind=kind, tick=tick)
        for listener in list(self._listeners[kind].values()):
            listener(event)
