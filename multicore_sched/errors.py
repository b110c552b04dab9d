from __future__ import annotations


class SimulationError(Exception):
    """Base class for errors raised by the simulation engine."""


class InvalidStateError(SimulationError, RuntimeError):
    """
    An operation was attempted on a process or run in the wrong lifecycle
    state (e.g. turnaround of an unfinished process, stepping a finished run).
    """


class OutOfRangeError(SimulationError, IndexError):
    """A tick or window was queried before it was recorded."""


class LedgerContractError(SimulationError, ValueError):
    """A ledger write was duplicated or out of tick order."""


class PlacementError(SimulationError, ValueError):
    """A placement policy returned a mapping the scheduler cannot apply."""
