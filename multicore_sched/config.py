from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .models import CoreType, Processor


@dataclass
class SimulationConfig:
    performance_cores: int = 2
    efficiency_cores: int = 2
    performance_rate: int = 2
    efficiency_rate: int = 1
    window_size: int = 20
    poll_interval: float = 0.1
    quantum: int = 2
    policy: str = "fcfs"

    def __post_init__(self) -> None:
        if self.performance_cores < 0 or self.efficiency_cores < 0:
            raise ValueError("Core counts must be non-negative")
        if self.performance_cores + self.efficiency_cores == 0:
            raise ValueError("At least one core is required")
        if self.performance_rate <= 0 or self.efficiency_rate <= 0:
            raise ValueError("Work rates must be positive")
        if self.window_size <= 0:
            raise ValueError("Window size must be positive")
        if self.poll_interval <= 0:
            raise ValueError("Poll interval must be positive")

    def work_rates(self) -> Dict[CoreType, int]:
        return {
            CoreType.PERFORMANCE: self.performance_rate,
            CoreType.EFFICIENCY: self.efficiency_rate,
        }

    def build_processors(self) -> List[Processor]:
        """
        Performance cores first, then efficiency cores; ids are the row
        indices of the timeline.
        """
        cores = [CoreType.PERFORMANCE] * self.performance_cores
        cores += [CoreType.EFFICIENCY] * self.efficiency_cores
        return [Processor(i, core) for i, core in enumerate(cores)]

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def config_from_mapping(mapping: Mapping[str, Any]) -> SimulationConfig:
    known = {f.name: f.type for f in fields(SimulationConfig)}
    unknown = set(mapping) - set(known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {}
    for key, value in mapping.items():
        # bool is an int subclass; JSON true/false are never valid numbers here
        if isinstance(value, bool):
            raise ValueError(f"Invalid value for {key}: {value!r}")
        if known[key] == "int":
            if not isinstance(value, int):
                raise ValueError(f"Invalid value for {key}: {value!r} (expected an integer)")
            values[key] = value
        elif known[key] == "float":
            if not isinstance(value, (int, float)):
                raise ValueError(f"Invalid value for {key}: {value!r} (expected a number)")
            values[key] = float(value)
        else:
            if not isinstance(value, str):
                raise ValueError(f"Invalid value for {key}: {value!r} (expected a string)")
            values[key] = value

    return SimulationConfig(**values)


def load_config(path: str | Path) -> SimulationConfig:
    """
    Load a SimulationConfig from a JSON object; missing keys keep defaults.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a JSON object")

    return config_from_mapping(raw)
