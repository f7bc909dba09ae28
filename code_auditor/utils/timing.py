"""
Stage timing for a detection run.

Each run records per-stage durations (parse, extract, group, report) which
are attached to the result metrics; the total doubles as executionTime.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator


@dataclass
class StageTiming:
    """Accumulated durations for one named stage.

    Attributes:
        name: Stage name
        total_ms: Cumulative time in milliseconds
        count: Number of recorded durations
        max_ms: Longest single recorded duration
    """

    name: str
    total_ms: float = 0.0
    count: int = 0
    max_ms: float = 0.0

    def record(self, duration_ms: float) -> None:
        self.total_ms += duration_ms
        self.count += 1
        self.max_ms = max(self.max_ms, duration_ms)

    @property
    def avg_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_ms / self.count

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'total_ms': round(self.total_ms, 2),
            'count': self.count,
            'avg_ms': round(self.avg_ms, 2),
            'max_ms': round(self.max_ms, 2),
        }


@dataclass
class RunTimer:
    """Wall clock for a whole run plus its named stages.

    Usage:
        timer = RunTimer()
        with timer.stage('parse'):
            ...
        timer.elapsed_ms  # since construction
    """

    started_at: float = field(default_factory=time.perf_counter)
    stages: Dict[str, StageTiming] = field(default_factory=dict)

    @contextmanager
    def stage(self, name: str) -> Iterator[StageTiming]:
        timing = self.stages.setdefault(name, StageTiming(name))
        start = time.perf_counter()
        try:
            yield timing
        finally:
            timing.record((time.perf_counter() - start) * 1000)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000

    def to_dict(self) -> dict:
        return {name: timing.to_dict() for name, timing in sorted(self.stages.items())}
