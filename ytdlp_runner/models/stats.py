"""
Dataclasses for tracking batch execution outcomes and statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class BatchStats:
    """Tracks statistics for a batch session, including peak concurrency."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    in_flight: int = 0
    peak_in_flight: int = 0
    _start_time: float = field(default_factory=time.monotonic, repr=False)

    def item_started(self) -> None:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)

    def item_finished(self, success: bool) -> None:
        self.in_flight -= 1
        if success:
            self.succeeded += 1
        else:
            self.failed += 1

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._start_time


@dataclass
class BatchResult:
    """Outcome of a batch: which URLs succeeded and why the others failed."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    stats: BatchStats = field(default_factory=BatchStats)

    @property
    def ok(self) -> bool:
        return not self.failed
