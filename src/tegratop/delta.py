"""Delta-rate engine turning cumulative CPU counters into utilization."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class CoreCounters:
    """Cumulative jiffy counters of one core, as read from /proc/stat."""

    core: int
    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0

    @property
    def busy(self) -> int:
        """Time spent doing work."""
        return self.user + self.nice + self.system + self.irq + self.softirq

    @property
    def total(self) -> int:
        """Busy plus idle time."""
        return self.busy + self.idle + self.iowait


@dataclass(slots=True, frozen=True)
class CounterSnapshot:
    """Counters of every core read at one instant.

    ordinal is the tick number; only its ordering matters.
    """

    ordinal: int
    cores: tuple[CoreCounters, ...]

    @property
    def topology(self) -> tuple[int, ...]:
        """Core indices present in this snapshot."""
        return tuple(counters.core for counters in self.cores)


class DeltaRateEngine:
    """
    Convert successive counter snapshots into per-core usage percentages.

    Holds exactly one previous snapshot, replaced on every observation.
    The first observation, and any observation whose core topology differs
    from the stored one, reports 0 for every core and becomes the new
    baseline.
    """

    def __init__(self) -> None:
        """Initialize the DeltaRateEngine with no baseline."""
        self._previous: CounterSnapshot | None = None

    @property
    def has_baseline(self) -> bool:
        """Check whether a previous snapshot is stored."""
        return self._previous is not None

    def reset(self) -> None:
        """Forget the stored snapshot."""
        self._previous = None

    def observe(self, current: CounterSnapshot) -> list[float]:
        """
        Compute per-core usage against the previous snapshot.

        Args:
            current: Counters read during this tick.

        Returns:
            One usage value in [0, 100] per core of current, in order.
        """
        previous = self._previous
        self._previous = current

        if previous is None or previous.topology != current.topology:
            return [0.0] * len(current.cores)
        if current.ordinal <= previous.ordinal:
            return [0.0] * len(current.cores)

        usages: list[float] = []
        for before, now in zip(previous.cores, current.cores):
            total_delta = now.total - before.total
            if total_delta <= 0:
                usages.append(0.0)
                continue
            usage = 100.0 * (now.busy - before.busy) / total_delta
            usages.append(min(100.0, max(0.0, usage)))
        return usages
