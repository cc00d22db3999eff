"""Sample aggregation engine for tegratop."""

import logging
import threading
import time
from dataclasses import replace
from pathlib import Path

import psutil

from tegratop.accelerator import Accelerator, open_accelerator
from tegratop.board import BoardCollector
from tegratop.cooling import CoolingCollector, cooled_temperature
from tegratop.cpu import CpuCollector
from tegratop.delta import DeltaRateEngine
from tegratop.engines import EngineCollector
from tegratop.memory import MemoryCollector
from tegratop.models import BoardIdentity, Sample
from tegratop.power import PowerCollector
from tegratop.profile import ProfileCollector
from tegratop.sysfs import read_or_default
from tegratop.thermal import ThermalCollector

logger = logging.getLogger(__name__)


def _parse_uptime(raw: str) -> float:
    return float(raw.split()[0])


def count_processes() -> int:
    """Number of processes on the system, 0 if the process table cannot be read."""
    try:
        return len(psutil.pids())
    except (psutil.Error, OSError):
        logger.debug("Could not list processes", exc_info=True)
        return 0


class SampleAggregator:
    """
    Collects one Sample from every domain per tick.

    Collectors locate their files once, here. tick() is serialized by a
    lock so the aggregator can be shared by several callers; the CPU
    counter read and the delta computation happen back to back inside it.
    """

    def __init__(self, root: Path = Path("/"), accelerator: Accelerator | None = None) -> None:
        """
        Initialize the SampleAggregator.

        Args:
            root: Filesystem root holding proc/, sys/ and etc/.
            accelerator: Accelerator source to use. Chosen from the board's
                L4T version when omitted.
        """
        self._root = root
        self._lock = threading.Lock()
        self._engine = DeltaRateEngine()
        self._ticks = 0

        self._board: BoardIdentity = BoardCollector(root).collect()
        self._accelerator = accelerator or open_accelerator(root, self._board.l4t)
        logger.info(
            "Sampling %s (L4T %s), accelerator source: %s",
            self._board.model,
            self._board.l4t,
            self._accelerator.source.value,
        )

        self._cpu = CpuCollector(root)
        self._memory = MemoryCollector(root)
        self._thermal = ThermalCollector(root)
        self._power = PowerCollector(root)
        self._cooling = CoolingCollector(root)
        self._engines = EngineCollector(root)
        self._profile = ProfileCollector(root)
        self._uptime_path = root / "proc" / "uptime"

    @property
    def board(self) -> BoardIdentity:
        """Board identity, read once at startup."""
        return self._board

    @property
    def ticks(self) -> int:
        """Number of ticks taken so far."""
        return self._ticks

    def tick(self) -> Sample:
        """Take one Sample."""
        with self._lock:
            self._ticks += 1
            counters = self._cpu.read_counters(self._ticks)
            usages = self._engine.observe(counters)

            cpu = self._cpu.collect(counters, usages)
            thermal = self._thermal.collect()
            cooling = self._cooling.collect()
            return Sample(
                tick=self._ticks,
                timestamp=time.time(),
                cpu=cpu,
                accelerator=self._accelerator.collect(),
                memory=self._memory.collect(),
                thermal=thermal,
                power=self._power.collect(),
                cooling=replace(cooling, temperature=cooled_temperature(thermal)),
                board=self._board,
                engines=self._engines.collect(),
                profile=self._profile.collect(),
                uptime_seconds=read_or_default(self._uptime_path, _parse_uptime, 0.0),
                process_count=count_processes(),
            )

    def snapshot(self, settle: float = 0.5) -> Sample:
        """
        Take a Sample suitable for one-shot output.

        CPU usage needs two counter readings, so a baseline tick is taken
        first and the Sample is taken settle seconds later.
        """
        if self._ticks == 0:
            self.tick()
            time.sleep(max(0.0, settle))
        return self.tick()

    def close(self) -> None:
        """Release the accelerator source."""
        self._accelerator.close()
