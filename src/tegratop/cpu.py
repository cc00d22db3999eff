"""CPU collector: /proc/stat counters and per-core cpufreq state."""

import logging
from pathlib import Path

from tegratop.delta import CoreCounters, CounterSnapshot
from tegratop.models import CpuCoreReading, CpuReading
from tegratop.sysfs import read_int, read_str, read_text

logger = logging.getLogger(__name__)

_COUNTER_FIELDS = ("user", "nice", "system", "idle", "iowait", "irq", "softirq")


def parse_proc_stat(text: str, ordinal: int) -> CounterSnapshot:
    """
    Parse the per-core 'cpuN' lines of /proc/stat.

    The aggregate 'cpu' line and malformed lines are skipped. Missing
    trailing fields (very old kernels) count as zero.
    """
    cores: list[CoreCounters] = []
    for line in text.splitlines():
        parts = line.split()
        if not parts or not parts[0].startswith("cpu") or parts[0] == "cpu":
            continue
        suffix = parts[0][3:]
        if not suffix.isdigit():
            continue
        try:
            values = [int(value) for value in parts[1 : 1 + len(_COUNTER_FIELDS)]]
        except ValueError:
            logger.debug("Skipping malformed /proc/stat line: %r", line)
            continue
        values += [0] * (len(_COUNTER_FIELDS) - len(values))
        cores.append(CoreCounters(int(suffix), *values))

    cores.sort(key=lambda counters: counters.core)
    return CounterSnapshot(ordinal=ordinal, cores=tuple(cores))


class CpuCollector:
    """Reads CPU counters and per-core frequency/governor."""

    def __init__(self, root: Path = Path("/")) -> None:
        """
        Initialize the CpuCollector.

        Args:
            root: Filesystem root holding proc/ and sys/.
        """
        self._stat_path = root / "proc" / "stat"
        self._cpu_base = root / "sys" / "devices" / "system" / "cpu"

    def read_counters(self, ordinal: int) -> CounterSnapshot:
        """Read the cumulative counters of every core."""
        try:
            text = read_text(self._stat_path)
        except OSError:
            return CounterSnapshot(ordinal=ordinal, cores=())
        return parse_proc_stat(text, ordinal)

    def collect(self, counters: CounterSnapshot, usages: list[float]) -> CpuReading:
        """
        Build the CPU reading for the cores in counters.

        Args:
            counters: Snapshot returned by read_counters for this tick.
            usages: Per-core usage computed from counters, in the same order.
        """
        cores: list[CpuCoreReading] = []
        for counter, usage in zip(counters.cores, usages):
            cpufreq = self._cpu_base / f"cpu{counter.core}" / "cpufreq"
            cores.append(
                CpuCoreReading(
                    index=counter.core,
                    usage=usage,
                    # scaling_cur_freq is in kHz
                    frequency=read_int(cpufreq / "scaling_cur_freq") * 1000,
                    governor=read_str(cpufreq / "scaling_governor"),
                )
            )

        usage = sum(core.usage for core in cores) / len(cores) if cores else 0.0
        return CpuReading(usage=usage, cores=tuple(cores))
