"""Memory collector reading /proc/meminfo."""

from pathlib import Path

from tegratop.models import MemoryReading
from tegratop.sysfs import parse_key_values, read_or_default


def _parse_kb(value: str) -> int:
    """Parse a '123 kB' meminfo value into bytes."""
    number = value.split()[0]
    return int(number) * 1024


def parse_meminfo(text: str) -> MemoryReading:
    """Parse /proc/meminfo contents into a MemoryReading."""
    values: dict[str, int] = {}
    for key, raw in parse_key_values(text).items():
        try:
            values[key] = _parse_kb(raw)
        except (ValueError, IndexError):
            continue

    ram_total = values.get("MemTotal", 0)
    ram_cached = values.get("Cached", 0)
    ram_free = values.get("MemFree", 0) + values.get("Buffers", 0) + ram_cached

    swap_total = values.get("SwapTotal", 0)
    iram_total = values.get("IramTotal", 0)
    iram_lfb = values.get("IramLfb", 0)

    return MemoryReading(
        ram_total=ram_total,
        ram_used=max(0, ram_total - ram_free),
        ram_cached=ram_cached,
        swap_total=swap_total,
        swap_used=max(0, swap_total - values.get("SwapFree", 0)),
        swap_cached=values.get("SwapCached", 0),
        iram_total=iram_total,
        iram_used=max(0, iram_total - values.get("IramFree", 0) - iram_lfb),
        iram_lfb=iram_lfb,
    )


class MemoryCollector:
    """Reads RAM, swap and IRAM usage."""

    def __init__(self, root: Path = Path("/")) -> None:
        """Initialize the MemoryCollector."""
        self._meminfo = root / "proc" / "meminfo"

    def collect(self) -> MemoryReading:
        """Collect the current memory reading."""
        return read_or_default(self._meminfo, parse_meminfo, MemoryReading())
