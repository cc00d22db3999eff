"""Fixed-function engine status (APE, DLA, NVENC, NVDEC, NVJPG)."""

from pathlib import Path

from tegratop.models import EngineReading
from tegratop.sysfs import read_int, resolve_first

# Engine -> candidate devfreq or debugfs clock directory names.
ENGINES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("APE", ("ape",)),
    ("DLA0", ("15880000.nvdla0", "dla0", "dla0_core")),
    ("DLA1", ("158c0000.nvdla1", "dla1", "dla1_core")),
    ("NVENC", ("nvenc", "nvenc0")),
    ("NVDEC", ("nvdec", "nvdec0")),
    ("NVJPG", ("nvjpg", "nvjpg0")),
)


def read_engine(name: str, path: Path | None) -> EngineReading:
    """Read one engine from a devfreq or debugfs clock directory."""
    if path is None:
        return EngineReading(name=name, enabled=False, frequency=0)
    if (path / "cur_freq").exists():
        frequency = read_int(path / "cur_freq")
        return EngineReading(name=name, enabled=frequency > 0, frequency=frequency)
    enabled = read_int(path / "clk_enable_count") > 0
    return EngineReading(name=name, enabled=enabled, frequency=read_int(path / "clk_rate"))


class EngineCollector:
    """Reads engine clocks; each engine's directory is resolved once."""

    def __init__(self, root: Path = Path("/")) -> None:
        """Initialize the EngineCollector."""
        devfreq = root / "sys" / "class" / "devfreq"
        clk = root / "sys" / "kernel" / "debug" / "clk"
        self._paths: list[tuple[str, Path | None]] = [
            (name, resolve_first([devfreq / c for c in candidates] + [clk / c for c in candidates]))
            for name, candidates in ENGINES
        ]

    def collect(self) -> tuple[EngineReading, ...]:
        """Collect every engine; absent engines are reported disabled."""
        return tuple(read_engine(name, path) for name, path in self._paths)
