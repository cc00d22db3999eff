"""Data models for tegratop."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

UNKNOWN = "Unknown"


class FanMode(str, Enum):
    """Advisory fan operating mode inferred from duty cycles."""

    AUTOMATIC = "Automatic"
    MANUAL = "Manual"
    OFF = "Off"
    UNKNOWN = "Unknown"


@dataclass(slots=True, frozen=True)
class CpuCoreReading:
    """Per-core CPU reading. Usage is derived from counter deltas."""

    index: int
    usage: float  # 0.0 - 100.0
    frequency: int  # Hz
    governor: str


@dataclass(slots=True, frozen=True)
class CpuReading:
    """CPU domain reading."""

    usage: float = 0.0
    cores: tuple[CpuCoreReading, ...] = ()


@dataclass(slots=True, frozen=True)
class AcceleratorProcess:
    """A process holding accelerator memory."""

    pid: int
    name: str
    username: str
    memory: int  # Bytes


@dataclass(slots=True, frozen=True)
class AcceleratorReading:
    """Integrated GPU reading."""

    source: str = ""
    name: str = ""
    usage: float = 0.0
    frequency: int = 0  # Hz
    max_frequency: int = 0  # Hz
    temperature: float = 0.0  # Celsius
    governor: str = ""
    memory_used: int = 0  # Bytes
    memory_total: int = 0  # Bytes
    processes: tuple[AcceleratorProcess, ...] = ()


@dataclass(slots=True, frozen=True)
class MemoryReading:
    """RAM, swap and on-chip IRAM usage, all in bytes."""

    ram_total: int = 0
    ram_used: int = 0
    ram_cached: int = 0
    swap_total: int = 0
    swap_used: int = 0
    swap_cached: int = 0
    iram_total: int = 0
    iram_used: int = 0
    iram_lfb: int = 0


@dataclass(slots=True, frozen=True)
class ThermalZone:
    """A single thermal zone, temperatures in Celsius."""

    index: int
    name: str
    current: float
    trip: float
    critical: float


@dataclass(slots=True, frozen=True)
class ThermalReading:
    """Thermal zones plus the zones promoted to named fields."""

    cpu: float = 0.0
    gpu: float = 0.0
    pmic: float = 0.0
    board: float = 0.0
    zones: tuple[ThermalZone, ...] = ()


@dataclass(slots=True, frozen=True)
class PowerRail:
    """A monitored power rail."""

    name: str
    current: float  # mA
    voltage: float  # mV
    power: float  # mW


@dataclass(slots=True, frozen=True)
class PowerReading:
    """Power rails and their total in watts."""

    total: float = 0.0
    rails: tuple[PowerRail, ...] = ()


@dataclass(slots=True, frozen=True)
class CoolingDevice:
    """A fan or other cooling device."""

    index: int
    name: str
    duty: float  # 0.0 - 100.0
    rpm: int


@dataclass(slots=True, frozen=True)
class CoolingReading:
    """Cooling devices with averaged duty and RPM, and the temperature they are cooling."""

    duty: float = 0.0
    rpm: int = 0
    mode: FanMode = FanMode.UNKNOWN
    temperature: float = 0.0  # Celsius
    devices: tuple[CoolingDevice, ...] = ()


@dataclass(slots=True, frozen=True)
class BoardIdentity:
    """Board model and software versions."""

    model: str = UNKNOWN
    jetpack: str = UNKNOWN
    l4t: str = UNKNOWN
    serial: str = UNKNOWN
    soc: str = UNKNOWN
    hostname: str = UNKNOWN
    kernel: str = UNKNOWN


@dataclass(slots=True, frozen=True)
class EngineReading:
    """Status of a fixed-function hardware engine."""

    name: str
    enabled: bool
    frequency: int  # Hz


@dataclass(slots=True, frozen=True)
class PerformanceProfile:
    """An nvpmodel power mode."""

    profile_id: int
    name: str


@dataclass(slots=True, frozen=True)
class ProfileReading:
    """Current performance profile and boost state."""

    profile_id: int = -1
    profile_name: str = UNKNOWN
    boost_enabled: bool = False
    profiles: tuple[PerformanceProfile, ...] = ()


def _plain(items: list[tuple[str, Any]]) -> dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in items}


@dataclass(slots=True, frozen=True)
class Sample:
    """Immutable snapshot of every domain taken during one tick."""

    tick: int
    timestamp: float
    cpu: CpuReading = field(default_factory=CpuReading)
    accelerator: AcceleratorReading = field(default_factory=AcceleratorReading)
    memory: MemoryReading = field(default_factory=MemoryReading)
    thermal: ThermalReading = field(default_factory=ThermalReading)
    power: PowerReading = field(default_factory=PowerReading)
    cooling: CoolingReading = field(default_factory=CoolingReading)
    board: BoardIdentity = field(default_factory=BoardIdentity)
    engines: tuple[EngineReading, ...] = ()
    profile: ProfileReading = field(default_factory=ProfileReading)
    uptime_seconds: float = 0.0
    process_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dicts and lists, ready for json.dumps."""
        return asdict(self, dict_factory=_plain)
