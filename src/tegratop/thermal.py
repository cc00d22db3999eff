"""Thermal collector reading /sys/class/thermal zones."""

from pathlib import Path

from tegratop.models import ThermalReading, ThermalZone
from tegratop.sysfs import list_indexed, parse_millidegrees, read_or_default, read_str

# Ordered vocabulary: a zone is promoted to the first field whose fragments
# appear in its lower-cased type.
ZONE_VOCABULARY: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("cpu", ("cpu",)),
    ("gpu", ("gpu",)),
    ("pmic", ("pmic",)),
    ("board", ("board", "tboard")),
)


def classify_zone(name: str) -> str | None:
    """Return the named field a zone belongs to, or None."""
    lowered = name.lower()
    for field_name, fragments in ZONE_VOCABULARY:
        if any(fragment in lowered for fragment in fragments):
            return field_name
    return None


def read_zones(root: Path) -> list[ThermalZone]:
    """Read every thermal_zoneN under root, sorted by index."""
    zones: list[ThermalZone] = []
    for index, zone_path in list_indexed(root / "sys" / "class" / "thermal", "thermal_zone"):
        zones.append(
            ThermalZone(
                index=index,
                name=read_str(zone_path / "type", "unknown"),
                current=read_or_default(zone_path / "temp", parse_millidegrees, 0.0),
                trip=read_or_default(zone_path / "trip_point_0_temp", parse_millidegrees, 0.0),
                critical=read_or_default(zone_path / "crit_temp", parse_millidegrees, 0.0),
            )
        )
    return zones


class ThermalCollector:
    """Reads thermal zones and picks out CPU, GPU, PMIC and board temperatures."""

    def __init__(self, root: Path = Path("/")) -> None:
        """Initialize the ThermalCollector."""
        self._root = root

    def collect(self) -> ThermalReading:
        """Collect the current thermal reading."""
        zones = read_zones(self._root)

        named: dict[str, float] = {}
        for zone in zones:
            field_name = classify_zone(zone.name)
            if field_name is not None and field_name not in named:
                named[field_name] = zone.current

        return ThermalReading(
            cpu=named.get("cpu", 0.0),
            gpu=named.get("gpu", 0.0),
            pmic=named.get("pmic", 0.0),
            board=named.get("board", 0.0),
            zones=tuple(zones),
        )
