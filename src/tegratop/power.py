"""Power collector for INA3221 rail monitors."""

import re
from pathlib import Path

from tegratop.models import PowerRail, PowerReading
from tegratop.sysfs import read_int, read_or_default, read_str, resolve_first

_LABEL_RE = re.compile(r"^in(\d+)_label$")
_SKIPPED_LABELS = ("nc", "sum of shunt")


def _is_skipped(label: str) -> bool:
    lowered = label.lower()
    return not lowered or any(lowered.startswith(prefix) for prefix in _SKIPPED_LABELS)


def read_hwmon_rails(hwmon: Path) -> list[PowerRail]:
    """Read the labelled channels of an ina3221 hwmon device."""
    channels: list[tuple[int, str]] = []
    for label_path in hwmon.glob("in*_label"):
        match = _LABEL_RE.match(label_path.name)
        if match is None:
            continue
        label = read_str(label_path)
        if _is_skipped(label):
            continue
        channels.append((int(match.group(1)), label))

    rails: list[PowerRail] = []
    for channel, label in sorted(channels):
        current = float(read_int(hwmon / f"curr{channel}_input"))  # mA
        voltage = float(read_int(hwmon / f"in{channel}_input"))  # mV
        rails.append(
            PowerRail(name=label, current=current, voltage=voltage, power=current * voltage / 1000.0)
        )
    return rails


def read_iio_rail(device: Path) -> PowerRail | None:
    """Read a legacy IIO rail; devices without a name are not rails."""
    name = read_str(device / "name")
    if not name:
        return None

    # Scales first: raw values are meaningless without them.
    current_scale = read_or_default(device / "in_current_scale", float, 1.0)
    voltage_scale = read_or_default(device / "in_voltage_scale", float, 1.0)
    current = read_int(device / "in_current_raw") * current_scale / 1000.0  # uA -> mA
    voltage = read_int(device / "in_voltage_raw") * voltage_scale / 1000.0  # uV -> mV

    return PowerRail(name=name, current=current, voltage=voltage, power=current * voltage / 1000.0)


class PowerCollector:
    """Reads power rails, preferring the hwmon layout over legacy IIO."""

    def __init__(self, root: Path = Path("/")) -> None:
        """
        Initialize the PowerCollector.

        Device directories are located once; rail topology does not change
        while the board is running.
        """
        drivers = root / "sys" / "bus" / "i2c" / "drivers"
        driver = resolve_first([drivers / "ina3221", drivers / "ina3221x"])
        self._hwmon_dirs: list[Path] = sorted(driver.glob("*/hwmon/hwmon*")) if driver else []

        self._iio_dirs: list[Path] = []
        if not self._hwmon_dirs:
            iio_base = resolve_first(
                [root / "sys" / "bus" / "iio" / "devices", root / "sys" / "bus" / "i2c" / "devices"]
            )
            if iio_base is not None:
                self._iio_dirs = sorted(iio_base.glob("iio:device*"))

    def collect(self) -> PowerReading:
        """Collect the current power reading."""
        rails: list[PowerRail] = []
        for hwmon in self._hwmon_dirs:
            rails.extend(read_hwmon_rails(hwmon))
        for device in self._iio_dirs:
            rail = read_iio_rail(device)
            if rail is not None:
                rails.append(rail)

        total = sum(rail.power for rail in rails) / 1000.0  # mW -> W
        return PowerReading(total=total, rails=tuple(rails))
