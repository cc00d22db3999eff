"""Cooling collector: PWM fan hwmon and thermal cooling devices."""

from pathlib import Path

from tegratop.models import CoolingDevice, CoolingReading, FanMode, ThermalReading
from tegratop.sysfs import list_indexed, read_int, read_str, resolve_first

PWM_MAX = 255
FAN_HWMON_NAMES = ("pwmfan", "pwm_fan", "pwm-fan")
TACH_HWMON_NAMES = ("pwm_tach", "tach", "pwmfan_tach")


def find_hwmon(root: Path, names: tuple[str, ...]) -> Path | None:
    """Return the first hwmon directory whose name is one of names."""
    for _, hwmon in list_indexed(root / "sys" / "class" / "hwmon", "hwmon"):
        if read_str(hwmon / "name") in names:
            return hwmon
    return None


def find_fan_hwmon(root: Path) -> Path | None:
    """Return the PWM fan hwmon directory, if the board has one."""
    return find_hwmon(root, FAN_HWMON_NAMES)


def detect_mode(devices: tuple[CoolingDevice, ...]) -> FanMode:
    """
    Guess the fan mode from duty cycles.

    All devices pinned at the same non-zero duty looks like a value written
    by hand; differing duties look like a thermal governor at work. This is
    a heuristic, not a kernel-reported state.
    """
    if not devices:
        return FanMode.UNKNOWN
    duties = {round(device.duty, 1) for device in devices}
    if duties == {0.0}:
        return FanMode.OFF
    if len(duties) == 1:
        return FanMode.MANUAL
    return FanMode.AUTOMATIC


def mode_from_enable(value: int) -> FanMode:
    """Map a hwmon pwm1_enable value to a fan mode; 0 (full speed) and absent map to Unknown."""
    if value == 1:
        return FanMode.MANUAL
    if value >= 2:
        return FanMode.AUTOMATIC
    return FanMode.UNKNOWN


def cooled_temperature(thermal: ThermalReading) -> float:
    """
    Temperature the fan is working against.

    The mean of the CPU and GPU zones when both read, otherwise whichever
    one does, then the board zone. 0.0 when none of them read.
    """
    readings = [value for value in (thermal.cpu, thermal.gpu) if value > 0.0]
    if readings:
        return sum(readings) / len(readings)
    return max(thermal.board, 0.0)


class CoolingCollector:
    """Reads the PWM fan and every thermal cooling device."""

    def __init__(self, root: Path = Path("/")) -> None:
        """Initialize the CoolingCollector, locating fan hwmon devices once."""
        self._thermal_base = root / "sys" / "class" / "thermal"
        self._fan = find_fan_hwmon(root)
        tach = find_hwmon(root, TACH_HWMON_NAMES)

        rpm_candidates: list[Path] = []
        if tach is not None:
            rpm_candidates += [tach / "rpm", tach / "fan1_input"]
        if self._fan is not None:
            rpm_candidates.append(self._fan / "fan1_input")
        self._rpm_path = resolve_first(rpm_candidates)

    def _read_fan(self) -> CoolingDevice | None:
        if self._fan is None:
            return None
        pwm = read_int(self._fan / "pwm1")
        return CoolingDevice(
            index=int(self._fan.name.removeprefix("hwmon") or 0),
            name=read_str(self._fan / "name", "pwmfan"),
            duty=min(100.0, pwm * 100.0 / PWM_MAX),
            rpm=read_int(self._rpm_path),
        )

    def _read_cooling_devices(self) -> list[CoolingDevice]:
        devices: list[CoolingDevice] = []
        for index, device in list_indexed(self._thermal_base, "cooling_device"):
            name = read_str(device / "type", device.name)
            # The PWM fan is also registered as a cooling device; count it once.
            if self._fan is not None and name in FAN_HWMON_NAMES:
                continue
            max_state = read_int(device / "max_state")
            cur_state = read_int(device / "cur_state")
            duty = min(100.0, cur_state * 100.0 / max_state) if max_state > 0 else 0.0
            devices.append(
                CoolingDevice(
                    index=index,
                    name=name,
                    duty=duty,
                    rpm=read_int(device / "fan1_input"),
                )
            )
        return devices

    def _mode(self, devices: tuple[CoolingDevice, ...]) -> FanMode:
        if self._fan is not None:
            mode = mode_from_enable(read_int(self._fan / "pwm1_enable", -1))
            if mode is not FanMode.UNKNOWN:
                return mode
        return detect_mode(devices)

    def collect(self) -> CoolingReading:
        """Collect the current cooling reading."""
        devices: list[CoolingDevice] = []
        fan = self._read_fan()
        if fan is not None:
            devices.append(fan)
        devices.extend(self._read_cooling_devices())

        if not devices:
            return CoolingReading()

        return CoolingReading(
            duty=sum(device.duty for device in devices) / len(devices),
            rpm=sum(device.rpm for device in devices) // len(devices),
            mode=self._mode(tuple(devices)),
            devices=tuple(devices),
        )
