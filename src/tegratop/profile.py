"""Performance profile (nvpmodel) and boost (jetson_clocks) state."""

import re
from pathlib import Path

from tegratop.models import UNKNOWN, PerformanceProfile, ProfileReading
from tegratop.sysfs import read_int, read_or_default, resolve_first

_POWER_MODEL_RE = re.compile(r"<\s*POWER_MODEL\s+ID=(?P<id>\d+)\s+NAME=(?P<name>[^>\s]+)\s*>")
_PMODE_RE = re.compile(r"pmode:(\d+)")


def parse_nvpmodel_conf(text: str) -> tuple[PerformanceProfile, ...]:
    """Extract '< POWER_MODEL ID=n NAME=x >' entries from nvpmodel.conf."""
    return tuple(
        PerformanceProfile(profile_id=int(match.group("id")), name=match.group("name"))
        for match in _POWER_MODEL_RE.finditer(text)
    )


def parse_status(text: str) -> int:
    """Parse the current mode from nvpmodel's status file ('pmode:0002 ...')."""
    match = _PMODE_RE.search(text)
    if match is not None:
        return int(match.group(1))
    # The device-tree property holds a bare number.
    return int(text.split()[0])


class ProfileCollector:
    """Reads the active nvpmodel mode and whether clocks are pinned."""

    def __init__(self, root: Path = Path("/")) -> None:
        """Initialize the ProfileCollector."""
        self._conf = resolve_first(
            [root / "etc" / "nvpmodel.conf", root / "etc" / "nvpmodel" / "nvpmodel.conf"]
        )
        self._status = resolve_first(
            [
                root / "var" / "lib" / "nvpmodel" / "status",
                root / "sys" / "devices" / "soc0" / "firmware" / "devicetree" / "base" / "nvidia,pmodel",
            ]
        )
        self._cpufreq = root / "sys" / "devices" / "system" / "cpu" / "cpu0" / "cpufreq"

    def boost_enabled(self) -> bool:
        """
        Check whether jetson_clocks has pinned the CPU clocks.

        jetson_clocks raises every core's minimum frequency to its maximum.
        """
        max_freq = read_int(self._cpufreq / "scaling_max_freq")
        min_freq = read_int(self._cpufreq / "scaling_min_freq")
        return max_freq > 0 and min_freq == max_freq

    def collect(self) -> ProfileReading:
        """Collect the current profile reading."""
        profiles = read_or_default(self._conf, parse_nvpmodel_conf, ())
        profile_id = read_or_default(self._status, parse_status, -1)
        names = {profile.profile_id: profile.name for profile in profiles}
        return ProfileReading(
            profile_id=profile_id,
            profile_name=names.get(profile_id, UNKNOWN),
            boost_enabled=self.boost_enabled(),
            profiles=profiles,
        )
