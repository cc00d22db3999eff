"""Board identity: model, L4T/JetPack versions and serial number."""

import platform
import re
from pathlib import Path
from types import MappingProxyType

from tegratop.models import UNKNOWN, BoardIdentity
from tegratop.sysfs import read_or_default, read_str, resolve_first

# L4T release -> JetPack label. Looked up by nearest component prefix.
JETPACK_RELEASES = MappingProxyType(
    {
        "38.2": "7.0",
        "36.4.4": "6.2.1",
        "36.4.3": "6.2",
        "36.4": "6.1",
        "36.3": "6.0",
        "36.2": "6.0 DP",
        "35.6.1": "5.1.5",
        "35.6": "5.1.4",
        "35.5": "5.1.3",
        "35.4.1": "5.1.2",
        "35.3.1": "5.1.1",
        "35.2.1": "5.1",
        "35.1": "5.0.2",
        "34.1.1": "5.0.1 DP",
        "34.1": "5.0 DP",
        "32.7.6": "4.6.6",
        "32.7.5": "4.6.5",
        "32.7.4": "4.6.4",
        "32.7.3": "4.6.3",
        "32.7.2": "4.6.2",
        "32.7.1": "4.6.1",
        "32.6.1": "4.6",
        "32.5.2": "4.5.1",
        "32.5.1": "4.5.1",
        "32.5": "4.5",
        "32.4.4": "4.4.1",
        "32.4.3": "4.4",
        "32.4.2": "4.4 DP",
        "32.3.1": "4.3",
        "32.2.1": "4.2.2",
        "32.2": "4.2.1",
        "32.1": "4.2",
    }
)

# Module part numbers found in the device-tree 'compatible' list.
COMPATIBLE_MODELS: tuple[tuple[str, str], ...] = (
    ("p3834", "NVIDIA Jetson AGX Thor"),
    ("p3701", "NVIDIA Jetson AGX Orin"),
    ("p3767", "NVIDIA Jetson Orin NX / Nano"),
    ("p3668", "NVIDIA Jetson Xavier NX"),
    ("p2888", "NVIDIA Jetson AGX Xavier"),
    ("p3448", "NVIDIA Jetson Nano"),
    ("p3310", "NVIDIA Jetson TX2"),
    ("p3489", "NVIDIA Jetson TX2i"),
    ("p3636", "NVIDIA Jetson TX2 NX"),
    ("p2180", "NVIDIA Jetson TX1"),
)

_RELEASE_HEADER_RE = re.compile(r"#\s*R(?P<major>\d+)\s*\([^)]*\),\s*REVISION:\s*(?P<revision>[\d.]+)")
_SOC_RE = re.compile(r"nvidia,(tegra\d+|t\d+)")


def jetpack_for(l4t: str) -> str:
    """
    Return the JetPack label for an L4T version.

    The longest table key that is a component-wise prefix of l4t wins,
    e.g. '36.4.7' resolves through '36.4'. No match gives 'Unknown'.
    """
    parts = l4t.strip().split(".")
    while parts and all(part.isdigit() for part in parts):
        label = JETPACK_RELEASES.get(".".join(parts))
        if label is not None:
            return label
        parts.pop()
    return UNKNOWN


def parse_release_file(text: str) -> dict[str, str]:
    """
    Parse /etc/nv_tegra_release.

    Understands the stock '# R35 (release), REVISION: 4.1, ...' header as
    well as KEY=VALUE lines.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        header = _RELEASE_HEADER_RE.match(line.strip())
        if header is not None:
            # The header's BOARD is a reference-board code, not a model name.
            fields["L4T_VERSION"] = f"{header.group('major')}.{header.group('revision')}"
            continue
        key, sep, value = line.partition("=")
        if sep and not key.lstrip().startswith("#"):
            fields[key.strip()] = value.strip()
    return fields


def model_from_compatible(compatible: str) -> str:
    """Map device-tree 'compatible' entries to a marketing model name."""
    for entry in compatible.split("\x00"):
        for part_number, model in COMPATIBLE_MODELS:
            if part_number in entry:
                return model
    return ""


def soc_from_compatible(compatible: str) -> str:
    """Return the SoC identifier (e.g. 'tegra234') from 'compatible'."""
    for entry in compatible.split("\x00"):
        match = _SOC_RE.search(entry)
        if match is not None:
            return match.group(1)
    return ""


def _read_raw(path: Path | None) -> str:
    if path is None:
        return ""
    try:
        with open(path, "rb") as f:
            return f.read().decode("utf-8", errors="ignore")
    except OSError:
        return ""


class BoardCollector:
    """Merges release file, device tree and compatible heuristics."""

    def __init__(self, root: Path = Path("/")) -> None:
        """Initialize the BoardCollector."""
        self._release = root / "etc" / "nv_tegra_release"
        self._device_tree = resolve_first(
            [
                root / "proc" / "device-tree",
                root / "sys" / "firmware" / "devicetree" / "base",
            ]
        )

    def _dt(self, name: str) -> Path | None:
        return self._device_tree / name if self._device_tree is not None else None

    def collect(self) -> BoardIdentity:
        """Collect the board identity. Unknown fields are 'Unknown'."""
        fields = read_or_default(self._release, parse_release_file, {})

        model = fields.get("BOARD", "")
        l4t = fields.get("L4T_VERSION", "")
        jetpack = fields.get("JETPACK_VERSION", "")
        serial = fields.get("SERIAL_NUMBER", "")

        if not model:
            model = read_str(self._dt("model"))
        if not serial:
            serial = read_str(self._dt("serial-number"))

        compatible = _read_raw(self._dt("compatible"))
        if not model:
            model = model_from_compatible(compatible)
        if not jetpack and l4t:
            jetpack = jetpack_for(l4t)

        uname = platform.uname()
        return BoardIdentity(
            model=model or UNKNOWN,
            jetpack=jetpack or UNKNOWN,
            l4t=l4t or UNKNOWN,
            serial=serial or UNKNOWN,
            soc=soc_from_compatible(compatible) or UNKNOWN,
            hostname=uname.node or UNKNOWN,
            kernel=uname.release or UNKNOWN,
        )


def l4t_major_minor(l4t: str) -> tuple[int, int] | None:
    """Return (major, minor) of an L4T version string, or None."""
    parts = l4t.split(".")
    try:
        return int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return None


def is_jetson(root: Path = Path("/")) -> bool:
    """Check whether root looks like a Jetson board."""
    return (
        resolve_first([root / "etc" / "nv_tegra_release", root / "sys" / "module" / "tegra_fuse"])
        is not None
    )
