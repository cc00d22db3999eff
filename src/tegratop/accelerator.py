"""Accelerator (integrated GPU) collectors.

Two mutually exclusive sources exist. Boards on older L4T releases expose
the GPU through devfreq and debugfs files; newer releases ship the vendor
management library (NVML). The source is chosen once, at startup, from the
L4T version and never re-evaluated per tick.
"""

import logging
from enum import Enum
from pathlib import Path

import psutil
import pynvml

from tegratop.board import l4t_major_minor
from tegratop.models import AcceleratorProcess, AcceleratorReading
from tegratop.sysfs import (
    list_indexed,
    parse_millidegrees,
    read_int,
    read_or_default,
    read_str,
    resolve_first,
)
from tegratop.thermal import classify_zone

logger = logging.getLogger(__name__)

# First L4T release whose GPU is reported through NVML.
NVML_MIN_L4T = (38, 0)

# devfreq load is reported on a 0-255 scale.
LOAD_SCALE = 255

# Most specific first: named GPC/NVD clock domains, then per-SoC GPU nodes,
# then the generic name.
DEVFREQ_CANDIDATES = (
    "gpu-gpc-0",
    "gpu-nvd-0",
    "17000000.ga10b",
    "17000000.gv11b",
    "17000000.gp10b",
    "57000000.gpu",
    "gpu",
)


class AcceleratorSource(str, Enum):
    """Where accelerator metrics come from."""

    SYSFS = "sysfs"
    NVML = "nvml"


def select_source(l4t: str) -> AcceleratorSource:
    """Pick the accelerator source for an L4T version string."""
    version = l4t_major_minor(l4t)
    if version is not None and version >= NVML_MIN_L4T:
        return AcceleratorSource.NVML
    return AcceleratorSource.SYSFS


def process_identity(pid: int, fallback_name: str = "") -> tuple[str, str]:
    """Return (name, username) of a process, or the fallback if it is gone."""
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            return proc.name(), proc.username()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return fallback_name, ""


def parse_nvmap_clients(text: str) -> tuple[AcceleratorProcess, ...]:
    """
    Parse the nvmap iovmm 'clients' table.

    Lines look like 'user  gst-launch-1.0  4242  10240K'; the header and
    the trailing 'total' line are skipped.
    """
    processes: list[AcceleratorProcess] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) != 4 or parts[0] != "user":
            continue
        _, process_name, pid_text, size_text = parts
        try:
            pid = int(pid_text)
            memory = int(size_text.rstrip("K")) * 1024
        except ValueError:
            continue
        name, username = process_identity(pid, process_name)
        processes.append(AcceleratorProcess(pid=pid, name=name, username=username, memory=memory))
    return tuple(processes)


class SysfsAccelerator:
    """Legacy accelerator source reading devfreq, thermal and nvmap files."""

    source = AcceleratorSource.SYSFS

    def __init__(self, root: Path = Path("/")) -> None:
        """
        Initialize the SysfsAccelerator.

        The devfreq directory, GPU thermal zone and nvmap table are located
        here once; GPU topology does not change at runtime.
        """
        devfreq = root / "sys" / "class" / "devfreq"
        self._devfreq = resolve_first(devfreq / name for name in DEVFREQ_CANDIDATES)
        self._temp_path: Path | None = None
        for _, zone in list_indexed(root / "sys" / "class" / "thermal", "thermal_zone"):
            if classify_zone(read_str(zone / "type")) == "gpu":
                self._temp_path = zone / "temp"
                break
        self._clients = resolve_first(
            [root / "sys" / "kernel" / "debug" / "nvmap" / "iovmm" / "clients"]
        )

    def _read_usage(self, frequency: int, max_frequency: int) -> float:
        load = read_or_default(self._devfreq / "device" / "load", int, None)
        if load is not None:
            return min(100.0, load * 100.0 / LOAD_SCALE)
        # No load counter: fall back to the frequency ratio.
        if max_frequency > 0:
            return min(100.0, frequency * 100.0 / max_frequency)
        return 0.0

    def collect(self) -> AcceleratorReading:
        """Collect the current accelerator reading."""
        temperature = read_or_default(self._temp_path, parse_millidegrees, 0.0)
        processes = read_or_default(self._clients, parse_nvmap_clients, ())
        memory_used = sum(process.memory for process in processes)

        if self._devfreq is None:
            return AcceleratorReading(
                source=self.source.value,
                temperature=temperature,
                memory_used=memory_used,
                processes=processes,
            )

        # max_freq is needed to interpret cur_freq when there is no load file.
        max_frequency = read_int(self._devfreq / "max_freq")
        frequency = read_int(self._devfreq / "cur_freq")
        return AcceleratorReading(
            source=self.source.value,
            name=self._devfreq.name,
            usage=self._read_usage(frequency, max_frequency),
            frequency=frequency,
            max_frequency=max_frequency,
            temperature=temperature,
            governor=read_str(self._devfreq / "governor"),
            memory_used=memory_used,
            processes=processes,
        )

    def close(self) -> None:
        """Nothing to release."""


def _query(func, *args, default=0):
    """Call an NVML query, returning default if the device does not support it."""
    try:
        return func(*args)
    except pynvml.NVMLError as exc:
        logger.debug("NVML query %s failed: %s", getattr(func, "__name__", func), exc)
        return default


class NvmlAccelerator:
    """Accelerator source backed by the NVIDIA Management Library."""

    source = AcceleratorSource.NVML

    def __init__(self, device_index: int = 0) -> None:
        """
        Initialize NVML and acquire the device handle.

        Raises:
            pynvml.NVMLError: If NVML cannot be initialized or the device
                does not exist.
        """
        pynvml.nvmlInit()
        try:
            self._handle = pynvml.nvmlDeviceGetHandleByIndex(device_index)
            name = pynvml.nvmlDeviceGetName(self._handle)
        except pynvml.NVMLError:
            pynvml.nvmlShutdown()
            raise
        self._name = name.decode("utf-8") if isinstance(name, bytes) else name
        self._closed = False

    def _processes(self) -> tuple[AcceleratorProcess, ...]:
        running = _query(pynvml.nvmlDeviceGetComputeRunningProcesses, self._handle, default=[])
        processes: list[AcceleratorProcess] = []
        for info in running:
            name, username = process_identity(info.pid)
            processes.append(
                AcceleratorProcess(
                    pid=info.pid,
                    name=name,
                    username=username,
                    memory=info.usedGpuMemory or 0,
                )
            )
        return tuple(processes)

    def collect(self) -> AcceleratorReading:
        """Collect the current accelerator reading."""
        handle = self._handle
        utilization = _query(pynvml.nvmlDeviceGetUtilizationRates, handle, default=None)
        memory = _query(pynvml.nvmlDeviceGetMemoryInfo, handle, default=None)
        # Clocks are reported in MHz.
        clock = _query(pynvml.nvmlDeviceGetClockInfo, handle, pynvml.NVML_CLOCK_GRAPHICS)
        max_clock = _query(pynvml.nvmlDeviceGetMaxClockInfo, handle, pynvml.NVML_CLOCK_GRAPHICS)
        temperature = _query(pynvml.nvmlDeviceGetTemperature, handle, pynvml.NVML_TEMPERATURE_GPU)

        return AcceleratorReading(
            source=self.source.value,
            name=self._name,
            usage=float(utilization.gpu) if utilization is not None else 0.0,
            frequency=clock * 1_000_000,
            max_frequency=max_clock * 1_000_000,
            temperature=float(temperature),
            governor="",
            memory_used=memory.used if memory is not None else 0,
            memory_total=memory.total if memory is not None else 0,
            processes=self._processes(),
        )

    def close(self) -> None:
        """Shut NVML down."""
        if not self._closed:
            self._closed = True
            _query(pynvml.nvmlShutdown, default=None)


Accelerator = SysfsAccelerator | NvmlAccelerator


def open_accelerator(root: Path, l4t: str) -> Accelerator:
    """
    Open the accelerator source for this board.

    If the version calls for NVML but NVML cannot be initialized, the sysfs
    source is used instead. Either way the choice holds for the process
    lifetime.
    """
    if select_source(l4t) is AcceleratorSource.NVML:
        try:
            return NvmlAccelerator()
        except pynvml.NVMLError as exc:
            logger.warning("NVML unavailable on L4T %s (%s), using sysfs", l4t, exc)
    return SysfsAccelerator(root)
