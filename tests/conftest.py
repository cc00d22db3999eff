"""Shared fixtures: synthetic Jetson filesystem trees."""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

PROC_STAT = """\
cpu  300 0 100 1600 0 0 0 0 0 0
cpu0 100 0 100 800 0 0 0 0 0 0
cpu1 200 0 0 800 0 0 0 0 0 0
intr 12345 0 0
ctxt 98765
"""

MEMINFO = """\
MemTotal:        8000000 kB
MemFree:         2000000 kB
MemAvailable:    4000000 kB
Buffers:          100000 kB
Cached:           900000 kB
SwapCached:         1000 kB
SwapTotal:       4000000 kB
SwapFree:        3000000 kB
"""

NVPMODEL_CONF = """\
< POWER_MODEL ID=0 NAME=MAXN >
CPU_ONLINE CORE_0 1
< POWER_MODEL ID=1 NAME=MODE_15W >
CPU_ONLINE CORE_0 1
< PM_CONFIG DEFAULT=1 >
"""

NV_TEGRA_RELEASE = (
    "# R35 (release), REVISION: 4.1, GCID: 33958178, BOARD: t186ref, "
    "EABI: aarch64, DATE: Tue Aug  1 19:57:35 UTC 2023\n"
)


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create files under root, making parent directories as needed."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def write_files() -> Callable[[Path, dict[str, str]], Path]:
    """Return the helper that writes a dict of files under a root."""
    return write_tree


@pytest.fixture
def board_root(tmp_path: Path) -> Path:
    """A synthetic AGX Orin: two cores, GPU, fan, INA3221 rails."""
    cpu = "sys/devices/system/cpu"
    thermal = "sys/class/thermal"
    ina = "sys/bus/i2c/drivers/ina3221/1-0040/hwmon/hwmon3"
    gpu = "sys/class/devfreq/17000000.ga10b"
    return write_tree(
        tmp_path,
        {
            "proc/stat": PROC_STAT,
            "proc/meminfo": MEMINFO,
            "proc/uptime": "93784.50 180000.00\n",
            f"{cpu}/cpu0/cpufreq/scaling_cur_freq": "1510400\n",
            f"{cpu}/cpu0/cpufreq/scaling_governor": "schedutil\n",
            f"{cpu}/cpu0/cpufreq/scaling_min_freq": "729600\n",
            f"{cpu}/cpu0/cpufreq/scaling_max_freq": "2201600\n",
            f"{cpu}/cpu1/cpufreq/scaling_cur_freq": "729600\n",
            f"{cpu}/cpu1/cpufreq/scaling_governor": "schedutil\n",
            f"{thermal}/thermal_zone0/type": "cpu-thermal\n",
            f"{thermal}/thermal_zone0/temp": "45500\n",
            f"{thermal}/thermal_zone0/trip_point_0_temp": "99000\n",
            f"{thermal}/thermal_zone0/crit_temp": "105000\n",
            f"{thermal}/thermal_zone1/type": "gpu-thermal\n",
            f"{thermal}/thermal_zone1/temp": "43000\n",
            f"{thermal}/thermal_zone2/type": "Tboard_tegra\n",
            f"{thermal}/thermal_zone2/temp": "38000\n",
            f"{thermal}/cooling_device0/type": "pwm-fan\n",
            f"{thermal}/cooling_device0/max_state": "10\n",
            f"{thermal}/cooling_device0/cur_state": "5\n",
            "sys/class/hwmon/hwmon1/name": "pwmfan\n",
            "sys/class/hwmon/hwmon1/pwm1": "128\n",
            "sys/class/hwmon/hwmon1/pwm1_enable": "2\n",
            "sys/class/hwmon/hwmon2/name": "pwm_tach\n",
            "sys/class/hwmon/hwmon2/rpm": "2200\n",
            f"{ina}/in1_label": "VDD_IN\n",
            f"{ina}/curr1_input": "1200\n",
            f"{ina}/in1_input": "5000\n",
            f"{ina}/in2_label": "VDD_CPU_GPU_CV\n",
            f"{ina}/curr2_input": "400\n",
            f"{ina}/in2_input": "5000\n",
            f"{ina}/in4_label": "NC\n",
            f"{ina}/curr4_input": "999\n",
            f"{ina}/in4_input": "999\n",
            f"{gpu}/cur_freq": "306000000\n",
            f"{gpu}/max_freq": "1300500000\n",
            f"{gpu}/governor": "nvhost_podgov\n",
            f"{gpu}/device/load": "51\n",
            "sys/class/devfreq/15880000.nvdla0/cur_freq": "1600000000\n",
            "etc/nv_tegra_release": NV_TEGRA_RELEASE,
            "etc/nvpmodel.conf": NVPMODEL_CONF,
            "var/lib/nvpmodel/status": "pmode:0001 fmode:quiet\n",
            "proc/device-tree/model": "NVIDIA Jetson AGX Orin Developer Kit\x00",
            "proc/device-tree/compatible": "nvidia,p3737-0000+p3701-0005\x00nvidia,p3701-0005\x00nvidia,tegra234\x00",
            "proc/device-tree/serial-number": "1421022000123\x00",
        },
    )


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers and level back after a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
