"""Privileged control surface: fan duty, nvpmodel profile, jetson_clocks."""

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from tegratop.cooling import PWM_MAX, find_fan_hwmon
from tegratop.errors import ControlWriteError, ValidationError
from tegratop.profile import ProfileCollector

logger = logging.getLogger(__name__)

MAX_PROFILE_ID = 15
COMMAND_TIMEOUT = 30.0  # Seconds


@dataclass(slots=True, frozen=True)
class SetCoolingDuty:
    """Set every fan to a fixed duty cycle."""

    duty: int


@dataclass(slots=True, frozen=True)
class ToggleBoost:
    """Pin clocks at maximum, or restore them."""


@dataclass(slots=True, frozen=True)
class SetPerformanceProfile:
    """Switch the nvpmodel power mode."""

    profile_id: int


Action = SetCoolingDuty | ToggleBoost | SetPerformanceProfile

Runner = Callable[..., subprocess.CompletedProcess]


def validate_duty(duty: int) -> None:
    """Reject a fan duty outside 0-100."""
    if not 0 <= duty <= 100:
        raise ValidationError(f"Fan duty must be between 0 and 100, got {duty}")


def validate_profile(profile_id: int) -> None:
    """Reject a profile id outside 0-15."""
    if not 0 <= profile_id <= MAX_PROFILE_ID:
        raise ValidationError(f"Profile id must be between 0 and {MAX_PROFILE_ID}, got {profile_id}")


class ControlSurface:
    """
    Applies control actions to the board.

    Every operation validates its argument before touching anything, and
    reports a failed write or helper invocation as ControlWriteError. Nothing
    is retried.
    """

    def __init__(
        self,
        root: Path = Path("/"),
        runner: Runner = subprocess.run,
        nvpmodel: Sequence[str] = ("nvpmodel",),
        jetson_clocks: Sequence[str] = ("jetson_clocks",),
        timeout: float = COMMAND_TIMEOUT,
    ) -> None:
        """
        Initialize the ControlSurface.

        Args:
            root: Filesystem root holding sys/.
            runner: Callable used to run helper programs (subprocess.run).
            nvpmodel: Command prefix for the nvpmodel helper.
            jetson_clocks: Command prefix for the jetson_clocks helper.
            timeout: Seconds a helper may run before it is abandoned.
        """
        self._root = root
        self._runner = runner
        self._nvpmodel = tuple(nvpmodel)
        self._jetson_clocks = tuple(jetson_clocks)
        self._timeout = timeout
        self._profile = ProfileCollector(root)

    def _write(self, action: str, path: Path, value: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(value)
        except OSError as exc:
            raise ControlWriteError(action, f"{path}: {exc.strerror or exc}") from exc

    def _run(self, action: str, command: Sequence[str]) -> None:
        logger.info("Running %s", " ".join(command))
        try:
            result = self._runner(
                list(command),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ControlWriteError(action, f"{command[0]}: timed out after {exc.timeout:g}s") from exc
        except OSError as exc:
            raise ControlWriteError(action, f"{command[0]}: {exc.strerror or exc}") from exc
        if result.returncode != 0:
            reason = (result.stderr or "").strip() or f"exit status {result.returncode}"
            raise ControlWriteError(action, reason)

    def set_cooling_duty(self, duty: int) -> None:
        """
        Set the PWM fan to a fixed duty cycle.

        Raises:
            ValidationError: If duty is outside 0-100.
            ControlWriteError: If there is no PWM fan or it cannot be written.
        """
        validate_duty(duty)
        action = f"set fan duty to {duty}%"
        fan = find_fan_hwmon(self._root)
        if fan is None:
            raise ControlWriteError(action, "no PWM fan found")

        enable = fan / "pwm1_enable"
        if enable.exists():
            # 1 = manual control
            self._write(action, enable, "1")
        self._write(action, fan / "pwm1", str(duty * PWM_MAX // 100))
        logger.info("Fan duty set to %d%%", duty)

    def set_performance_profile(self, profile_id: int) -> None:
        """
        Switch the nvpmodel power mode.

        Raises:
            ValidationError: If profile_id is outside 0-15.
            ControlWriteError: If nvpmodel fails.
        """
        validate_profile(profile_id)
        self._run(f"set profile {profile_id}", [*self._nvpmodel, "-m", str(profile_id)])

    def toggle_boost_mode(self) -> bool:
        """
        Toggle jetson_clocks.

        Returns:
            True if boost is now enabled.

        Raises:
            ControlWriteError: If jetson_clocks fails.
        """
        if self._profile.boost_enabled():
            self._run("disable boost", [*self._jetson_clocks, "--restore"])
            return False
        self._run("enable boost", list(self._jetson_clocks))
        return True

    def apply(self, action: Action) -> str:
        """Carry out an action and return a status line describing it."""
        if isinstance(action, SetCoolingDuty):
            self.set_cooling_duty(action.duty)
            return f"Fan duty set to {action.duty}%"
        if isinstance(action, SetPerformanceProfile):
            self.set_performance_profile(action.profile_id)
            return f"Profile set to {action.profile_id}"
        if isinstance(action, ToggleBoost):
            enabled = self.toggle_boost_mode()
            return f"Boost {'enabled' if enabled else 'disabled'}"
        raise TypeError(f"Unknown action: {action!r}")
