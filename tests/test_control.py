"""Tests for the control surface."""

import subprocess

import pytest

from tegratop.control import ControlSurface, SetCoolingDuty, SetPerformanceProfile, ToggleBoost
from tegratop.errors import ControlError, ControlWriteError, ValidationError


class RecordingRunner:
    """Stands in for subprocess.run, recording commands."""

    def __init__(self, returncode=0, stderr="", error=None):
        self.commands: list[list[str]] = []
        self.kwargs: list[dict] = []
        self.returncode = returncode
        self.stderr = stderr
        self.error = error

    def __call__(self, command, **kwargs):
        self.commands.append(command)
        self.kwargs.append(kwargs)
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(command, self.returncode, stdout="", stderr=self.stderr)


@pytest.fixture
def fan(board_root):
    return board_root / "sys" / "class" / "hwmon" / "hwmon1"


class TestValidation:
    """Out-of-range arguments are rejected before anything is written."""

    @pytest.mark.parametrize("duty", [-1, 101, 150])
    def test_duty_out_of_range(self, board_root, fan, duty):
        """Test invalid duties raise ValidationError and leave pwm1 untouched."""
        surface = ControlSurface(board_root, runner=RecordingRunner())

        with pytest.raises(ValidationError):
            surface.set_cooling_duty(duty)

        assert (fan / "pwm1").read_text() == "128\n"
        assert (fan / "pwm1_enable").read_text() == "2\n"

    @pytest.mark.parametrize("profile_id", [-1, 16, 20])
    def test_profile_out_of_range(self, board_root, profile_id):
        """Test invalid profile ids never invoke nvpmodel."""
        runner = RecordingRunner()
        surface = ControlSurface(board_root, runner=runner)

        with pytest.raises(ValidationError):
            surface.set_performance_profile(profile_id)

        assert runner.commands == []

    def test_validation_is_a_control_error(self):
        """Test the error hierarchy."""
        assert issubclass(ValidationError, ControlError)
        assert issubclass(ControlWriteError, ControlError)
        assert not issubclass(ValidationError, ControlWriteError)


class TestCoolingDuty:
    """Tests for set_cooling_duty."""

    @pytest.mark.parametrize(("duty", "pwm"), [(0, "0"), (50, "127"), (100, "255")])
    def test_writes_manual_mode_and_pwm(self, board_root, fan, duty, pwm):
        """Test bounds are accepted and written as 0-255 PWM."""
        ControlSurface(board_root).set_cooling_duty(duty)

        assert (fan / "pwm1_enable").read_text() == "1"
        assert (fan / "pwm1").read_text() == pwm

    def test_no_fan(self, tmp_path):
        """Test a board without a PWM fan reports a write failure."""
        with pytest.raises(ControlWriteError, match="no PWM fan"):
            ControlSurface(tmp_path).set_cooling_duty(50)

    def test_write_failure_carries_reason(self, board_root, fan):
        """Test an OS error on write is reported with its reason."""
        (fan / "pwm1").unlink()
        (fan / "pwm1").mkdir()

        with pytest.raises(ControlWriteError) as excinfo:
            ControlSurface(board_root).set_cooling_duty(40)

        assert excinfo.value.action == "set fan duty to 40%"
        assert "pwm1" in excinfo.value.reason


class TestHelpers:
    """Tests for the nvpmodel and jetson_clocks helpers."""

    def test_set_profile(self, board_root):
        """Test nvpmodel is run with the mode id."""
        runner = RecordingRunner()
        ControlSurface(board_root, runner=runner).set_performance_profile(2)
        assert runner.commands == [["nvpmodel", "-m", "2"]]

    def test_set_profile_failure(self, board_root):
        """Test a non-zero exit reports stderr as the reason."""
        runner = RecordingRunner(returncode=1, stderr="NVPM ERROR: must be root\n")

        with pytest.raises(ControlWriteError) as excinfo:
            ControlSurface(board_root, runner=runner).set_performance_profile(0)

        assert excinfo.value.reason == "NVPM ERROR: must be root"

    def test_missing_helper(self, board_root):
        """Test a helper that is not installed is a write failure."""
        runner = RecordingRunner(error=FileNotFoundError(2, "No such file or directory"))

        with pytest.raises(ControlWriteError, match="nvpmodel"):
            ControlSurface(board_root, runner=runner).set_performance_profile(1)

    def test_helper_timeout(self, board_root):
        """Test a helper that hangs is abandoned and reported as a write failure."""
        runner = RecordingRunner(error=subprocess.TimeoutExpired(["nvpmodel", "-m", "2"], 5.0))

        with pytest.raises(ControlWriteError) as excinfo:
            ControlSurface(board_root, runner=runner, timeout=5.0).set_performance_profile(2)

        assert excinfo.value.reason == "nvpmodel: timed out after 5s"
        assert runner.kwargs[0]["timeout"] == 5.0

    def test_helper_has_no_terminal_input(self, board_root):
        """Test helpers cannot block waiting on a prompt."""
        runner = RecordingRunner()
        ControlSurface(board_root, runner=runner).set_performance_profile(2)
        assert runner.kwargs[0]["stdin"] is subprocess.DEVNULL

    def test_custom_command_prefix(self, board_root):
        """Test helper commands can be prefixed, e.g. with sudo."""
        runner = RecordingRunner()
        ControlSurface(board_root, runner=runner, nvpmodel=("sudo", "nvpmodel")).set_performance_profile(3)
        assert runner.commands == [["sudo", "nvpmodel", "-m", "3"]]

    def test_toggle_boost_on(self, board_root):
        """Test boost is enabled when clocks are not pinned."""
        runner = RecordingRunner()

        assert ControlSurface(board_root, runner=runner).toggle_boost_mode() is True
        assert runner.commands == [["jetson_clocks"]]

    def test_toggle_boost_off(self, board_root):
        """Test boost is restored when clocks are pinned."""
        cpufreq = board_root / "sys/devices/system/cpu/cpu0/cpufreq"
        (cpufreq / "scaling_min_freq").write_text("2201600")
        runner = RecordingRunner()

        assert ControlSurface(board_root, runner=runner).toggle_boost_mode() is False
        assert runner.commands == [["jetson_clocks", "--restore"]]


class TestApply:
    """Tests for apply()."""

    def test_status_lines(self, board_root):
        """Test each Action is carried out and described."""
        surface = ControlSurface(board_root, runner=RecordingRunner())

        assert surface.apply(SetCoolingDuty(80)) == "Fan duty set to 80%"
        assert surface.apply(SetPerformanceProfile(1)) == "Profile set to 1"
        assert surface.apply(ToggleBoost()) == "Boost enabled"

    def test_errors_propagate(self, board_root):
        """Test apply() does not swallow control errors."""
        surface = ControlSurface(board_root, runner=RecordingRunner())
        with pytest.raises(ValidationError):
            surface.apply(SetCoolingDuty(101))
