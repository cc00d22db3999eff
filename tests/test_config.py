"""Tests for command-line configuration."""

import logging
from pathlib import Path

import pytest

from tegratop.config import MIN_INTERVAL, Settings, configure_logging, parse_settings


class TestParseSettings:
    """Tests for parse_settings."""

    def test_defaults(self):
        """Test defaults with no arguments or environment."""
        settings = parse_settings([], environ={})

        assert settings == Settings()
        assert not settings.one_shot

    def test_interval_floor(self):
        """Test the interval cannot go below the minimum."""
        assert parse_settings(["--interval", "0.01"], environ={}).interval == MIN_INTERVAL
        assert parse_settings(["--interval", "2.5"], environ={}).interval == 2.5

    def test_environment_defaults(self):
        """Test TEGRATOP_ROOT and TEGRATOP_INTERVAL supply defaults."""
        settings = parse_settings([], environ={"TEGRATOP_ROOT": "/srv/board", "TEGRATOP_INTERVAL": "3"})

        assert settings.root == Path("/srv/board")
        assert settings.interval == 3.0

    def test_arguments_override_environment(self):
        """Test command-line values win over the environment."""
        settings = parse_settings(["--root", "/mnt"], environ={"TEGRATOP_ROOT": "/srv/board"})
        assert settings.root == Path("/mnt")

    @pytest.mark.parametrize(
        ("argv", "field", "value"),
        [
            (["--stats"], "stats", True),
            (["--fan", "80"], "fan", 80),
            (["--nvpmodel", "2"], "nvpmodel", 2),
            (["--jetson-clocks"], "jetson_clocks", True),
        ],
    )
    def test_one_shot_commands(self, argv, field, value):
        """Test one-shot commands replace the dashboard."""
        settings = parse_settings(argv, environ={})

        assert getattr(settings, field) == value
        assert settings.one_shot

    def test_commands_are_exclusive(self):
        """Test two one-shot commands cannot be combined."""
        with pytest.raises(SystemExit):
            parse_settings(["--stats", "--fan", "50"], environ={})

    def test_invalid_interval(self):
        """Test a non-numeric interval is rejected."""
        with pytest.raises(SystemExit):
            parse_settings(["--interval", "soon"], environ={})


@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_log_file(self, tmp_path):
        """Test records go to the log file when one is given."""
        log_file = tmp_path / "tegratop.log"
        configure_logging(Settings(log_file=log_file, log_level="INFO"))

        logging.getLogger("tegratop.test").info("hello from the test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello from the test" in log_file.read_text()

    def test_one_shot_logs_to_stderr(self):
        """Test one-shot commands log through a stream handler."""
        configure_logging(Settings(stats=True))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert type(handlers[0]) is logging.StreamHandler
