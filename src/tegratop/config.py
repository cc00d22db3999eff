"""Command-line configuration and logging setup."""

import argparse
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from textual.logging import TextualHandler

MIN_INTERVAL = 0.1
DEFAULT_INTERVAL = 1.0
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(slots=True, frozen=True)
class Settings:
    """Resolved runtime settings."""

    interval: float = DEFAULT_INTERVAL
    root: Path = Path("/")
    log_level: str = "WARNING"
    log_file: Path | None = None
    stats: bool = False
    fan: int | None = None
    nvpmodel: int | None = None
    jetson_clocks: bool = False

    @property
    def one_shot(self) -> bool:
        """True when a command replaces the dashboard."""
        return self.stats or self.fan is not None or self.nvpmodel is not None or self.jetson_clocks


def _interval(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid interval: {value!r}") from exc
    return max(seconds, MIN_INTERVAL)


def build_parser(environ: Mapping[str, str] = os.environ) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tegratop",
        description="Hardware monitor and control dashboard for Jetson boards.",
        epilog="Example:\n  tegratop\n  tegratop --stats\n  sudo tegratop --fan 80",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--interval",
        type=_interval,
        default=_interval(environ.get("TEGRATOP_INTERVAL", str(DEFAULT_INTERVAL))),
        help=f"Seconds between samples (minimum {MIN_INTERVAL}).",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path(environ.get("TEGRATOP_ROOT", "/")),
        help="Filesystem root holding proc/, sys/ and etc/.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write log records to this file instead of the Textual console.",
    )

    commands = parser.add_mutually_exclusive_group()
    commands.add_argument(
        "--stats",
        action="store_true",
        help="Collect one sample, print it as JSON, and exit.",
    )
    commands.add_argument(
        "--fan",
        type=int,
        metavar="DUTY",
        help="Set the fan duty cycle (0-100) and exit.",
    )
    commands.add_argument(
        "--nvpmodel",
        type=int,
        metavar="ID",
        help="Switch to nvpmodel power mode ID (0-15) and exit.",
    )
    commands.add_argument(
        "--jetson-clocks",
        action="store_true",
        help="Toggle jetson_clocks and exit.",
    )
    return parser


def parse_settings(argv: Sequence[str] | None = None, environ: Mapping[str, str] = os.environ) -> Settings:
    """Parse command-line arguments into Settings."""
    args = build_parser(environ).parse_args(argv)
    return Settings(
        interval=args.interval,
        root=args.root,
        log_level=args.log_level,
        log_file=args.log_file,
        stats=args.stats,
        fan=args.fan,
        nvpmodel=args.nvpmodel,
        jetson_clocks=args.jetson_clocks,
    )


def configure_logging(settings: Settings) -> None:
    """
    Route log records for this run.

    The dashboard owns the terminal, so records go to a file when one is
    given and to the Textual devtools console otherwise. One-shot commands
    log to stderr.
    """
    handler: logging.Handler
    if settings.log_file is not None:
        handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    elif settings.one_shot:
        handler = logging.StreamHandler()
    else:
        handler = TextualHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=settings.log_level, handlers=[handler], force=True)
