"""Best-effort helpers for reading kernel pseudo-files."""

import logging
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_INDEXED_RE = re.compile(r"^(?P<prefix>\D+?)(?P<index>\d+)$")


def resolve_first(candidates: Iterable[Path]) -> Path | None:
    """
    Return the first candidate path that exists, or None.

    Candidates are tried in order, so callers list the most specific
    locations first and generic fallbacks last. Nothing is cached.
    """
    for candidate in candidates:
        try:
            if candidate.exists():
                return candidate
        except OSError:
            continue
    return None


def read_text(path: Path) -> str:
    """Read a pseudo-file and strip surrounding whitespace and NUL bytes."""
    with open(path, encoding="utf-8", errors="ignore") as f:
        return f.read().strip().strip("\x00").strip()


def read_or_default(path: Path | None, parse: Callable[[str], T], default: T) -> T:
    """
    Read and parse one pseudo-file, returning default on any failure.

    A missing file or permission error is an expected outcome on boards
    that lack the feature and is not logged. A value that exists but
    cannot be parsed is logged at debug level.
    """
    if path is None:
        return default
    try:
        raw = read_text(path)
    except OSError:
        return default
    try:
        return parse(raw)
    except (ValueError, TypeError, IndexError) as exc:
        logger.debug("Unparsable value in %s: %r (%s)", path, raw, exc)
        return default


def read_str(path: Path | None, default: str = "") -> str:
    """Read a string pseudo-file."""
    return read_or_default(path, str, default)


def read_int(path: Path | None, default: int = 0) -> int:
    """Read a decimal integer pseudo-file."""
    return read_or_default(path, int, default)


def parse_millidegrees(raw: str) -> float:
    """Convert a millidegree Celsius reading to degrees."""
    return int(raw) / 1000.0


def parse_key_values(text: str, separator: str = ":") -> dict[str, str]:
    """Parse 'key<sep> value' lines into a dict, ignoring malformed lines."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(separator)
        if not sep:
            continue
        values[key.strip()] = value.strip()
    return values


def list_indexed(base: Path, prefix: str) -> list[tuple[int, Path]]:
    """
    List entries named '<prefix><N>' under base, sorted by N.

    Returns an empty list if base cannot be listed.
    """
    entries: list[tuple[int, Path]] = []
    try:
        children = list(base.iterdir())
    except OSError:
        return entries

    for child in children:
        match = _INDEXED_RE.match(child.name)
        if match is None or match.group("prefix") != prefix:
            continue
        entries.append((int(match.group("index")), child))

    entries.sort(key=lambda entry: entry[0])
    return entries
