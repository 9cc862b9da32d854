"""Line splitting shared by the rules, round-config, and map-file readers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

COMMENT_MARKER = "#"


def significant_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield stripped lines, skipping blanks and comment lines."""
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue
        yield line


def read_significant_lines(path: str | Path, error_type: type[Exception]) -> list[str]:
    """Read a text source and return its significant lines.

    Any failure to open or decode the file is re-raised as `error_type`.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise error_type(f"cannot read {source}: {exc}") from exc
    return list(significant_lines(text.splitlines()))
