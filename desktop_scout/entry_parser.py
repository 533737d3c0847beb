"""Read the launcher keys from the `[Desktop Entry]` section of a file."""

import asyncio
import logging
from pathlib import Path

from desktop_scout.models.entry import DesktopEntryFields

log = logging.getLogger(__name__)

DESKTOP_ENTRY_HEADER = "[Desktop Entry]"

STRING_KEYS = {"Name": "name", "Exec": "exec", "TryExec": "try_exec"}
BOOLEAN_KEYS = {"Hidden": "hidden", "NoDisplay": "no_display"}


class ParseFailure(Exception):
    """Raised when a file cannot be read as UTF-8 text."""


def parse_bool(value: str) -> bool:
    """Parse a desktop-entry boolean; anything but `true` is false."""
    return value.strip().lower() == "true"


def parse_entry(content: str, source_path: Path) -> DesktopEntryFields:
    """Extract the recognized keys from the `[Desktop Entry]` section.

    The first occurrence of each key wins. Content outside the section,
    comments and lines without `=` are ignored. A file with no such section
    yields an entry with every key unset.
    """
    values: dict[str, str | bool] = {}
    in_section = False

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line.startswith("[") and line.endswith("]"):
            if in_section:
                break
            in_section = line == DESKTOP_ENTRY_HEADER
            continue
        if not in_section or not line or line.startswith("#") or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if key in STRING_KEYS:
            values.setdefault(STRING_KEYS[key], value)
        elif key in BOOLEAN_KEYS:
            values.setdefault(BOOLEAN_KEYS[key], parse_bool(value))

    return DesktopEntryFields(source_path=source_path, **values)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseFailure(f"File is not valid UTF-8 text: {e}") from e
    except OSError as e:
        raise ParseFailure(f"Failed to read file: {e}") from e


async def read_entry_file(path: Path) -> DesktopEntryFields:
    """Read and parse a `.desktop` file without blocking the event loop."""
    content = await asyncio.to_thread(_read_text, path)
    entry = parse_entry(content, path)
    log.debug(
        "Parsed %s (exec=%r, try_exec=%r, hidden=%s, no_display=%s)",
        path,
        entry.exec,
        entry.try_exec,
        entry.hidden,
        entry.no_display,
    )
    return entry
