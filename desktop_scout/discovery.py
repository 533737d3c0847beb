"""Locate `.desktop` files in the usual application directories."""

import asyncio
import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIRS = "/usr/local/share:/usr/share"

SYSTEM_EXTRA_DIRS = (
    Path("/var/lib/flatpak/exports/share/applications"),
    Path("/var/lib/snapd/desktop/applications"),
)


def data_home(environ: Mapping[str, str]) -> Path:
    if value := environ.get("XDG_DATA_HOME"):
        return Path(value)
    return Path(environ.get("HOME", str(Path.home()))) / ".local" / "share"


def data_dirs(environ: Mapping[str, str]) -> Sequence[Path]:
    value = environ.get("XDG_DATA_DIRS") or DEFAULT_DATA_DIRS
    return [Path(d) for d in value.split(":") if d]


def collect_application_dirs(
    *,
    no_default: bool = False,
    no_common_extras: bool = False,
    extra_dirs: Iterable[Path] = (),
    environ: Mapping[str, str] | None = None,
) -> Sequence[Path]:
    """Collect directories that may contain `.desktop` files.

    Args:
        no_default: Skip the XDG data directories entirely
        no_common_extras: Skip Flatpak and Snap export directories
        extra_dirs: Directories that are always included
        environ: Environment to read XDG variables from (default: os.environ)

    Returns:
        Sorted, deduplicated directories

    """
    env = os.environ if environ is None else environ
    dirs: set[Path] = set()

    if not no_default:
        home = data_home(env)
        dirs.add(home / "applications")
        if not no_common_extras:
            dirs.add(home / "flatpak" / "exports" / "share" / "applications")

        dirs.update(d / "applications" for d in data_dirs(env))

        if not no_common_extras:
            dirs.update(SYSTEM_EXTRA_DIRS)

    dirs.update(extra_dirs)

    logger.debug("Collected %d application dir(s): %s", len(dirs), sorted(dirs))
    return sorted(dirs)


def walk_desktop_files(root: Path) -> Sequence[Path]:
    """Recursively list `.desktop` files under `root` without following dir symlinks."""
    found: list[Path] = []
    stack = [root]

    while stack:
        directory = stack.pop()
        try:
            entries = list(os.scandir(directory))
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(Path(entry.path))
                elif entry.name.endswith(".desktop") and entry.is_file():
                    found.append(Path(entry.path))
            except OSError as e:
                logger.debug("Skipping %s: %s", entry.path, e)

    return found


async def collect_desktop_files(dirs: Sequence[Path]) -> Sequence[Path]:
    """Collect `.desktop` files from every root, sorted and deduplicated."""
    per_root = await asyncio.gather(
        *(asyncio.to_thread(walk_desktop_files, d) for d in dirs)
    )
    files = sorted({path for paths in per_root for path in paths})
    logger.info("Found %d desktop file(s) in %d dir(s)", len(files), len(dirs))
    return files
