"""Inspection options supplied by the command line."""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import Field, PositiveInt

from desktop_scout.models.base import Model


def default_max_concurrency() -> int:
    """Four inspections per processing unit, never fewer than eight."""
    return max((os.cpu_count() or 1) * 4, 8)


def search_path_from_env(environ: Mapping[str, str] | None = None) -> tuple[Path, ...]:
    """Split a PATH value into directories, dropping empty components."""
    env = os.environ if environ is None else environ
    return tuple(Path(d) for d in env.get("PATH", "").split(os.pathsep) if d)


class InspectionOptions(Model):
    """Knobs for a single inspection batch."""

    include_hidden: bool = Field(
        default=False, description="Inspect Hidden=true / NoDisplay=true entries"
    )
    check_script_args: bool = Field(
        default=False, description="Flag interpreter launchers with missing scripts"
    )
    max_concurrency: PositiveInt = Field(
        default_factory=default_max_concurrency,
        description="Maximum number of files inspected at once",
    )
    search_path: tuple[Path, ...] = Field(
        default_factory=search_path_from_env,
        description="Directories searched for bare command names, in order",
    )
