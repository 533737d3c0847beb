"""Model for the fields read from a `[Desktop Entry]` section."""

from pathlib import Path

from pydantic import Field

from desktop_scout.models.base import Model


class DesktopEntryFields(Model):
    """Snapshot of the launcher keys found in one `.desktop` file."""

    source_path: Path = Field(..., description="File the entry was read from")
    name: str | None = Field(default=None, description="Value of Name=")
    exec: str | None = Field(default=None, description="Raw Exec= command line")
    try_exec: str | None = Field(default=None, description="Raw TryExec= value")
    hidden: bool = Field(default=False, description="Hidden=true")
    no_display: bool = Field(default=False, description="NoDisplay=true")

    @property
    def is_hidden(self) -> bool:
        """Whether the entry is filtered out by the visibility rules."""
        return self.hidden or self.no_display
