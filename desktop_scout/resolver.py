"""Decide whether a tokenized command resolves to a runnable executable."""

import asyncio
import logging
import os
import re
import stat
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Literal

from desktop_scout.models.result import (
    CommandLine,
    EnvAssignments,
    Resolution,
    ResolutionVerdict,
)

log = logging.getLogger(__name__)

type FileState = Literal["executable", "not_executable", "missing"]

SCRIPT_INSTALL_DIRS: tuple[Path, ...] = (
    Path("/usr/share"),
    Path("/usr/local/share"),
    Path("/usr/lib"),
    Path("/usr/local/lib"),
    Path("/opt"),
)

INTERPRETER_RE = re.compile(
    r"python(\d+(\.\d+)?)?|pypy3?|nodejs|node|bash|sh|dash|zsh|ruby|perl"
)

# Options that make the interpreter run inline code instead of a script.
INLINE_CODE_FLAGS = frozenset({"-c", "-m", "-e", "-E", "--eval"})


def file_state(path: Path) -> FileState:
    """Classify a path as a runnable regular file, a non-runnable entry, or absent."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return "missing"
    except OSError as e:
        log.debug("Cannot stat %s: %s", path, e)
        return "missing"
    if stat.S_ISREG(st.st_mode) and st.st_mode & 0o111:
        return "executable"
    return "not_executable"


def is_interpreter(target: str) -> bool:
    return INTERPRETER_RE.fullmatch(PurePosixPath(target).name.lower()) is not None


def _list_dir(directory: Path) -> frozenset[str] | None:
    try:
        return frozenset(os.listdir(directory))
    except OSError as e:
        log.debug("Cannot list search path entry %s: %s", directory, e)
        return None


@dataclass(frozen=True, kw_only=True)
class SearchPathListing:
    """Entry names of every search-path directory, read once per batch."""

    names: Mapping[Path, frozenset[str]] = field(default_factory=dict)

    @classmethod
    async def build(cls, search_path: Sequence[Path]) -> "SearchPathListing":
        listings = await asyncio.gather(
            *(asyncio.to_thread(_list_dir, d) for d in search_path)
        )
        return cls(
            names={
                d: names
                for d, names in zip(search_path, listings, strict=True)
                if names is not None
            }
        )

    def may_contain(self, directory: Path, name: str) -> bool:
        # Unlisted or unreadable directories are looked up directly.
        if directory not in self.names:
            return True
        return name in self.names[directory]


@dataclass(frozen=True, kw_only=True)
class Resolver:
    """Resolves argv[0] against the filesystem or an explicit search path."""

    search_path: Sequence[Path] = ()
    listing: SearchPathListing | None = None
    script_dirs: Sequence[Path] = SCRIPT_INSTALL_DIRS

    async def resolve(
        self, command_line: CommandLine, *, check_script_args: bool = False
    ) -> Resolution:
        """Resolve a command and optionally run the interpreter heuristic.

        Environment assignments are recorded on the result but never take part
        in the lookup; nothing is executed.
        """
        verdict = await self.resolve_target(command_line.argv)

        warning = None
        if check_script_args and verdict.is_ok:
            warning = await self.missing_script_warning(command_line.argv)

        return Resolution(
            verdict=verdict,
            script_arg_warning=warning,
            env_assignments=command_line.env_assignments,
        )

    async def resolve_target(self, argv: Sequence[str]) -> ResolutionVerdict:
        if not argv:
            return ResolutionVerdict.empty()

        target = argv[0]
        if "/" not in target:
            return await self._search(target)

        path = Path(target)
        if not path.is_absolute():
            return ResolutionVerdict.ambiguous(target)
        if target.endswith("/"):
            return ResolutionVerdict.not_executable(path)

        match await asyncio.to_thread(file_state, path):
            case "executable":
                return ResolutionVerdict.ok(path)
            case "not_executable":
                return ResolutionVerdict.not_executable(path)
            case _:
                return ResolutionVerdict.missing(target)

    async def _search(self, name: str) -> ResolutionVerdict:
        non_executable: Path | None = None

        for directory in self.search_path:
            if self.listing is not None and not self.listing.may_contain(
                directory, name
            ):
                continue
            candidate = directory / name
            state = await asyncio.to_thread(file_state, candidate)
            if state == "executable":
                return ResolutionVerdict.ok(candidate)
            if state == "not_executable" and non_executable is None:
                non_executable = candidate

        if non_executable is not None:
            return ResolutionVerdict.not_executable(non_executable)
        return ResolutionVerdict.missing(name)

    async def missing_script_warning(self, argv: Sequence[str]) -> str | None:
        """Warn when an interpreter launcher has no script that exists on disk."""
        if not argv or not is_interpreter(argv[0]):
            return None

        interpreter = PurePosixPath(argv[0]).name
        if any(arg in INLINE_CODE_FLAGS for arg in argv[1:]):
            return None

        # Option values such as `-X dev` are indistinguishable from scripts,
        # so any existing candidate is enough.
        scripts = [arg for arg in argv[1:] if not arg.startswith("-")]
        if not scripts:
            return f"Interpreter {interpreter} is launched without a script argument"

        for script in scripts:
            if await self._script_exists(Path(script)):
                return None

        return (
            f"Interpreter {interpreter} exists, but script/path argument is "
            f"missing: {scripts[0]}"
        )

    async def _script_exists(self, path: Path) -> bool:
        candidates = [path] if path.is_absolute() else [d / path for d in self.script_dirs]
        for candidate in candidates:
            if await asyncio.to_thread(file_state, candidate) != "missing":
                return True
        return False


async def resolve(
    argv: Sequence[str],
    env_assignments: EnvAssignments,
    search_path: Sequence[Path],
    check_script_args: bool = False,
) -> Resolution:
    """Resolve a single command against `search_path` without a shared listing."""
    resolver = Resolver(search_path=tuple(search_path))
    return await resolver.resolve(
        CommandLine(env_assignments=tuple(env_assignments), argv=tuple(argv)),
        check_script_args=check_script_args,
    )
