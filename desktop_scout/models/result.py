"""Models for tokenized commands and inspection results."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

type VerdictKind = Literal[
    "ok",
    "missing_executable",
    "not_executable",
    "empty_command",
    "ambiguous_interpreter_target",
    "parse_failure",
    "tokenize_failure",
]

type InspectionStatus = Literal["ok", "broken", "warning", "skipped"]

type EnvAssignments = tuple[tuple[str, str], ...]


@dataclass(frozen=True, kw_only=True)
class CommandLine:
    """A launch line split into leading environment assignments and argv."""

    env_assignments: EnvAssignments = ()
    argv: tuple[str, ...] = ()

    @property
    def environment(self) -> Mapping[str, str]:
        """Assignments as a mapping."""
        return dict(self.env_assignments)

    @property
    def is_empty(self) -> bool:
        return not self.argv


@dataclass(frozen=True, kw_only=True)
class ResolutionVerdict:
    """Outcome of checking a single Exec or TryExec key.

    `resolved_path` is only set for `ok`; `reason` always carries a
    human-readable explanation so report consumers can tell kinds apart.
    """

    kind: VerdictKind
    reason: str
    resolved_path: Path | None = None

    @property
    def is_ok(self) -> bool:
        return self.kind == "ok"

    @classmethod
    def ok(cls, path: Path) -> "ResolutionVerdict":
        return cls(kind="ok", reason=f"Resolves to {path}", resolved_path=path)

    @classmethod
    def missing(cls, target: str) -> "ResolutionVerdict":
        return cls(
            kind="missing_executable",
            reason=f"Executable not found: {target}",
        )

    @classmethod
    def not_executable(cls, path: Path) -> "ResolutionVerdict":
        return cls(
            kind="not_executable",
            reason=f"Found but not executable: {path}",
        )

    @classmethod
    def empty(cls, reason: str = "Command is empty") -> "ResolutionVerdict":
        return cls(kind="empty_command", reason=reason)

    @classmethod
    def ambiguous(cls, target: str) -> "ResolutionVerdict":
        return cls(
            kind="ambiguous_interpreter_target",
            reason=(
                f"Relative executable path cannot be resolved without a "
                f"working directory: {target}"
            ),
        )

    @classmethod
    def parse_failure(cls, reason: str) -> "ResolutionVerdict":
        return cls(kind="parse_failure", reason=reason)

    @classmethod
    def tokenize_failure(cls, reason: str) -> "ResolutionVerdict":
        return cls(kind="tokenize_failure", reason=reason)


@dataclass(frozen=True, kw_only=True)
class Resolution:
    """Verdict plus the optional interpreter warning for one command."""

    verdict: ResolutionVerdict
    script_arg_warning: str | None = None
    env_assignments: EnvAssignments = ()


@dataclass(frozen=True, kw_only=True)
class InspectionResult:
    """Per-file record produced once the file's check has completed."""

    source_path: Path
    skipped: bool = False
    skip_reason: str | None = None
    try_exec_verdict: ResolutionVerdict | None = None
    exec_verdict: ResolutionVerdict | None = None
    script_arg_warning: str | None = None
    name: str | None = None
    exec: str | None = None
    try_exec: str | None = None
    hidden: bool = False
    no_display: bool = False
    env_assignments: tuple[tuple[str, str], ...] = ()

    @property
    def verdicts(self) -> tuple[ResolutionVerdict, ...]:
        return tuple(
            v for v in (self.try_exec_verdict, self.exec_verdict) if v is not None
        )

    @property
    def status(self) -> InspectionStatus:
        """Collapse both verdicts and the warning into one status."""
        if self.skipped:
            return "skipped"
        if any(not v.is_ok for v in self.verdicts):
            return "broken"
        if self.script_arg_warning:
            return "warning"
        return "ok"


@dataclass(frozen=True, kw_only=True)
class InspectionBatchResult:
    """Results in the order the files were submitted.

    `interrupted` is set when the batch was cancelled and only holds the
    results that had completed by then.
    """

    results: tuple[InspectionResult, ...] = field(default_factory=tuple)
    interrupted: bool = False

    def __len__(self) -> int:
        return len(self.results)

    def with_status(self, *statuses: InspectionStatus) -> tuple[InspectionResult, ...]:
        return tuple(r for r in self.results if r.status in statuses)

    def count(self, status: InspectionStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def has_problems(self) -> bool:
        return any(r.status in {"broken", "warning"} for r in self.results)
