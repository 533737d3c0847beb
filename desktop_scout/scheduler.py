"""Concurrent inspection of desktop entries with bounded parallelism."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

from desktop_scout.entry_parser import ParseFailure, read_entry_file
from desktop_scout.models.entry import DesktopEntryFields
from desktop_scout.models.options import InspectionOptions
from desktop_scout.models.result import (
    EnvAssignments,
    InspectionBatchResult,
    InspectionResult,
    Resolution,
    ResolutionVerdict,
)
from desktop_scout.resolver import Resolver, SearchPathListing
from desktop_scout.tokenizer import TokenizeFailure, tokenize

log = logging.getLogger(__name__)

HIDDEN_SKIP_REASON = (
    "Hidden=true or NoDisplay=true (use --include-hidden to scan these)"
)


class TaskState(Enum):
    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()


class BatchProgress:
    """Tracks each submitted file and holds completed results by position.

    Results stay readable after the batch is cancelled, so a caller can still
    report whatever finished before the interruption.
    """

    def __init__(self, paths: Sequence[Path]) -> None:
        self.paths = tuple(paths)
        self._states = [TaskState.PENDING] * len(self.paths)
        self._results: list[InspectionResult | None] = [None] * len(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def state(self, index: int) -> TaskState:
        return self._states[index]

    def start(self, index: int) -> None:
        if self._states[index] is not TaskState.PENDING:
            raise RuntimeError(f"File #{index} was already started")
        self._states[index] = TaskState.RUNNING

    def complete(self, index: int, result: InspectionResult) -> None:
        if self._states[index] is not TaskState.RUNNING:
            raise RuntimeError(f"File #{index} is not running")
        self._states[index] = TaskState.COMPLETED
        self._results[index] = result

    @property
    def is_done(self) -> bool:
        return all(s is TaskState.COMPLETED for s in self._states)

    def completed(self) -> InspectionBatchResult:
        """Completed results in submission order."""
        return InspectionBatchResult(
            results=tuple(r for r in self._results if r is not None),
            interrupted=not self.is_done,
        )


@dataclass(frozen=True, kw_only=True)
class InspectionScheduler:
    """Inspects many desktop entries with a fixed pool of workers."""

    options: InspectionOptions

    async def inspect_files(
        self,
        paths: Sequence[Path],
        progress: BatchProgress | None = None,
    ) -> InspectionBatchResult:
        """Inspect every file and return results in submission order.

        Args:
            paths: Desktop files to inspect, in reporting order
            progress: Optional tracker that outlives cancellation of this call

        Returns:
            One result per path, positioned as submitted

        """
        if progress is None:
            progress = BatchProgress(paths)
        elif progress.paths != tuple(paths):
            raise ValueError("Progress tracker was created for different paths")

        if not paths:
            log.info("No desktop files to inspect")
            return progress.completed()

        listing = await SearchPathListing.build(self.options.search_path)
        resolver = Resolver(search_path=self.options.search_path, listing=listing)

        queue: asyncio.Queue[tuple[int, Path]] = asyncio.Queue()
        for item in enumerate(paths):
            queue.put_nowait(item)

        workers = min(self.options.max_concurrency, len(paths))
        log.info("Inspecting %d file(s) with %d worker(s)...", len(paths), workers)

        await asyncio.gather(
            *(self._drain(queue, resolver, progress) for _ in range(workers))
        )
        log.info("Inspection completed")

        return progress.completed()

    async def _drain(
        self,
        queue: asyncio.Queue[tuple[int, Path]],
        resolver: Resolver,
        progress: BatchProgress,
    ) -> None:
        while True:
            try:
                index, path = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            progress.start(index)
            result = await self._inspect_guarded(path, resolver)
            progress.complete(index, result)
            log.debug("Inspected %s: status=%s", path, result.status)

    async def _inspect_guarded(
        self, path: Path, resolver: Resolver
    ) -> InspectionResult:
        """Inspect one file, turning unexpected errors into a failed verdict."""
        try:
            return await self.inspect_one(path, resolver)
        except Exception as e:
            log.warning("Failed to inspect file %s: %s", path, e, exc_info=e)
            return InspectionResult(
                source_path=path,
                exec_verdict=ResolutionVerdict.parse_failure(
                    f"Failed to inspect file: {e}"
                ),
            )

    async def inspect_one(self, path: Path, resolver: Resolver) -> InspectionResult:
        """Parse one entry, apply the visibility filter, then check its keys."""
        try:
            entry = await read_entry_file(path)
        except ParseFailure as e:
            log.warning("Cannot parse %s: %s", path, e)
            return InspectionResult(
                source_path=path,
                exec_verdict=ResolutionVerdict.parse_failure(str(e)),
            )

        if entry.is_hidden and not self.options.include_hidden:
            return self._result(entry, skipped=True, skip_reason=HIDDEN_SKIP_REASON)

        try_exec_verdict = None
        if entry.try_exec is not None:
            try_exec = await self._check(entry.try_exec, resolver, check_script_args=False)
            try_exec_verdict = try_exec.verdict

        if entry.exec is None:
            exec_check = Resolution(verdict=ResolutionVerdict.empty("No Exec key found"))
        else:
            exec_check = await self._check(
                entry.exec,
                resolver,
                check_script_args=self.options.check_script_args,
            )

        return self._result(
            entry,
            try_exec_verdict=try_exec_verdict,
            exec_verdict=exec_check.verdict,
            script_arg_warning=exec_check.script_arg_warning,
            env_assignments=exec_check.env_assignments,
        )

    @staticmethod
    async def _check(
        raw: str, resolver: Resolver, *, check_script_args: bool
    ) -> Resolution:
        try:
            command_line = tokenize(raw)
        except TokenizeFailure as e:
            return Resolution(
                verdict=ResolutionVerdict.tokenize_failure(f"Failed to tokenize {raw!r}: {e}")
            )
        return await resolver.resolve(command_line, check_script_args=check_script_args)

    @staticmethod
    def _result(
        entry: DesktopEntryFields,
        *,
        skipped: bool = False,
        skip_reason: str | None = None,
        try_exec_verdict: ResolutionVerdict | None = None,
        exec_verdict: ResolutionVerdict | None = None,
        script_arg_warning: str | None = None,
        env_assignments: EnvAssignments = (),
    ) -> InspectionResult:
        return InspectionResult(
            source_path=entry.source_path,
            name=entry.name,
            exec=entry.exec,
            try_exec=entry.try_exec,
            hidden=entry.hidden,
            no_display=entry.no_display,
            skipped=skipped,
            skip_reason=skip_reason,
            try_exec_verdict=try_exec_verdict,
            exec_verdict=exec_verdict,
            script_arg_warning=script_arg_warning,
            env_assignments=env_assignments,
        )
