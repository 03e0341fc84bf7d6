"""Completed job run tracking across polls.

`RunWatermarks` holds, per job id, the newest completed-run start time seen
so far. It bounds `WorkspaceService.completed_job_runs` and decides which
fetched runs are new.
"""

from __future__ import annotations

from typing import Iterable

from dbmetrics.core.models import JobRun


class RunWatermarks:
    """Per-job high-water marks of completed-run start times."""

    def __init__(self, initial: dict[int, int] | None = None) -> None:
        self._marks: dict[int, int] = dict(initial or {})

    def get(self, job_id: int) -> int:
        """Return the watermark of a job, or 0 if the job was never polled."""
        return self._marks.get(job_id, 0)

    def advance(self, job_id: int, runs: Iterable[JobRun]) -> list[JobRun]:
        """
        Record fetched runs and return those newer than the previous mark.

        On the first poll of a job the mark is only established: nothing is
        reported as new, so historical runs are never replayed.

        Args:
            job_id: Job the runs belong to.
            runs: Completed runs as fetched, newest first.

        Returns:
            Runs strictly newer than the previous mark, newest first.
        """
        runs = list(runs)
        prev = self.get(job_id)
        newest = max((r.start_time for r in runs), default=0)
        if newest > prev:
            self._marks[job_id] = newest
        if prev == 0:
            return []
        return [r for r in runs if r.start_time > prev]

    def snapshot(self) -> dict[int, int]:
        """Return a copy of all marks."""
        return dict(self._marks)
