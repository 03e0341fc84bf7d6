"""Workspace-level collection: jobs, job runs, clusters and pipelines.

`WorkspaceService` turns paginated and cross-referenced workspace API
responses into complete collections. It keeps no state between calls; the
only value threaded across polls is the caller's completed-run watermark.
"""

from __future__ import annotations

import logging
from typing import Protocol

from dbmetrics.core.errors import DbMetricsError, FetchError
from dbmetrics.core.models import (
    RUNNING_STATE,
    Cluster,
    Job,
    JobRun,
    Page,
    PipelineStatus,
    PipelineSummary,
)
from dbmetrics.core.pagination import walk_pages

logger = logging.getLogger(__name__)


class WorkspaceAdapter(Protocol):
    """Interface for the workspace API calls used by the service."""

    def jobs_page(self, limit: int, offset: int) -> Page[Job]:
        ...

    def active_runs_page(self, limit: int, offset: int) -> Page[JobRun]:
        ...

    def completed_runs_page(self, job_id: int, limit: int, offset: int) -> Page[JobRun]:
        ...

    def clusters(self) -> list[Cluster]:
        ...

    def pipeline_statuses(self) -> list[PipelineStatus]:
        ...

    def pipeline_cluster_id(self, pipeline_id: str) -> str:
        ...


class MetricsSource(Protocol):
    """Capability set shared by the workspace and Spark services."""

    def jobs(self) -> list[Job]:
        ...

    def active_job_runs(self) -> list[JobRun]:
        ...

    def completed_job_runs(self, job_id: int, prev_start_time: int) -> list[JobRun]:
        ...

    def running_clusters(self) -> list[Cluster]:
        ...

    def running_pipelines(self) -> list[PipelineSummary]:
        ...


def _reached_watermark(page: Page[JobRun], prev_start_time: int) -> bool:
    """
    Return True when no further completed-run page is needed.

    Pages are newest first, so once the oldest run of a page started before
    the watermark every newer run has been seen. A zero watermark (first
    poll) fetches a single page only.
    """
    if prev_start_time == 0 or not page.items:
        return True
    return page.items[-1].start_time < prev_start_time


class WorkspaceService:
    """Paginating, filtering facade over a `WorkspaceAdapter`."""

    def __init__(self, adapter: WorkspaceAdapter, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.adapter = adapter
        self.limit = limit

    def jobs(self) -> list[Job]:
        """Return every job definition in the workspace."""
        try:
            return walk_pages(self.limit, lambda offset: self.adapter.jobs_page(self.limit, offset))
        except DbMetricsError as exc:
            raise FetchError("jobs", str(exc)) from exc

    def active_job_runs(self) -> list[JobRun]:
        """Return all currently active runs, across all jobs."""
        try:
            return walk_pages(
                self.limit, lambda offset: self.adapter.active_runs_page(self.limit, offset)
            )
        except DbMetricsError as exc:
            raise FetchError("active_job_runs", str(exc)) from exc

    def completed_job_runs(self, job_id: int, prev_start_time: int) -> list[JobRun]:
        """
        Return completed runs of a job, newest first, back to a watermark.

        Walking stops after the first page whose oldest run started before
        `prev_start_time`, after an empty page, or after the first page when
        `prev_start_time` is 0. The upstream `has_more` flag is ignored once
        one of these conditions holds.

        Args:
            job_id: Job whose completed runs are fetched.
            prev_start_time: Newest start time seen on a previous poll, or 0.
        """
        try:
            return walk_pages(
                self.limit,
                lambda offset: self.adapter.completed_runs_page(job_id, self.limit, offset),
                stop=lambda page: _reached_watermark(page, prev_start_time),
            )
        except DbMetricsError as exc:
            raise FetchError("completed_job_runs", f"job id: {job_id}: {exc}", ident=job_id) from exc

    def running_clusters(self) -> list[Cluster]:
        """Return clusters whose state is exactly RUNNING, in roster order."""
        try:
            clusters = self.adapter.clusters()
        except DbMetricsError as exc:
            raise FetchError("running_clusters", str(exc)) from exc
        running = [c for c in clusters if c.is_running]
        logger.info("%d of %d clusters running", len(running), len(clusters))
        return running

    def running_pipelines(self) -> list[PipelineSummary]:
        """Return running pipelines resolved to the cluster each one runs on."""
        try:
            statuses = self.adapter.pipeline_statuses()
        except DbMetricsError as exc:
            raise FetchError("running_pipelines", str(exc)) from exc

        out: list[PipelineSummary] = []
        for status in statuses:
            if status.state != RUNNING_STATE:
                continue
            try:
                cluster_id = self.adapter.pipeline_cluster_id(status.id)
            except DbMetricsError as exc:
                raise FetchError(
                    "running_pipelines",
                    f"failed to get pipeline info: pipeline id: {status.id}: {exc}",
                    ident=status.id,
                ) from exc
            out.append(PipelineSummary(id=status.id, name=status.name, cluster_id=cluster_id))
        return out
