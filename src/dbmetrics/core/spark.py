"""Spark fan-out: cluster -> applications -> per-application resources.

For one cluster, `SparkService` lists the Spark applications running on it
and fetches executors, jobs and stages for each, assembling maps keyed by
`Application`. Any failing sub-fetch aborts the whole operation.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol, TypeVar

from dbmetrics.core.errors import DbMetricsError, FetchError, UnsupportedOperationError
from dbmetrics.core.models import (
    AppDetails,
    Application,
    Cluster,
    ClusterMetrics,
    ExecutorInfo,
    Job,
    JobRun,
    PipelineSummary,
    SparkJobInfo,
    StageInfo,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SparkAdapter(Protocol):
    """Interface for the Spark REST calls of one cluster."""

    def metrics(self) -> ClusterMetrics:
        ...

    def applications(self) -> list[Application]:
        ...

    def app_executors(self, app_id: str) -> list[ExecutorInfo]:
        ...

    def app_jobs(self, app_id: str) -> list[SparkJobInfo]:
        ...

    def app_stages(self, app_id: str) -> list[StageInfo]:
        ...


SparkAdapterFactory = Callable[[str], SparkAdapter]


class SparkService:
    """
    Per-cluster Spark collection.

    Args:
        adapter_factory: Returns a `SparkAdapter` scoped to a cluster id.
    """

    def __init__(self, adapter_factory: SparkAdapterFactory) -> None:
        self.adapter_factory = adapter_factory

    def core_metrics_for_cluster(self, cluster_id: str) -> ClusterMetrics:
        """Return the driver metrics registry snapshot of one cluster."""
        try:
            return self.adapter_factory(cluster_id).metrics()
        except DbMetricsError as exc:
            raise FetchError(
                "core_metrics_for_cluster", f"cluster id: {cluster_id}: {exc}", ident=cluster_id
            ) from exc

    def core_metrics_for_clusters(self, clusters: list[Cluster]) -> dict[Cluster, ClusterMetrics]:
        """Return driver metrics for every cluster; the first failure aborts."""
        out: dict[Cluster, ClusterMetrics] = {}
        for cluster in clusters:
            out[cluster] = self.core_metrics_for_cluster(cluster.id)
        return out

    def executors_by_app(self, cluster_id: str) -> dict[Application, list[ExecutorInfo]]:
        """Return executor info of every application on a cluster."""
        adapter = self.adapter_factory(cluster_id)
        apps = self._applications(adapter, cluster_id)
        return _by_app(apps, adapter.app_executors, "executors")

    def jobs_by_app(self, cluster_id: str) -> dict[Application, list[SparkJobInfo]]:
        """Return Spark job info of every application on a cluster."""
        adapter = self.adapter_factory(cluster_id)
        apps = self._applications(adapter, cluster_id)
        return _by_app(apps, adapter.app_jobs, "jobs")

    def stages_by_app(self, cluster_id: str) -> dict[Application, list[StageInfo]]:
        """Return stage info of every application on a cluster."""
        adapter = self.adapter_factory(cluster_id)
        apps = self._applications(adapter, cluster_id)
        return _by_app(apps, adapter.app_stages, "stages")

    def app_details(self, cluster_id: str) -> AppDetails:
        """
        Return executors, jobs and stages of every application on a cluster.

        Lists applications once and reuses the list for all three resources;
        the list does not change within a polling cycle.
        """
        adapter = self.adapter_factory(cluster_id)
        apps = self._applications(adapter, cluster_id)
        details = AppDetails(
            executors=_by_app(apps, adapter.app_executors, "executors"),
            jobs=_by_app(apps, adapter.app_jobs, "jobs"),
            stages=_by_app(apps, adapter.app_stages, "stages"),
        )
        logger.info("cluster %s: collected details for %d applications", cluster_id, len(apps))
        return details

    def _applications(self, adapter: SparkAdapter, cluster_id: str) -> list[Application]:
        try:
            return adapter.applications()
        except DbMetricsError as exc:
            raise FetchError(
                "applications",
                f"failed to get applications from spark: cluster id: {cluster_id}: {exc}",
                ident=cluster_id,
            ) from exc

    # The workspace-side capabilities are not served by the Spark API.

    def jobs(self) -> list[Job]:
        raise UnsupportedOperationError("SparkService", "jobs")

    def active_job_runs(self) -> list[JobRun]:
        raise UnsupportedOperationError("SparkService", "active_job_runs")

    def completed_job_runs(self, job_id: int, prev_start_time: int) -> list[JobRun]:
        raise UnsupportedOperationError("SparkService", "completed_job_runs")

    def running_clusters(self) -> list[Cluster]:
        raise UnsupportedOperationError("SparkService", "running_clusters")

    def running_pipelines(self) -> list[PipelineSummary]:
        raise UnsupportedOperationError("SparkService", "running_pipelines")


def _by_app(
    apps: list[Application],
    fetch: Callable[[str], list[T]],
    kind: str,
) -> dict[Application, list[T]]:
    out: dict[Application, list[T]] = {}
    for app in apps:
        try:
            out[app] = fetch(app.id)
        except DbMetricsError as exc:
            raise FetchError(kind, f"failed to get {kind} for app id: {app.id}: {exc}", ident=app.id) from exc
    return out
