"""One polling cycle over the workspace and the Spark drivers of running clusters.

The scraper is the only stateful piece: it keeps the completed-run
watermarks between cycles. Everything else is fetched fresh on each call.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable

from dbmetrics.core import metrics
from dbmetrics.core.metrics import DataPoint, MetricsBuilder
from dbmetrics.core.models import AppDetails, Cluster, ClusterMetrics
from dbmetrics.core.runs import RunWatermarks
from dbmetrics.core.spark import SparkService
from dbmetrics.core.workspace import MetricsSource

logger = logging.getLogger(__name__)

ClusterResult = tuple[ClusterMetrics, AppDetails]


class Scraper:
    """
    Collect all data points for one polling cycle.

    Args:
        workspace: Source of jobs, runs, clusters and pipelines.
        spark: Spark service used for per-cluster driver data.
        max_parallel: Number of clusters fetched concurrently.
        clock: Returns the current time in nanoseconds.
        watermarks: Completed-run watermarks carried over from earlier polls.
    """

    def __init__(
        self,
        workspace: MetricsSource,
        spark: SparkService,
        *,
        max_parallel: int = 1,
        clock: Callable[[], int] = time.time_ns,
        watermarks: RunWatermarks | None = None,
    ) -> None:
        if max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        self.workspace = workspace
        self.spark = spark
        self.max_parallel = max_parallel
        self.clock = clock
        self.watermarks = watermarks or RunWatermarks()

    def scrape(self) -> list[DataPoint]:
        """
        Run one cycle and return its data points.

        Any failure aborts the cycle: no data points are returned and the
        watermarks are left as they were before the call.
        """
        builder = MetricsBuilder(self.clock())
        pending = RunWatermarks(self.watermarks.snapshot())

        jobs = self.workspace.jobs()
        active = self.workspace.active_job_runs()
        metrics.record_job_metrics(builder, jobs, active)

        for job in jobs:
            completed = self.workspace.completed_job_runs(job.id, pending.get(job.id))
            metrics.record_run_metrics(builder, job.id, pending.advance(job.id, completed))

        metrics.record_pipeline_metrics(builder, self.workspace.running_pipelines())

        clusters = self.workspace.running_clusters()
        results = self._collect_clusters(clusters)
        metrics.record_cluster_metrics(builder, {c: results[c][0] for c in clusters})
        for cluster in clusters:
            details = results[cluster][1]
            metrics.record_executor_metrics(builder, cluster.id, details.executors)
            metrics.record_spark_job_metrics(builder, cluster.id, details.jobs)
            metrics.record_stage_metrics(builder, cluster.id, details.stages)

        self.watermarks = pending
        points = builder.emit()
        logger.info("scrape produced %d data points for %d clusters", len(points), len(clusters))
        return points

    def _collect_cluster(self, cluster: Cluster) -> ClusterResult:
        return (
            self.spark.core_metrics_for_cluster(cluster.id),
            self.spark.app_details(cluster.id),
        )

    def _collect_clusters(self, clusters: list[Cluster]) -> dict[Cluster, ClusterResult]:
        if self.max_parallel == 1 or len(clusters) <= 1:
            return {c: self._collect_cluster(c) for c in clusters}

        results: dict[Cluster, ClusterResult] = {}
        with ThreadPoolExecutor(max_workers=self.max_parallel) as pool:
            futures: dict[Future[ClusterResult], Cluster] = {
                pool.submit(self._collect_cluster, c): c for c in clusters
            }
            try:
                for f in as_completed(futures):
                    results[futures[f]] = f.result()
            except Exception:
                for f in futures:
                    f.cancel()
                raise
        return results
