"""Conversion of aggregated collections into named, timestamped data points.

Each `record_*` function reads one collection produced by the workspace or
Spark services and records `databricks.*` measurements tagged with the
identifying dimensions of the record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from dbmetrics.core.models import (
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


@dataclass(frozen=True)
class DataPoint:
    """A single measurement."""

    name: str
    value: float
    timestamp_ns: int
    attributes: Mapping[str, str | int] = field(default_factory=dict)


class MetricsBuilder:
    """Accumulates data points sharing one timestamp."""

    def __init__(self, now_ns: int) -> None:
        self.now_ns = now_ns
        self._points: list[DataPoint] = []

    def record(self, name: str, value: float, **attributes: str | int) -> None:
        self._points.append(DataPoint(name, value, self.now_ns, dict(attributes)))

    def emit(self) -> list[DataPoint]:
        """Return recorded points and reset the builder."""
        points, self._points = self._points, []
        return points


def record_job_metrics(builder: MetricsBuilder, jobs: list[Job], active_runs: list[JobRun]) -> None:
    builder.record("databricks.jobs.total", len(jobs))
    builder.record("databricks.jobs.active.total", len(active_runs))


def record_run_metrics(builder: MetricsBuilder, job_id: int, new_runs: Iterable[JobRun]) -> None:
    """Record the duration of each newly completed run of a job."""
    for run in new_runs:
        builder.record(
            "databricks.jobs.run.duration",
            run.duration_ms,
            job_id=job_id,
            run_id=run.run_id,
            result_state=run.result_state or "",
        )


def record_pipeline_metrics(builder: MetricsBuilder, pipelines: list[PipelineSummary]) -> None:
    builder.record("databricks.pipelines.running.total", len(pipelines))
    for p in pipelines:
        builder.record(
            "databricks.pipelines.running",
            1,
            pipeline_id=p.id,
            pipeline_name=p.name,
            cluster_id=p.cluster_id,
        )


def record_cluster_metrics(
    builder: MetricsBuilder, metrics_by_cluster: Mapping[Cluster, ClusterMetrics]
) -> None:
    """Record every numeric driver gauge and counter, tagged with its source name."""
    for cluster, cm in metrics_by_cluster.items():
        for name, value in cm.gauges.items():
            builder.record("databricks.spark.driver.gauge", value, cluster_id=cluster.id, metric=name)
        for name, count in cm.counters.items():
            builder.record("databricks.spark.driver.counter", count, cluster_id=cluster.id, metric=name)


def record_executor_metrics(
    builder: MetricsBuilder,
    cluster_id: str,
    by_app: Mapping[Application, list[ExecutorInfo]],
) -> None:
    for app, executors in by_app.items():
        for e in executors:
            attrs = {"cluster_id": cluster_id, "app_id": app.id, "executor_id": e.id}
            builder.record("databricks.spark.executor.memory_used", e.memory_used, **attrs)
            builder.record("databricks.spark.executor.disk_used", e.disk_used, **attrs)
            builder.record("databricks.spark.executor.total_input_bytes", e.total_input_bytes, **attrs)
            builder.record("databricks.spark.executor.total_shuffle_read", e.total_shuffle_read, **attrs)
            builder.record("databricks.spark.executor.total_shuffle_write", e.total_shuffle_write, **attrs)
            builder.record("databricks.spark.executor.max_memory", e.max_memory, **attrs)


def record_spark_job_metrics(
    builder: MetricsBuilder,
    cluster_id: str,
    by_app: Mapping[Application, list[SparkJobInfo]],
) -> None:
    for app, jobs in by_app.items():
        for j in jobs:
            attrs = {"cluster_id": cluster_id, "app_id": app.id, "spark_job_id": j.job_id}
            builder.record("databricks.spark.job.num_tasks", j.num_tasks, **attrs)
            builder.record("databricks.spark.job.num_active_tasks", j.num_active_tasks, **attrs)
            builder.record("databricks.spark.job.num_completed_tasks", j.num_completed_tasks, **attrs)
            builder.record("databricks.spark.job.num_skipped_tasks", j.num_skipped_tasks, **attrs)
            builder.record("databricks.spark.job.num_failed_tasks", j.num_failed_tasks, **attrs)
            builder.record("databricks.spark.job.num_active_stages", j.num_active_stages, **attrs)
            builder.record("databricks.spark.job.num_completed_stages", j.num_completed_stages, **attrs)
            builder.record("databricks.spark.job.num_skipped_stages", j.num_skipped_stages, **attrs)
            builder.record("databricks.spark.job.num_failed_stages", j.num_failed_stages, **attrs)


def record_stage_metrics(
    builder: MetricsBuilder,
    cluster_id: str,
    by_app: Mapping[Application, list[StageInfo]],
) -> None:
    for app, stages in by_app.items():
        for s in stages:
            attrs = {"cluster_id": cluster_id, "app_id": app.id, "stage_id": s.stage_id}
            builder.record("databricks.spark.stage.executor_run_time", s.executor_run_time, **attrs)
            builder.record("databricks.spark.stage.input_bytes", s.input_bytes, **attrs)
            builder.record("databricks.spark.stage.input_records", s.input_records, **attrs)
            builder.record("databricks.spark.stage.output_bytes", s.output_bytes, **attrs)
            builder.record("databricks.spark.stage.output_records", s.output_records, **attrs)
            builder.record("databricks.spark.stage.memory_bytes_spilled", s.memory_bytes_spilled, **attrs)
            builder.record("databricks.spark.stage.disk_bytes_spilled", s.disk_bytes_spilled, **attrs)
