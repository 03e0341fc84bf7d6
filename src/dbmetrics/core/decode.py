"""Decoding of raw API response bodies into core models.

Workspace responses are JSON objects with a list under a resource key and an
optional `has_more` flag. Spark REST responses are bare JSON arrays. Keys the
API omits for empty results decode to empty lists.
"""

from __future__ import annotations

import json
from typing import Any, Callable, TypeVar

from dbmetrics.core.errors import DecodeError
from dbmetrics.core.models import (
    Application,
    Cluster,
    ClusterMetrics,
    ExecutorInfo,
    Job,
    JobRun,
    Page,
    PipelineStatus,
    SparkJobInfo,
    StageInfo,
)

T = TypeVar("T")


def _load(body: bytes, what: str) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"failed to decode {what}: {exc}") from exc


def _load_object(body: bytes, what: str) -> dict[str, Any]:
    data = _load(body, what)
    if not isinstance(data, dict):
        raise DecodeError(f"failed to decode {what}: expected a JSON object")
    return data


def _load_array(body: bytes, what: str) -> list[Any]:
    data = _load(body, what)
    if not isinstance(data, list):
        raise DecodeError(f"failed to decode {what}: expected a JSON array")
    return data


def _convert(items: Any, convert: Callable[[dict[str, Any]], T], what: str) -> list[T]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise DecodeError(f"failed to decode {what}: expected a list")
    try:
        return [convert(item) for item in items]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise DecodeError(f"failed to decode {what}: {exc!r}") from exc


def _page(body: bytes, key: str, convert: Callable[[dict[str, Any]], T], what: str) -> Page[T]:
    data = _load_object(body, what)
    return Page(
        items=_convert(data.get(key), convert, what),
        has_more=bool(data.get("has_more", False)),
    )


def _job(item: dict[str, Any]) -> Job:
    settings = item.get("settings") or {}
    return Job(
        id=int(item["job_id"]),
        name=str(settings.get("name") or ""),
        creator=item.get("creator_user_name"),
        created_time=int(item.get("created_time") or 0),
    )


def _run(item: dict[str, Any]) -> JobRun:
    state = item.get("state") or {}
    return JobRun(
        run_id=int(item["run_id"]),
        job_id=int(item.get("job_id") or 0),
        start_time=int(item.get("start_time") or 0),
        end_time=int(item.get("end_time") or 0),
        life_cycle_state=state.get("life_cycle_state"),
        result_state=state.get("result_state"),
        execution_duration=int(item.get("execution_duration") or 0),
    )


def _cluster(item: dict[str, Any]) -> Cluster:
    return Cluster(
        id=str(item["cluster_id"]),
        name=str(item.get("cluster_name") or ""),
        state=str(item.get("state") or ""),
    )


def _pipeline_status(item: dict[str, Any]) -> PipelineStatus:
    return PipelineStatus(
        id=str(item["pipeline_id"]),
        name=str(item.get("name") or ""),
        state=str(item.get("state") or ""),
    )


def _application(item: dict[str, Any]) -> Application:
    return Application(id=str(item["id"]), name=str(item.get("name") or ""))


def _executor(item: dict[str, Any]) -> ExecutorInfo:
    return ExecutorInfo(
        id=str(item["id"]),
        memory_used=int(item.get("memoryUsed") or 0),
        disk_used=int(item.get("diskUsed") or 0),
        max_memory=int(item.get("maxMemory") or 0),
        total_input_bytes=int(item.get("totalInputBytes") or 0),
        total_shuffle_read=int(item.get("totalShuffleRead") or 0),
        total_shuffle_write=int(item.get("totalShuffleWrite") or 0),
        active_tasks=int(item.get("activeTasks") or 0),
        total_cores=int(item.get("totalCores") or 0),
    )


def _spark_job(item: dict[str, Any]) -> SparkJobInfo:
    return SparkJobInfo(
        job_id=int(item["jobId"]),
        name=str(item.get("name") or ""),
        status=str(item.get("status") or ""),
        num_tasks=int(item.get("numTasks") or 0),
        num_active_tasks=int(item.get("numActiveTasks") or 0),
        num_completed_tasks=int(item.get("numCompletedTasks") or 0),
        num_skipped_tasks=int(item.get("numSkippedTasks") or 0),
        num_failed_tasks=int(item.get("numFailedTasks") or 0),
        num_active_stages=int(item.get("numActiveStages") or 0),
        num_completed_stages=int(item.get("numCompletedStages") or 0),
        num_skipped_stages=int(item.get("numSkippedStages") or 0),
        num_failed_stages=int(item.get("numFailedStages") or 0),
    )


def _stage(item: dict[str, Any]) -> StageInfo:
    return StageInfo(
        stage_id=int(item["stageId"]),
        attempt_id=int(item.get("attemptId") or 0),
        name=str(item.get("name") or ""),
        status=str(item.get("status") or ""),
        executor_run_time=int(item.get("executorRunTime") or 0),
        input_bytes=int(item.get("inputBytes") or 0),
        input_records=int(item.get("inputRecords") or 0),
        output_bytes=int(item.get("outputBytes") or 0),
        output_records=int(item.get("outputRecords") or 0),
        memory_bytes_spilled=int(item.get("memoryBytesSpilled") or 0),
        disk_bytes_spilled=int(item.get("diskBytesSpilled") or 0),
    )


def decode_jobs_page(body: bytes) -> Page[Job]:
    """Decode one page of `/jobs/list`."""
    return _page(body, "jobs", _job, "jobs list")


def decode_runs_page(body: bytes) -> Page[JobRun]:
    """Decode one page of `/jobs/runs/list` (active or completed)."""
    return _page(body, "runs", _run, "job runs")


def decode_clusters(body: bytes) -> list[Cluster]:
    """Decode the full cluster roster."""
    return _convert(_load_object(body, "clusters list").get("clusters"), _cluster, "clusters list")


def decode_pipeline_statuses(body: bytes) -> list[PipelineStatus]:
    """Decode the pipeline status listing."""
    data = _load_object(body, "pipelines")
    return _convert(data.get("statuses"), _pipeline_status, "pipelines")


def decode_pipeline_cluster_id(body: bytes) -> str:
    """Decode the owning cluster id from a single pipeline's detail record."""
    data = _load_object(body, "pipeline")
    return str(data.get("cluster_id") or "")


def decode_applications(body: bytes) -> list[Application]:
    return _convert(_load_array(body, "spark applications"), _application, "spark applications")


def decode_executors(body: bytes) -> list[ExecutorInfo]:
    return _convert(_load_array(body, "executor info"), _executor, "executor info")


def decode_spark_jobs(body: bytes) -> list[SparkJobInfo]:
    return _convert(_load_array(body, "spark job info"), _spark_job, "spark job info")


def decode_stages(body: bytes) -> list[StageInfo]:
    return _convert(_load_array(body, "stage info"), _stage, "stage info")


def decode_cluster_metrics(body: bytes) -> ClusterMetrics:
    """
    Decode a Spark `/metrics/json` registry snapshot.

    Only numeric gauge values and counter counts are kept; gauges reporting
    strings or nulls are dropped.
    """
    data = _load_object(body, "spark metrics")
    for key in ("gauges", "counters"):
        if not isinstance(data.get(key) or {}, dict):
            raise DecodeError(f"failed to decode spark metrics: {key} must be an object")
    gauges: dict[str, float] = {}
    for name, gauge in (data.get("gauges") or {}).items():
        value = gauge.get("value") if isinstance(gauge, dict) else None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            gauges[name] = float(value)
    counters: dict[str, int] = {}
    for name, counter in (data.get("counters") or {}).items():
        count = counter.get("count") if isinstance(counter, dict) else None
        if isinstance(count, int) and not isinstance(count, bool):
            counters[name] = count
    return ClusterMetrics(gauges=gauges, counters=counters)
