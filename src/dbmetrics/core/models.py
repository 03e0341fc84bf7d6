"""Core domain models for Databricks workspace and Spark metrics.

These models are immutable values built fresh on every call. They are free
of HTTP, JSON and CLI concerns; decoding lives in `dbmetrics.core.decode`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Mapping, TypeVar

T = TypeVar("T")

RUNNING_STATE = "RUNNING"


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated listing plus the upstream continuation flag."""

    items: list[T]
    has_more: bool = False


@dataclass(frozen=True)
class Job:
    """
    Represents a Databricks job definition.

    Attributes:
        id: Unique identifier of the job.
        name: Job name from the job settings (empty if unnamed).
        creator: User name of the job creator, if reported.
        created_time: Creation time in epoch milliseconds.
    """

    id: int
    name: str = ""
    creator: str | None = None
    created_time: int = 0


@dataclass(frozen=True)
class JobRun:
    """
    Represents a single execution (run) of a Databricks job.

    Attributes:
        run_id: Unique identifier of the job run.
        job_id: Identifier of the job this run belongs to.
        start_time: Start time in epoch milliseconds.
        end_time: End time in epoch milliseconds (0 while running).
        life_cycle_state: Databricks life cycle state, e.g. TERMINATED.
        result_state: Databricks result state, e.g. SUCCESS. None while running.
        execution_duration: Execution time in milliseconds as reported.
    """

    run_id: int
    job_id: int
    start_time: int = 0
    end_time: int = 0
    life_cycle_state: str | None = None
    result_state: str | None = None
    execution_duration: int = 0

    @property
    def duration_ms(self) -> int:
        """Return the reported execution time, falling back to end - start."""
        if self.execution_duration:
            return self.execution_duration
        if self.end_time and self.start_time:
            return self.end_time - self.start_time
        return 0


@dataclass(frozen=True)
class Cluster:
    """A compute cluster. Equality and hashing use the cluster id only."""

    id: str
    name: str = field(default="", compare=False)
    state: str = field(default="", compare=False)

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING_STATE


@dataclass(frozen=True)
class PipelineStatus:
    """Summary record of a pipeline as returned by the pipeline listing."""

    id: str
    name: str
    state: str


@dataclass(frozen=True)
class PipelineSummary:
    """A running pipeline resolved to the cluster it runs on."""

    id: str
    name: str
    cluster_id: str


@dataclass(frozen=True)
class Application:
    """
    A Spark application hosted on one cluster.

    Equality and hashing use the application id only, so the same
    application fetched twice is the same dict key.
    """

    id: str
    name: str = field(default="", compare=False)


@dataclass(frozen=True)
class ExecutorInfo:
    """Resource usage of one Spark executor."""

    id: str
    memory_used: int = 0
    disk_used: int = 0
    max_memory: int = 0
    total_input_bytes: int = 0
    total_shuffle_read: int = 0
    total_shuffle_write: int = 0
    active_tasks: int = 0
    total_cores: int = 0


@dataclass(frozen=True)
class SparkJobInfo:
    """Progress counters of one Spark job."""

    job_id: int
    name: str = ""
    status: str = ""
    num_tasks: int = 0
    num_active_tasks: int = 0
    num_completed_tasks: int = 0
    num_skipped_tasks: int = 0
    num_failed_tasks: int = 0
    num_active_stages: int = 0
    num_completed_stages: int = 0
    num_skipped_stages: int = 0
    num_failed_stages: int = 0


@dataclass(frozen=True)
class StageInfo:
    """I/O and spill counters of one Spark stage attempt."""

    stage_id: int
    attempt_id: int = 0
    name: str = ""
    status: str = ""
    executor_run_time: int = 0
    input_bytes: int = 0
    input_records: int = 0
    output_bytes: int = 0
    output_records: int = 0
    memory_bytes_spilled: int = 0
    disk_bytes_spilled: int = 0


@dataclass(frozen=True)
class ClusterMetrics:
    """Driver metrics registry snapshot (gauges and counters) of one cluster."""

    gauges: Mapping[str, float] = field(default_factory=dict)
    counters: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AppDetails:
    """Per-application executor, job and stage records of one cluster."""

    executors: dict[Application, list[ExecutorInfo]]
    jobs: dict[Application, list[SparkJobInfo]]
    stages: dict[Application, list[StageInfo]]
