from __future__ import annotations

import logging

from dbmetrics.core import decode
from dbmetrics.core.models import Cluster, Job, JobRun, Page, PipelineStatus
from dbmetrics.core.transport import Transport

logger = logging.getLogger(__name__)

JOBS_LIST_PATH = "/api/2.1/jobs/list?expand_tasks=true&limit={limit}&offset={offset}"
ACTIVE_JOB_RUNS_PATH = "/api/2.1/jobs/runs/list?active_only=true&limit={limit}&offset={offset}"
COMPLETED_JOB_RUNS_PATH = (
    "/api/2.1/jobs/runs/list?completed_only=true&expand_tasks=true"
    "&job_id={job_id}&limit={limit}&offset={offset}"
)
CLUSTERS_LIST_PATH = "/api/2.0/clusters/list"
PIPELINES_PATH = "/api/2.0/pipelines"
PIPELINE_PATH = "/api/2.0/pipelines/{pipeline_id}"


class WorkspaceApi:
    """Adapter around the Databricks workspace REST API (jobs, clusters, pipelines)."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def _get(self, path: str) -> bytes:
        logger.debug("workspace api request: %s", path)
        return self.transport.get(path)

    def jobs_page(self, limit: int, offset: int) -> Page[Job]:
        """Return one page of job definitions."""
        body = self._get(JOBS_LIST_PATH.format(limit=limit, offset=offset))
        return decode.decode_jobs_page(body)

    def active_runs_page(self, limit: int, offset: int) -> Page[JobRun]:
        """Return one page of currently active runs across all jobs."""
        body = self._get(ACTIVE_JOB_RUNS_PATH.format(limit=limit, offset=offset))
        return decode.decode_runs_page(body)

    def completed_runs_page(self, job_id: int, limit: int, offset: int) -> Page[JobRun]:
        """Return one page of completed runs for a job, newest first."""
        path = COMPLETED_JOB_RUNS_PATH.format(job_id=job_id, limit=limit, offset=offset)
        return decode.decode_runs_page(self._get(path))

    def clusters(self) -> list[Cluster]:
        """Return the full cluster roster, in any state."""
        return decode.decode_clusters(self._get(CLUSTERS_LIST_PATH))

    def pipeline_statuses(self) -> list[PipelineStatus]:
        """Return summary records of all pipelines."""
        return decode.decode_pipeline_statuses(self._get(PIPELINES_PATH))

    def pipeline_cluster_id(self, pipeline_id: str) -> str:
        """Return the id of the cluster a pipeline runs on."""
        body = self._get(PIPELINE_PATH.format(pipeline_id=pipeline_id))
        return decode.decode_pipeline_cluster_id(body)
