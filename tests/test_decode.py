import json

import pytest

from dbmetrics.core import decode
from dbmetrics.core.errors import DecodeError


def _body(obj) -> bytes:
    return json.dumps(obj).encode()


def test_decode_runs_page_reads_state_and_has_more():
    page = decode.decode_runs_page(
        _body(
            {
                "runs": [
                    {
                        "job_id": 7,
                        "run_id": 70,
                        "start_time": 1000,
                        "end_time": 4000,
                        "state": {"life_cycle_state": "TERMINATED", "result_state": "SUCCESS"},
                    }
                ],
                "has_more": True,
            }
        )
    )

    assert page.has_more is True
    run = page.items[0]
    assert (run.job_id, run.run_id, run.start_time) == (7, 70, 1000)
    assert run.result_state == "SUCCESS"
    assert run.duration_ms == 3000


def test_decode_runs_page_missing_runs_is_empty_page():
    page = decode.decode_runs_page(_body({"has_more": False}))

    assert page.items == []
    assert page.has_more is False


def test_decode_jobs_page_takes_name_from_settings():
    page = decode.decode_jobs_page(
        _body({"jobs": [{"job_id": 3, "settings": {"name": "etl"}, "creator_user_name": "me"}]})
    )

    assert page.items[0].id == 3
    assert page.items[0].name == "etl"
    assert page.items[0].creator == "me"
    assert page.has_more is False


def test_decode_clusters_and_pipelines():
    clusters = decode.decode_clusters(
        _body({"clusters": [{"cluster_id": "c1", "cluster_name": "main", "state": "RUNNING"}]})
    )
    statuses = decode.decode_pipeline_statuses(
        _body({"statuses": [{"pipeline_id": "p1", "name": "ingest", "state": "RUNNING"}]})
    )

    assert clusters[0].id == "c1"
    assert clusters[0].is_running
    assert statuses[0].id == "p1"
    assert decode.decode_pipeline_cluster_id(_body({"pipeline_id": "p1", "cluster_id": "c1"})) == "c1"


def test_decode_spark_records():
    apps = decode.decode_applications(_body([{"id": "app-1", "name": "Databricks Shell"}]))
    executors = decode.decode_executors(
        _body([{"id": "driver", "memoryUsed": 10, "maxMemory": 100, "totalShuffleRead": 5}])
    )
    jobs = decode.decode_spark_jobs(_body([{"jobId": 2, "numTasks": 8, "numFailedTasks": 1}]))
    stages = decode.decode_stages(_body([{"stageId": 4, "inputBytes": 512, "diskBytesSpilled": 9}]))

    assert apps[0].id == "app-1"
    assert executors[0].memory_used == 10
    assert executors[0].total_shuffle_read == 5
    assert jobs[0].num_failed_tasks == 1
    assert stages[0].input_bytes == 512
    assert stages[0].disk_bytes_spilled == 9


def test_decode_cluster_metrics_keeps_numeric_values_only():
    cm = decode.decode_cluster_metrics(
        _body(
            {
                "gauges": {
                    "app.driver.BlockManager.memory.memUsed_MB": {"value": 12},
                    "app.driver.name": {"value": "x"},
                },
                "counters": {"app.driver.HiveExternalCatalog.fileCacheHits": {"count": 3}},
            }
        )
    )

    assert cm.gauges == {"app.driver.BlockManager.memory.memUsed_MB": 12.0}
    assert cm.counters == {"app.driver.HiveExternalCatalog.fileCacheHits": 3}


@pytest.mark.parametrize(
    "fn, body",
    [
        (decode.decode_runs_page, b"not json"),
        (decode.decode_runs_page, b"[]"),
        (decode.decode_applications, b"{}"),
        (decode.decode_executors, b'[{"memoryUsed": 1}]'),
        (decode.decode_clusters, b'{"clusters": {"cluster_id": "c1"}}'),
    ],
)
def test_decode_rejects_malformed_bodies(fn, body: bytes):
    with pytest.raises(DecodeError):
        fn(body)
