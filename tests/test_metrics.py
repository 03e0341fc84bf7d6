from dbmetrics.core.metrics import (
    MetricsBuilder,
    record_cluster_metrics,
    record_executor_metrics,
    record_job_metrics,
    record_pipeline_metrics,
    record_run_metrics,
    record_spark_job_metrics,
    record_stage_metrics,
)
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


def test_builder_stamps_points_and_resets_on_emit():
    builder = MetricsBuilder(now_ns=123)
    builder.record("databricks.jobs.total", 2)

    points = builder.emit()

    assert len(points) == 1
    assert points[0].timestamp_ns == 123
    assert builder.emit() == []


def test_job_and_run_metrics():
    builder = MetricsBuilder(now_ns=1)
    record_job_metrics(builder, [Job(1), Job(2)], [JobRun(run_id=9, job_id=1)])
    record_run_metrics(
        builder,
        1,
        [JobRun(run_id=10, job_id=1, start_time=100, end_time=600, result_state="FAILED")],
    )

    by_name = {p.name: p for p in builder.emit()}

    assert by_name["databricks.jobs.total"].value == 2
    assert by_name["databricks.jobs.active.total"].value == 1
    duration = by_name["databricks.jobs.run.duration"]
    assert duration.value == 500
    assert duration.attributes == {"job_id": 1, "run_id": 10, "result_state": "FAILED"}


def test_executor_metrics_tagged_with_cluster_app_and_executor():
    builder = MetricsBuilder(now_ns=1)
    record_executor_metrics(
        builder,
        "c1",
        {
            Application("app1"): [ExecutorInfo(id="driver", memory_used=64)],
            Application("app2"): [ExecutorInfo(id="3", memory_used=32)],
        },
    )

    used = [p for p in builder.emit() if p.name == "databricks.spark.executor.memory_used"]

    assert {(p.attributes["app_id"], p.attributes["executor_id"], p.value) for p in used} == {
        ("app1", "driver", 64),
        ("app2", "3", 32),
    }
    assert all(p.attributes["cluster_id"] == "c1" for p in used)


def test_stage_metrics_count():
    builder = MetricsBuilder(now_ns=1)
    record_stage_metrics(builder, "c1", {Application("a"): [StageInfo(stage_id=1), StageInfo(stage_id=2)]})

    points = builder.emit()

    assert len(points) == 2 * 7
    assert {p.attributes["stage_id"] for p in points} == {1, 2}


def test_pipeline_metrics():
    builder = MetricsBuilder(now_ns=1)
    record_pipeline_metrics(builder, [PipelineSummary("p1", "ingest", "c1")])

    points = builder.emit()

    assert points[0].name == "databricks.pipelines.running.total"
    assert points[1].attributes == {"pipeline_id": "p1", "pipeline_name": "ingest", "cluster_id": "c1"}


def test_spark_job_metrics_tagged_with_cluster_app_and_job():
    builder = MetricsBuilder(now_ns=1)
    record_spark_job_metrics(
        builder,
        "c1",
        {
            Application("app1"): [
                SparkJobInfo(job_id=4, num_tasks=10, num_completed_tasks=7, num_failed_stages=1)
            ],
        },
    )

    by_name = {p.name: p for p in builder.emit()}

    assert len(by_name) == 9
    assert by_name["databricks.spark.job.num_tasks"].value == 10
    assert by_name["databricks.spark.job.num_completed_tasks"].value == 7
    assert by_name["databricks.spark.job.num_failed_stages"].value == 1
    assert by_name["databricks.spark.job.num_active_tasks"].value == 0
    assert all(
        p.attributes == {"cluster_id": "c1", "app_id": "app1", "spark_job_id": 4}
        for p in by_name.values()
    )


def test_cluster_metrics_record_gauges_and_counters_by_source_name():
    builder = MetricsBuilder(now_ns=1)
    record_cluster_metrics(
        builder,
        {
            Cluster("c1", "etl", "RUNNING"): ClusterMetrics(
                gauges={"jvm.heap.used": 512.0},
                counters={"HiveExternalCatalog.fileCacheHits": 3},
            ),
        },
    )

    points = builder.emit()

    assert [(p.name, p.value, p.attributes) for p in points] == [
        ("databricks.spark.driver.gauge", 512.0, {"cluster_id": "c1", "metric": "jvm.heap.used"}),
        (
            "databricks.spark.driver.counter",
            3,
            {"cluster_id": "c1", "metric": "HiveExternalCatalog.fileCacheHits"},
        ),
    ]
