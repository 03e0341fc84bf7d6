"""Commands for querying the Spark driver of a running cluster."""

import typer

from dbmetrics.cli.common.context import AppContext, build_context
from dbmetrics.cli.common.exits import exit_from_exc, warn_exit
from dbmetrics.cli.common.options import (
    ClusterIdOpt,
    OrgIdOpt,
    ProfileOpt,
    SparkEndpointOpt,
    SparkPortOpt,
)
from dbmetrics.cli.common.output import out
from dbmetrics.core.errors import DbMetricsError

app = typer.Typer(
    help="Spark applications, executors, jobs and stages of a cluster.",
    no_args_is_help=False,
    invoke_without_command=True,
)

_EXECUTOR_COLUMNS = [
    ("Executor", "id"),
    ("Memory used", "memory_used"),
    ("Max memory", "max_memory"),
    ("Disk used", "disk_used"),
    ("Input bytes", "total_input_bytes"),
    ("Shuffle read", "total_shuffle_read"),
    ("Shuffle write", "total_shuffle_write"),
]

_JOB_COLUMNS = [
    ("Job", "job_id"),
    ("Status", "status"),
    ("Tasks", "num_tasks"),
    ("Active", "num_active_tasks"),
    ("Completed", "num_completed_tasks"),
    ("Failed", "num_failed_tasks"),
    ("Stages done", "num_completed_stages"),
]

_STAGE_COLUMNS = [
    ("Stage", "stage_id"),
    ("Status", "status"),
    ("Run time", "executor_run_time"),
    ("Input bytes", "input_bytes"),
    ("Output bytes", "output_bytes"),
    ("Mem spilled", "memory_bytes_spilled"),
    ("Disk spilled", "disk_bytes_spilled"),
]


@app.callback()
def _init(
    ctx: typer.Context,
    profile: str | None = ProfileOpt,
    spark_endpoint: str | None = SparkEndpointOpt,
    spark_port: int | None = SparkPortOpt,
    org_id: str | None = OrgIdOpt,
):
    """Initialize Spark context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_context(
        profile,
        spark_endpoint=spark_endpoint,
        spark_ui_port=spark_port,
        org_id=org_id,
    )


@app.command()
def executors(ctx: typer.Context, cluster_id: str = ClusterIdOpt):
    """Show executors of every application on a cluster."""
    appctx: AppContext = ctx.obj
    spark = appctx.require_spark()
    try:
        with out.status("Loading executors..."):
            by_app = spark.executors_by_app(cluster_id)
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not by_app:
        warn_exit("No Spark applications on this cluster", code=0)
    out.by_app_table(by_app, _EXECUTOR_COLUMNS, title=f"Executors on {cluster_id}")


@app.command()
def jobs(ctx: typer.Context, cluster_id: str = ClusterIdOpt):
    """Show Spark jobs of every application on a cluster."""
    appctx: AppContext = ctx.obj
    spark = appctx.require_spark()
    try:
        with out.status("Loading Spark jobs..."):
            by_app = spark.jobs_by_app(cluster_id)
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not by_app:
        warn_exit("No Spark applications on this cluster", code=0)
    out.by_app_table(by_app, _JOB_COLUMNS, title=f"Spark jobs on {cluster_id}")


@app.command()
def stages(ctx: typer.Context, cluster_id: str = ClusterIdOpt):
    """Show stages of every application on a cluster."""
    appctx: AppContext = ctx.obj
    spark = appctx.require_spark()
    try:
        with out.status("Loading stages..."):
            by_app = spark.stages_by_app(cluster_id)
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not by_app:
        warn_exit("No Spark applications on this cluster", code=0)
    out.by_app_table(by_app, _STAGE_COLUMNS, title=f"Stages on {cluster_id}")


@app.command()
def metrics(ctx: typer.Context, cluster_id: str = ClusterIdOpt):
    """Show the driver metrics registry of a cluster."""
    appctx: AppContext = ctx.obj
    spark = appctx.require_spark()
    try:
        with out.status("Loading driver metrics..."):
            cm = spark.core_metrics_for_cluster(cluster_id)
    except DbMetricsError as exc:
        exit_from_exc(exc)

    out.cluster_metrics_table(cm, title=f"Driver metrics of {cluster_id}")
