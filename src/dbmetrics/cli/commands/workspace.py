"""Commands for querying the Databricks workspace API."""

import typer

from dbmetrics.cli.common.context import AppContext, build_context
from dbmetrics.cli.common.exits import exit_from_exc, warn_exit
from dbmetrics.cli.common.options import PageLimitOpt, ProfileOpt
from dbmetrics.cli.common.output import out
from dbmetrics.core.errors import DbMetricsError

app = typer.Typer(
    help="Jobs, job runs, clusters and pipelines of a workspace.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    profile: str | None = ProfileOpt,
    limit: int | None = PageLimitOpt,
):
    """Initialize workspace context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_context(profile, page_limit=limit)


@app.command()
def jobs(ctx: typer.Context):
    """List all jobs."""
    appctx: AppContext = ctx.obj
    try:
        with out.status("Loading jobs..."):
            found = appctx.workspace.jobs()
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not found:
        warn_exit("No jobs found", code=0)
    out.jobs_table(found, title=f"Jobs ({len(found)})")


@app.command("active-runs")
def active_runs(ctx: typer.Context):
    """List currently active job runs."""
    appctx: AppContext = ctx.obj
    try:
        with out.status("Loading active runs..."):
            runs = appctx.workspace.active_job_runs()
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not runs:
        warn_exit("No active runs", code=0)
    out.runs_table(runs, title=f"Active runs ({len(runs)})")


@app.command("completed-runs")
def completed_runs(
    ctx: typer.Context,
    job_id: int = typer.Option(..., "--job-id", "-j", help="Job whose completed runs are listed"),
    since: int = typer.Option(
        0,
        "--since",
        help="Start time watermark in epoch ms; 0 fetches the newest page only",
    ),
):
    """List completed runs of a job, newest first, back to a start time."""
    appctx: AppContext = ctx.obj
    try:
        with out.status(f"Loading completed runs for job {job_id}..."):
            runs = appctx.workspace.completed_job_runs(job_id, since)
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not runs:
        warn_exit("No completed runs", code=0)
    out.runs_table(runs, title=f"Completed runs of job {job_id} ({len(runs)})")


@app.command()
def clusters(ctx: typer.Context):
    """List running clusters."""
    appctx: AppContext = ctx.obj
    try:
        with out.status("Loading clusters..."):
            running = appctx.workspace.running_clusters()
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not running:
        warn_exit("No running clusters", code=0)
    out.clusters_table(running, title="Running clusters")


@app.command()
def pipelines(ctx: typer.Context):
    """List running pipelines and the clusters they run on."""
    appctx: AppContext = ctx.obj
    try:
        with out.status("Loading pipelines..."):
            running = appctx.workspace.running_pipelines()
    except DbMetricsError as exc:
        exit_from_exc(exc)

    if not running:
        warn_exit("No running pipelines", code=0)
    out.pipelines_table(running, title="Running pipelines")
