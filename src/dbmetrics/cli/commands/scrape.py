"""Command running metric collection cycles."""

import time

import typer

from dbmetrics.cli.common.context import AppContext, build_context
from dbmetrics.cli.common.exits import exit_from_exc
from dbmetrics.cli.common.options import (
    JsonOpt,
    OrgIdOpt,
    PageLimitOpt,
    ParallelOpt,
    ProfileOpt,
    SparkEndpointOpt,
    SparkPortOpt,
)
from dbmetrics.cli.common.output import out
from dbmetrics.core.errors import DbMetricsError
from dbmetrics.core.scraper import Scraper


def scrape(
    profile: str | None = ProfileOpt,
    limit: int | None = PageLimitOpt,
    spark_endpoint: str | None = SparkEndpointOpt,
    spark_port: int | None = SparkPortOpt,
    org_id: str | None = OrgIdOpt,
    parallel: int | None = ParallelOpt,
    interval: int = typer.Option(60, "--interval", "-i", help="Seconds between cycles"),
    count: int = typer.Option(1, "--count", help="Number of cycles; 0 runs until interrupted"),
    as_json: bool = JsonOpt,
):
    """
    Collect data points from the workspace and running clusters.

    Completed runs are tracked between cycles: the first cycle only records
    a watermark per job, later cycles report runs newer than it.
    """
    appctx: AppContext = build_context(
        profile,
        page_limit=limit,
        spark_endpoint=spark_endpoint,
        spark_ui_port=spark_port,
        org_id=org_id,
        max_parallel=parallel,
    )
    scraper = Scraper(
        appctx.workspace,
        appctx.require_spark(),
        max_parallel=appctx.settings.max_parallel,
    )

    cycle = 0
    while True:
        cycle += 1
        try:
            with out.status(f"Scraping (cycle {cycle})..."):
                points = scraper.scrape()
        except DbMetricsError as exc:
            exit_from_exc(exc, message=f"Scrape failed: {exc}")

        if as_json:
            out.datapoints_json(points)
        else:
            out.datapoints_table(points, title=f"Cycle {cycle}: {len(points)} data points")

        if count and cycle >= count:
            break
        time.sleep(interval)
