"""Common CLI options for the CLI."""

import typer

ProfileOpt = typer.Option(
    None,
    "--profile",
    "-p",
    help="Databricks CLI profile (from ~/.databrickscfg)",
)

PageLimitOpt = typer.Option(
    None,
    "--limit",
    help="Page size for paginated workspace calls [env: DBMETRICS_PAGE_LIMIT]",
    show_default=False,
)

ClusterIdOpt = typer.Option(
    ...,
    "--cluster-id",
    "-c",
    help="Cluster whose Spark driver is queried",
)

SparkEndpointOpt = typer.Option(
    None,
    "--spark-endpoint",
    help="Spark driver proxy base URL (defaults to the workspace host) [env: DBMETRICS_SPARK_ENDPOINT]",
    show_default=False,
)

SparkPortOpt = typer.Option(
    None,
    "--spark-port",
    help="Spark UI port on the driver [env: DBMETRICS_SPARK_UI_PORT]",
    show_default=False,
)

OrgIdOpt = typer.Option(
    None,
    "--org-id",
    help="Workspace org id (derived from the host when possible) [env: DBMETRICS_ORG_ID]",
    show_default=False,
)

ParallelOpt = typer.Option(
    None,
    "--parallel",
    "-n",
    help="Number of clusters fetched in parallel [env: DBMETRICS_MAX_PARALLEL]",
    show_default=False,
)

JsonOpt = typer.Option(
    False,
    "--json",
    help="Print data points as JSON lines instead of a table",
)
