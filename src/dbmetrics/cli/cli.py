"""CLI application for Databricks metrics collection."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from dbmetrics.cli.commands.scrape import scrape
from dbmetrics.cli.commands.spark import app as spark_app
from dbmetrics.cli.commands.workspace import app as workspace_app

app = typer.Typer(
    help="dbmetrics - Databricks workspace and Spark metrics collector",
    no_args_is_help=True,
)


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP requests and pages"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app.add_typer(workspace_app, name="workspace", help="Query jobs, runs, clusters and pipelines.")
app.add_typer(spark_app, name="spark", help="Query Spark drivers of running clusters.")
app.command()(scrape)


if __name__ == "__main__":
    app()
