"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


def _fmt_ms(epoch_ms: int) -> str:
    return str(epoch_ms) if epoch_ms else ""


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def jobs_table(self, jobs: Iterable[Any], title: str = "Jobs") -> None:
        """
        Expects objects with .id .name .creator (like dbmetrics.core.models.Job)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Job ID", style="ok", no_wrap=True)
        t.add_column("Name")
        t.add_column("Creator", style="meta")

        for j in jobs:
            t.add_row(str(j.id), j.name, j.creator or "")

        console.print(t)

    def runs_table(self, runs: Iterable[Any], title: str = "Runs") -> None:
        """
        Expects JobRun-like objects (.job_id .run_id .start_time .result_state ...)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Job ID", style="ok", no_wrap=True)
        t.add_column("Run ID", style="ok", no_wrap=True)
        t.add_column("Start (ms)", style="meta")
        t.add_column("State")
        t.add_column("Duration (ms)", justify="right")

        for r in runs:
            state = r.result_state or r.life_cycle_state or ""
            style = "ok" if state in ("SUCCESS", "RUNNING") else "err" if state else "meta"
            t.add_row(
                str(r.job_id),
                str(r.run_id),
                _fmt_ms(r.start_time),
                f"[{style}]{state}[/{style}]",
                str(r.duration_ms or ""),
            )

        console.print(t)

    def clusters_table(self, clusters: Iterable[Any], title: str = "Clusters") -> None:
        t = Table(title=title, show_lines=False)
        t.add_column("Cluster ID", style="ok", no_wrap=True)
        t.add_column("Name")
        t.add_column("State", style="meta")

        for c in clusters:
            t.add_row(c.id, c.name, c.state)

        console.print(t)

    def pipelines_table(self, pipelines: Iterable[Any], title: str = "Pipelines") -> None:
        t = Table(title=title, show_lines=False)
        t.add_column("Pipeline ID", style="ok", no_wrap=True)
        t.add_column("Name")
        t.add_column("Cluster ID", style="meta")

        for p in pipelines:
            t.add_row(p.id, p.name, p.cluster_id)

        console.print(t)

    def by_app_table(
        self,
        by_app: Mapping[Any, Iterable[Any]],
        columns: list[tuple[str, str]],
        title: str,
    ) -> None:
        """
        Render per-application records.

        Args:
            by_app: Mapping of Application to its records.
            columns: (header, attribute) pairs read from each record.
            title: Table title.
        """
        t = Table(title=title, show_lines=False)
        t.add_column("App ID", style="ok", no_wrap=True)
        for header, _ in columns:
            t.add_column(header, justify="right" if header != "Name" else "left")

        for app, records in by_app.items():
            for rec in records:
                t.add_row(app.id, *(str(getattr(rec, attr, "")) for _, attr in columns))

        console.print(t)

    def cluster_metrics_table(self, metrics: Any, title: str = "Driver metrics") -> None:
        """Expects a ClusterMetrics (gauges and counters mappings)."""
        t = Table(title=title, show_lines=False)
        t.add_column("Metric", style="ok")
        t.add_column("Kind", style="meta")
        t.add_column("Value", justify="right")

        for name, value in sorted(metrics.gauges.items()):
            t.add_row(name, "gauge", f"{value:g}")
        for name, count in sorted(metrics.counters.items()):
            t.add_row(name, "counter", str(count))

        console.print(t)

    def datapoints_table(self, points: Iterable[Any], title: str = "Data points") -> None:
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok")
        t.add_column("Value", justify="right")
        t.add_column("Attributes", style="meta")

        for p in points:
            attrs = ", ".join(f"{k}={v}" for k, v in p.attributes.items())
            t.add_row(p.name, f"{p.value:g}", attrs)

        console.print(t)

    def datapoints_json(self, points: Iterable[Any]) -> None:
        """Print one JSON object per data point, unstyled."""
        for p in points:
            line = json.dumps(
                {
                    "name": p.name,
                    "value": p.value,
                    "timestamp_ns": p.timestamp_ns,
                    "attributes": dict(p.attributes),
                },
                sort_keys=True,
            )
            console.print(line, markup=False, highlight=False, soft_wrap=True)


out = Out()
