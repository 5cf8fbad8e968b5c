"""Rich-based console dashboard for rollout reports."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from phased_rollout.domain.enums import RolloutStatus
from phased_rollout.domain.values import RolloutReport

_STATUS_STYLE: dict[RolloutStatus, str] = {
    RolloutStatus.INCLUDED: "green",
    RolloutStatus.PLANNED_ONLY: "cyan",
    RolloutStatus.BELOW_THRESHOLD: "yellow",
    RolloutStatus.NO_CANDIDATES: "yellow",
    RolloutStatus.OUTSIDE_WINDOW: "yellow",
    RolloutStatus.NO_TARGETS: "yellow",
    RolloutStatus.MISMATCH: "red",
    RolloutStatus.ERROR: "red",
}


def _pct(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.2f}%"


class ConsoleDashboard:
    """Console presentation of rollout reports.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    color:
        Disable to force plain output (e.g. when piping to a file).
    """

    def __init__(self, file: Any = None, color: bool = True) -> None:
        self._console = Console(
            file=file or sys.stdout,
            no_color=not color,
            highlight=False,
        )

    def print_report(self, report: RolloutReport) -> None:
        """Print a single report as a key/value table followed by its notes."""
        style = _STATUS_STYLE.get(report.status, "white")
        table = Table(
            title=f"Rollout: {report.deployment_id}",
            show_header=False,
            title_style="bold",
        )
        table.add_column("Field", style="bold")
        table.add_column("Value")

        table.add_row("Status", f"[{style}]{report.status.value}[/{style}]")
        table.add_row("Phase", report.phase.value)
        table.add_row("Target", report.target_collection_id or "-")
        table.add_row("Metric", report.metric.value if report.metric else "-")
        table.add_row(
            "Success",
            f"{report.success_count if report.success_count is not None else '-'}"
            f" / {report.target_count if report.target_count is not None else '-'}",
        )
        table.add_row("Percentage", _pct(report.percentage))
        table.add_row("Threshold", f"{report.threshold:g}%")
        table.add_row("Eligible", str(len(report.eligible)))
        table.add_row("Planned", ", ".join(report.planned_names) or "-")
        table.add_row("Included", ", ".join(report.included_names) or "-")
        if report.failed:
            table.add_row(
                "Failed",
                "[red]"
                + ", ".join(escape(f"{o.collection.name}: {o.error}") for o in report.failed)
                + "[/red]",
            )
        if report.dry_run:
            table.add_row("Mode", "dry run")

        self._console.print()
        self._console.print(table)
        for note in report.notes:
            self._console.print(f"  [dim]-[/dim] {escape(note)}")
        self._console.print()

    def print_history(self, reports: Sequence[RolloutReport]) -> None:
        """Print one row per report, oldest first."""
        if not reports:
            self._console.print("[no rollout history]", markup=False)
            return

        table = Table(title="Rollout History", header_style="bold cyan")
        table.add_column("#", justify="right")
        table.add_column("Deployment")
        table.add_column("Status")
        table.add_column("Percentage", justify="right")
        table.add_column("Included")

        for idx, report in enumerate(reports, start=1):
            style = _STATUS_STYLE.get(report.status, "white")
            table.add_row(
                str(idx),
                report.deployment_id,
                f"[{style}]{report.status.value}[/{style}]",
                _pct(report.percentage),
                ", ".join(report.included_names) or "-",
            )
        self._console.print(table)
