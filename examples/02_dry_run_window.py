#!/usr/bin/env python3
"""Example 02: Dry run inside a maintenance window.

Demonstrates:
- Loading ``RolloutConfig`` from YAML and an inventory from JSON/YAML
- A time window evaluated in the window's own timezone
- ``dry_run`` producing a ``planned_only`` report without mutations

Run:
    PYTHONPATH=src python examples/02_dry_run_window.py
"""

from __future__ import annotations

import dataclasses
import datetime
from pathlib import Path

from phased_rollout.graph import run_rollout
from phased_rollout.infrastructure import InMemoryManagementPlane, load_config
from phased_rollout.presentation import ConsoleDashboard
from phased_rollout.testing import fixed_clock

DATA = Path(__file__).parent / "data"


def main() -> None:
    config = load_config(DATA / "rollout.yaml")
    plane = InMemoryManagementPlane.load(DATA / "site.yaml")
    dashboard = ConsoleDashboard()

    # Saturday: the window only allows Monday to Thursday.
    saturday = fixed_clock(datetime.datetime(2026, 10, 17, 12, 0))
    dashboard.print_report(run_rollout(config, plane, clock=saturday))

    # Monday 07:30 UTC is 09:30 in Oslo.
    monday = fixed_clock(datetime.datetime(2026, 10, 19, 7, 30))
    dry = dataclasses.replace(config, dry_run=True)
    report = run_rollout(dry, plane, clock=monday)
    dashboard.print_report(report)
    print(f"Include rule calls made: {len(plane.mutation_calls())}")


if __name__ == "__main__":
    main()
