#!/usr/bin/env python3
"""Example 01: Walk a deployment through its waves.

Demonstrates:
- Building the rollout graph with ``RolloutBuilder``
- Re-running it against the same management plane (one wave per run)
- Recording every report in a ``RolloutAuditTrail`` through the event bus

Run:
    PYTHONPATH=src python examples/01_wave_rollout.py
"""

from __future__ import annotations

import datetime

from phased_rollout.graph import RolloutBuilder
from phased_rollout.infrastructure import EventBus
from phased_rollout.presentation import ConsoleDashboard
from phased_rollout.services import RolloutAuditTrail
from phased_rollout.testing import MASTER_ID, fixed_clock, sample_inventory


def main() -> None:
    plane = sample_inventory(success=93, targeted=100)
    bus = EventBus()
    trail = RolloutAuditTrail()
    bus.subscribe_all(trail.on_event)

    app, initial_state = (
        RolloutBuilder("Contoso Agent 5.2")
        .with_client(plane)
        .with_clock(fixed_clock(datetime.datetime(2026, 10, 19, 10, 0)))
        .with_event_bus(bus)
        .with_target(MASTER_ID)
        .with_threshold(90)
        .with_candidates("Wave-*")
        .excluding(patterns=["*VIP*"])
        .build()
    )

    print("=== Phased rollout: one wave per run ===")
    for run in range(1, 5):
        report = app.invoke(initial_state)["report"]
        print(f"run {run}: {report.status.value:<14} included={report.included_names}")

    print()
    print(f"Included over all runs: {trail.included_collection_ids()}")
    ConsoleDashboard().print_history(trail.entries)


if __name__ == "__main__":
    main()
