"""Integration tests for the full rollout graph."""

from __future__ import annotations

import datetime

import pytest

from phased_rollout.domain.enums import RolloutPhase, RolloutStatus, SuccessMetric
from phased_rollout.domain.events import (
    CollectionIncluded,
    RolloutCompleted,
    RolloutHalted,
    RolloutStarted,
)
from phased_rollout.domain.values import TimeWindow
from phased_rollout.graph.graph import build_rollout_graph
from phased_rollout.graph.runner import make_initial_state, run_rollout
from phased_rollout.infrastructure.client import InMemoryManagementPlane
from phased_rollout.services.window import fixed_clock
from phased_rollout.testing.fixtures import MASTER_ID, sample_inventory

UTC = datetime.timezone.utc


class TestBuildRolloutGraph:

    def test_graph_compiles(self, inventory) -> None:
        assert build_rollout_graph(inventory) is not None

    def test_graph_with_checkpointer(self, inventory) -> None:
        from langgraph.checkpoint.memory import MemorySaver

        assert build_rollout_graph(inventory, checkpointer=MemorySaver()) is not None

    def test_invoke_returns_report(self, config, inventory, clock) -> None:
        app = build_rollout_graph(inventory, clock=clock)
        result = app.invoke(make_initial_state(config, {"run": 1}))
        assert result["phase"] is RolloutPhase.DONE
        assert result["report"].status is RolloutStatus.INCLUDED
        assert result["report"].metadata == {"run": 1}


# ===================================================================== #
#  Happy path and idempotence                                            #
# ===================================================================== #


class TestIncludedPath:

    def test_first_wave(self, config, inventory, clock) -> None:
        report = run_rollout(config, inventory, clock=clock)
        assert report.status is RolloutStatus.INCLUDED
        assert report.phase is RolloutPhase.MUTATION
        assert report.percentage == 92.0
        assert report.metric is SuccessMetric.SUCCESS
        assert report.target_collection_id == MASTER_ID
        assert [c.name for c in report.eligible] == ["Wave-01", "Wave-02", "Wave-03"]
        assert report.planned_names == ["Wave-01"]
        assert report.included_names == ["Wave-01"]
        assert inventory.mutation_calls() == [(MASTER_ID, "PS100011")]
        assert report.notes == (
            f"deployment 16777220 targets Contoso Agent - Rollout ({MASTER_ID}); metric success",
            "4 candidate(s): 3 eligible, 0 already included, 1 excluded",
            "planned: Wave-01",
        )

    def test_next_wave_after_wave_01(self, config, clock) -> None:
        plane = sample_inventory(included=["PS100011"])
        report = run_rollout(config, plane, clock=clock)
        assert report.planned_names == ["Wave-02"]

    def test_repeated_runs_walk_the_waves(self, config, inventory, clock) -> None:
        included: list[str] = []
        for _ in range(3):
            report = run_rollout(config, inventory, clock=clock)
            assert report.status is RolloutStatus.INCLUDED
            included.extend(report.included_names)
        assert included == ["Wave-01", "Wave-02", "Wave-03"]

        final = run_rollout(config, inventory, clock=clock)
        assert final.status is RolloutStatus.NO_CANDIDATES
        assert not final.mutated
        assert len(inventory.mutation_calls()) == 3

    def test_already_included_never_planned(self, configure, clock) -> None:
        plane = sample_inventory(included=["PS100011", "PS100013"])
        report = run_rollout(configure(max_per_run=5), plane, clock=clock)
        assert report.planned_names == ["Wave-02"]

    @pytest.mark.parametrize("max_per_run, expected", [(1, 1), (2, 2), (10, 3)])
    def test_max_per_run_bounds_selection(self, configure, inventory, clock, max_per_run, expected) -> None:
        report = run_rollout(configure(max_per_run=max_per_run), inventory, clock=clock)
        assert len(report.planned) == expected
        assert list(report.planned) == list(report.eligible[:expected])

    def test_exclusion_by_id(self, configure, inventory, clock) -> None:
        cfg = configure(exclusions={"collection_ids": ["PS100011"], "name_patterns": ["*VIP*"]})
        report = run_rollout(cfg, inventory, clock=clock)
        assert report.planned_names == ["Wave-02"]

    def test_without_exclusions_vip_is_eligible(self, configure, inventory, clock) -> None:
        report = run_rollout(configure(exclusions=None, max_per_run=10), inventory, clock=clock)
        assert "Wave-VIP" in report.planned_names

    def test_lookup_by_deployment_id(self, configure, inventory, clock) -> None:
        report = run_rollout(configure(deployment="16777220"), inventory, clock=clock)
        assert report.status is RolloutStatus.INCLUDED

    def test_auto_metric_prefers_compliant(self, config, clock) -> None:
        data = sample_inventory().to_dict()
        data["deployments"][0]["NumberCompliant"] = 95
        data["deployments"][0]["NumberSuccess"] = 50
        report = run_rollout(config, InMemoryManagementPlane.from_dict(data), clock=clock)
        assert report.metric is SuccessMetric.COMPLIANT
        assert report.percentage == 95.0
        assert report.status is RolloutStatus.INCLUDED


# ===================================================================== #
#  Gates                                                                 #
# ===================================================================== #


class TestGates:

    def test_below_threshold_plans_nothing(self, config, clock) -> None:
        plane = sample_inventory(success=80)
        report = run_rollout(config, plane, clock=clock)
        assert report.status is RolloutStatus.BELOW_THRESHOLD
        assert report.phase is RolloutPhase.PERCENT_CHECK
        assert report.percentage == 80.0
        assert report.planned == ()
        assert plane.mutation_calls() == []
        assert not any(op == "list_collections" for op, _ in plane.calls)
        assert report.notes[-1] == "success 80.00% is below threshold 90%"

    def test_no_targets_without_fallback(self, config, clock) -> None:
        plane = sample_inventory(success=0, targeted=0)
        report = run_rollout(config, plane, clock=clock)
        assert report.status is RolloutStatus.NO_TARGETS
        assert report.percentage is None
        assert plane.mutation_calls() == []

    def test_missing_counters_count_as_no_targets(self, config, clock) -> None:
        plane = sample_inventory(success=None, targeted=None)
        report = run_rollout(config, plane, clock=clock)
        assert report.status is RolloutStatus.NO_TARGETS

    def test_fallback_uses_live_member_count(self, configure, clock) -> None:
        plane = sample_inventory(success=95, targeted=0, master_members=100)
        report = run_rollout(configure(use_member_count_fallback=True), plane, clock=clock)
        assert report.status is RolloutStatus.INCLUDED
        assert report.target_count == 100
        assert report.percentage == 95.0
        assert any("live member count 100" in n for n in report.notes)

    def test_fallback_with_empty_collection(self, configure, clock) -> None:
        plane = sample_inventory(success=0, targeted=0, master_members=0)
        report = run_rollout(configure(use_member_count_fallback=True), plane, clock=clock)
        assert report.status is RolloutStatus.NO_TARGETS

    def test_outside_window_makes_no_calls(self, configure, clock) -> None:
        plane = sample_inventory()
        cfg = configure(window=TimeWindow(days=frozenset({"sat"}), start_hour=0, end_hour=24))
        report = run_rollout(cfg, plane, clock=clock)
        assert report.status is RolloutStatus.OUTSIDE_WINDOW
        assert report.phase is RolloutPhase.WINDOW_CHECK
        assert plane.calls == []

    def test_inside_window_in_local_time(self, configure) -> None:
        # 06:30 UTC on a Monday is 08:30 in Oslo.
        clock = fixed_clock(datetime.datetime(2026, 10, 19, 6, 30, tzinfo=UTC))
        cfg = configure(
            window=TimeWindow(days=frozenset({"mon"}), start_hour=8, end_hour=17, timezone="Europe/Oslo")
        )
        report = run_rollout(cfg, sample_inventory(), clock=clock)
        assert report.status is RolloutStatus.INCLUDED

    def test_stale_summary_is_noted(self, configure, clock) -> None:
        report = run_rollout(configure(max_summary_age_minutes=60), sample_inventory(), clock=clock)
        assert report.status is RolloutStatus.INCLUDED
        assert "deployment summary is 240 minutes old (limit 60)" in report.notes

    def test_naive_clock_reads_as_utc(self, configure) -> None:
        report = run_rollout(
            configure(max_summary_age_minutes=60),
            sample_inventory(),
            clock=lambda: datetime.datetime(2026, 10, 19, 10, 0),
        )
        assert report.status is RolloutStatus.INCLUDED
        assert "deployment summary is 240 minutes old (limit 60)" in report.notes

    def test_fresh_summary_has_no_note(self, configure, clock) -> None:
        report = run_rollout(configure(max_summary_age_minutes=600), sample_inventory(), clock=clock)
        assert not any("minutes old" in n for n in report.notes)


# ===================================================================== #
#  Dry run                                                               #
# ===================================================================== #


class TestDryRun:

    def test_planned_only(self, configure, inventory, clock) -> None:
        report = run_rollout(configure(dry_run=True, max_per_run=2), inventory, clock=clock)
        assert report.status is RolloutStatus.PLANNED_ONLY
        assert report.phase is RolloutPhase.SELECTION
        assert report.dry_run
        assert report.planned_names == ["Wave-01", "Wave-02"]
        assert report.included == ()
        assert inventory.mutation_calls() == []

    def test_dry_run_is_repeatable(self, configure, inventory, clock) -> None:
        cfg = configure(dry_run=True)
        first = run_rollout(cfg, inventory, clock=clock)
        second = run_rollout(cfg, inventory, clock=clock)
        assert first.planned_names == second.planned_names == ["Wave-01"]


# ===================================================================== #
#  Failures                                                              #
# ===================================================================== #


class TestFailures:

    def test_partial_inclusion_failure(self, configure, clock) -> None:
        plane = sample_inventory(failing_collections=["PS100011"])
        report = run_rollout(configure(max_per_run=2), plane, clock=clock)
        assert report.status is RolloutStatus.INCLUDED
        assert report.included_names == ["Wave-02"]
        assert [o.collection.name for o in report.failed] == ["Wave-01"]
        assert plane.mutation_calls() == [(MASTER_ID, "PS100011"), (MASTER_ID, "PS100012")]
        assert report.notes[-1] == (
            "failed to include Wave-01: Include rule for PS100011 rejected by server"
        )

    def test_failed_wave_is_retried_next_run(self, configure, clock) -> None:
        plane = sample_inventory(failing_collections=["PS100011"])
        run_rollout(configure(max_per_run=2), plane, clock=clock)
        plane.failing_collections.clear()
        report = run_rollout(configure(max_per_run=2), plane, clock=clock)
        assert report.included_names == ["Wave-01", "Wave-03"]

    def test_all_inclusions_fail(self, config, clock) -> None:
        plane = sample_inventory(failing_collections=["PS100011"])
        report = run_rollout(config, plane, clock=clock)
        assert report.status is RolloutStatus.INCLUDED
        assert not report.mutated
        assert len(report.failed) == 1

    def test_mismatch(self, configure, inventory, clock) -> None:
        report = run_rollout(configure(target_collection_id="PS999999"), inventory, clock=clock)
        assert report.status is RolloutStatus.MISMATCH
        assert report.phase is RolloutPhase.TARGET_CHECK
        assert report.notes[-1] == "Deployment targets collection 'PS100001', expected 'PS999999'"
        assert inventory.mutation_calls() == []

    def test_deployment_not_found(self, configure, inventory, clock) -> None:
        report = run_rollout(configure(deployment="Fabrikam Viewer"), inventory, clock=clock)
        assert report.status is RolloutStatus.ERROR
        assert report.notes[-1] == "Deployment not found: 'Fabrikam Viewer'"

    def test_ambiguous_deployment(self, configure, clock) -> None:
        data = sample_inventory().to_dict()
        data["deployments"].append(
            {"DeploymentID": "16777221", "SoftwareName": "Contoso Agent 5.3", "CollectionID": MASTER_ID}
        )
        plane = InMemoryManagementPlane.from_dict(data)
        report = run_rollout(configure(deployment="Contoso Agent*"), plane, clock=clock)
        assert report.status is RolloutStatus.ERROR
        assert "ambiguous" in report.notes[-1]

    @pytest.mark.parametrize(
        "operation, phase",
        [
            ("find_deployments", RolloutPhase.TARGET_CHECK),
            ("get_collection", RolloutPhase.TARGET_CHECK),
            ("list_collections", RolloutPhase.CANDIDATE_FILTER),
            ("list_included_collection_ids", RolloutPhase.CANDIDATE_FILTER),
        ],
    )
    def test_lookup_failures_become_error(self, config, clock, operation, phase) -> None:
        plane = sample_inventory(failing_operations=[operation])
        report = run_rollout(config, plane, clock=clock)
        assert report.status is RolloutStatus.ERROR
        assert report.phase is phase
        assert f"{operation} is unavailable" in report.notes[-1]
        assert plane.mutation_calls() == []

    def test_invalid_config_raises_before_any_call(self, configure, inventory, clock) -> None:
        with pytest.raises(ValueError):
            run_rollout(configure(success_threshold=0), inventory, clock=clock)
        assert inventory.calls == []


# ===================================================================== #
#  Events and logging                                                    #
# ===================================================================== #


class TestEventsAndLog:

    def test_included_events(self, config, inventory, clock, event_bus, recorded_events) -> None:
        report = run_rollout(config, inventory, clock=clock, event_bus=event_bus)
        assert [type(e) for e in recorded_events] == [
            RolloutStarted, CollectionIncluded, RolloutCompleted,
        ]
        assert recorded_events[-1].report is report

    def test_halted_events(self, config, clock, event_bus, recorded_events) -> None:
        run_rollout(config, sample_inventory(success=10), clock=clock, event_bus=event_bus)
        assert [type(e) for e in recorded_events] == [
            RolloutStarted, RolloutHalted, RolloutCompleted,
        ]
        assert recorded_events[1].status is RolloutStatus.BELOW_THRESHOLD

    def test_run_log_file(self, configure, inventory, clock, tmp_path) -> None:
        path = tmp_path / "rollout.log"
        run_rollout(configure(log_path=str(path)), inventory, clock=clock)
        text = path.read_text(encoding="utf-8")
        assert "[INFO] Evaluating rollout for Contoso Agent 5.2" in text
        assert "[INFO] Included Wave-01 (PS100011) in PS100001" in text

    def test_log_path_argument_wins(self, configure, inventory, clock, tmp_path) -> None:
        cfg = configure(log_path=str(tmp_path / "config.log"))
        run_rollout(cfg, inventory, clock=clock, log_path=str(tmp_path / "arg.log"))
        assert (tmp_path / "arg.log").exists()
        assert not (tmp_path / "config.log").exists()
