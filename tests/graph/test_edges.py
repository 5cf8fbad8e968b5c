"""Tests for conditional edge functions."""

from __future__ import annotations

from phased_rollout.domain.enums import RolloutStatus
from phased_rollout.graph.edges import FINALIZE, is_halted, make_router


class TestIsHalted:

    def test_unset_status(self) -> None:
        assert not is_halted({})
        assert not is_halted({"status": None})

    def test_any_status_halts(self) -> None:
        for status in RolloutStatus:
            assert is_halted({"status": status})


class TestRouter:

    def test_continues_when_no_status(self) -> None:
        route = make_router("check_targets")
        assert route({"status": None}) == "check_targets"

    def test_finalizes_on_terminal_status(self) -> None:
        route = make_router("check_targets")
        assert route({"status": RolloutStatus.OUTSIDE_WINDOW}) == FINALIZE

    def test_dry_run_status_skips_include(self) -> None:
        route = make_router("include")
        assert route({"status": RolloutStatus.PLANNED_ONLY}) == FINALIZE

    def test_router_name(self) -> None:
        assert make_router("select").__name__ == "route_to_select"
