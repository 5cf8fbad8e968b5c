"""Tests for RolloutConfig and its loaders."""

from __future__ import annotations

import dataclasses
import json

import pytest

from phased_rollout.domain.enums import SuccessMetric
from phased_rollout.domain.values import ExclusionRules, TimeWindow
from phased_rollout.infrastructure.config import (
    RolloutConfig,
    load_config,
    load_config_from_json,
)


class TestRolloutConfig:

    def test_defaults(self) -> None:
        cfg = RolloutConfig(deployment="Office", candidate_patterns=("Wave-*",))
        cfg.validate()
        assert cfg.success_threshold == 90.0
        assert cfg.max_per_run == 1
        assert cfg.metric is SuccessMetric.AUTO
        assert cfg.exclusions.is_empty
        assert cfg.window is None
        assert not cfg.dry_run

    def test_frozen(self, config: RolloutConfig) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_per_run = 5  # type: ignore[misc]

    def test_coerces_loose_inputs(self) -> None:
        cfg = RolloutConfig(
            deployment="Office",
            candidate_patterns="Wave-*",  # type: ignore[arg-type]
            metric="Compliant",  # type: ignore[arg-type]
            exclusions={"collection_ids": ["PS1"], "name_patterns": ["*VIP*"]},  # type: ignore[arg-type]
            window={"days": ["mon", "tue"], "start_hour": 8, "end_hour": 17},  # type: ignore[arg-type]
        )
        assert cfg.candidate_patterns == ("Wave-*",)
        assert cfg.metric is SuccessMetric.COMPLIANT
        assert cfg.exclusions == ExclusionRules(frozenset({"PS1"}), ("*VIP*",))
        assert isinstance(cfg.window, TimeWindow)
        assert cfg.window.days == frozenset({0, 1})

    @pytest.mark.parametrize("days, expected", [("Mon", {0}), (0, {0}), ("friday", {4})])
    def test_single_window_day(self, days, expected) -> None:
        cfg = RolloutConfig.from_dict({
            "deployment": "Office",
            "candidate_patterns": ["Wave-*"],
            "window": {"days": days, "start_hour": 8, "end_hour": 17},
        })
        assert cfg.window is not None
        assert cfg.window.days == frozenset(expected)

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"deployment": "  "}, "deployment"),
            ({"success_threshold": 0}, "success_threshold"),
            ({"success_threshold": 100.5}, "success_threshold"),
            ({"max_per_run": 0}, "max_per_run"),
            ({"candidate_patterns": ()}, "candidate pattern"),
            ({"candidate_patterns": ("Wave-*", " ")}, "blank"),
            ({"max_summary_age_minutes": -5}, "max_summary_age_minutes"),
        ],
    )
    def test_validate_rejects(self, config: RolloutConfig, overrides, message) -> None:
        bad = dataclasses.replace(config, **overrides)
        with pytest.raises(ValueError, match=message):
            bad.validate()

    @pytest.mark.parametrize("threshold", [1, 50, 100])
    def test_threshold_bounds_inclusive(self, config: RolloutConfig, threshold) -> None:
        dataclasses.replace(config, success_threshold=threshold).validate()

    def test_dict_round_trip(self, config: RolloutConfig) -> None:
        cfg = dataclasses.replace(
            config,
            window=TimeWindow(days=frozenset({0}), start_hour=8, end_hour=17),
            metric=SuccessMetric.INSTALLED,
        )
        data = cfg.to_dict()
        json.dumps(data)
        assert RolloutConfig.from_dict(data) == cfg

    def test_from_dict_ignores_unknown_keys(self) -> None:
        cfg = RolloutConfig.from_dict(
            {"deployment": "Office", "candidate_patterns": ["Wave-*"], "colour": "blue"}
        )
        assert cfg.deployment == "Office"

    def test_from_dict_validates(self) -> None:
        with pytest.raises(ValueError):
            RolloutConfig.from_dict({"deployment": "Office"})


class TestLoaders:

    def test_load_json_string(self) -> None:
        cfg = load_config_from_json(
            json.dumps({"deployment": "Office", "candidate_patterns": ["Wave-*"]})
        )
        assert cfg.candidate_patterns == ("Wave-*",)

    def test_rollout_section(self) -> None:
        cfg = load_config_from_json(
            json.dumps({"rollout": {"deployment": "Office", "candidate_patterns": ["W*"]}})
        )
        assert cfg.deployment == "Office"

    def test_rejects_non_object(self) -> None:
        with pytest.raises(ValueError):
            load_config_from_json("[1, 2]")

    def test_load_yaml_file(self, tmp_path) -> None:
        path = tmp_path / "rollout.yaml"
        path.write_text(
            "rollout:\n"
            "  deployment: Contoso Agent 5.2\n"
            "  success_threshold: 95\n"
            "  max_per_run: 2\n"
            "  candidate_patterns: ['Wave-*']\n"
            "  exclusions:\n"
            "    name_patterns: ['*VIP*']\n"
            "  window:\n"
            "    days: [Mon, Tue, Wed, Thu]\n"
            "    start_hour: 8\n"
            "    end_hour: 17\n"
            "    timezone: Europe/Oslo\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.success_threshold == 95
        assert cfg.max_per_run == 2
        assert cfg.exclusions.name_patterns == ("*VIP*",)
        assert cfg.window is not None
        assert cfg.window.timezone == "Europe/Oslo"
        assert cfg.window.days == frozenset({0, 1, 2, 3})

    def test_load_json_file(self, tmp_path, config: RolloutConfig) -> None:
        path = tmp_path / "rollout.json"
        path.write_text(json.dumps(config.to_dict()), encoding="utf-8")
        assert load_config(path) == config
