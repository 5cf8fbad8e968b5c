"""Fluent builder for assembling a compiled rollout graph.

``RolloutBuilder`` collects run parameters and collaborators, validates them
into a :class:`RolloutConfig`, and returns ``(app, initial_state)``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from phased_rollout.domain.enums import SuccessMetric
from phased_rollout.domain.values import ExclusionRules, TimeWindow
from phased_rollout.graph.graph import build_rollout_graph
from phased_rollout.graph.runner import make_initial_state
from phased_rollout.infrastructure.client import ManagementPlaneClient
from phased_rollout.infrastructure.config import RolloutConfig
from phased_rollout.infrastructure.event_bus import EventBus
from phased_rollout.services.window import Clock, utc_now


class RolloutBuilder:
    """Fluent builder for a compiled rollout LangGraph.

    Example::

        app, initial = (
            RolloutBuilder("Office 365 Apps")
            .with_client(client)
            .with_threshold(90)
            .with_candidates("Wave-*")
            .excluding(patterns=["Wave-VIP*"])
            .with_window(days=["Mon", "Tue", "Wed", "Thu"], start_hour=8,
                         end_hour=17, timezone="Europe/Oslo")
            .build()
        )
        report = app.invoke(initial)["report"]
    """

    def __init__(self, deployment: str) -> None:
        self._deployment = deployment
        self._client: ManagementPlaneClient | None = None
        self._target_collection_id = ""
        self._threshold: float = 90.0
        self._max_per_run = 1
        self._patterns: list[str] = []
        self._exclude_ids: set[str] = set()
        self._exclude_patterns: list[str] = []
        self._metric = SuccessMetric.AUTO
        self._fallback = False
        self._window: TimeWindow | None = None
        self._dry_run = False
        self._max_summary_age = 0
        self._clock: Clock = utc_now
        self._event_bus: EventBus | None = None
        self._checkpointer: Any | None = None
        self._metadata: dict[str, Any] = {}

    # -- collaborators --------------------------------------------------------

    def with_client(self, client: ManagementPlaneClient) -> RolloutBuilder:
        self._client = client
        return self

    def with_clock(self, clock: Clock) -> RolloutBuilder:
        self._clock = clock
        return self

    def with_event_bus(self, event_bus: EventBus) -> RolloutBuilder:
        self._event_bus = event_bus
        return self

    def with_checkpointer(self, checkpointer: Any) -> RolloutBuilder:
        self._checkpointer = checkpointer
        return self

    # -- parameters -----------------------------------------------------------

    def with_target(self, collection_id: str) -> RolloutBuilder:
        """Require the deployment to target *collection_id*."""
        self._target_collection_id = collection_id
        return self

    def with_threshold(self, percentage: float) -> RolloutBuilder:
        self._threshold = percentage
        return self

    def with_max_per_run(self, count: int) -> RolloutBuilder:
        self._max_per_run = count
        return self

    def with_candidates(self, *patterns: str) -> RolloutBuilder:
        self._patterns.extend(patterns)
        return self

    def excluding(
        self,
        ids: Iterable[str] = (),
        patterns: Iterable[str] = (),
    ) -> RolloutBuilder:
        self._exclude_ids.update(ids)
        self._exclude_patterns.extend(patterns)
        return self

    def with_metric(self, metric: SuccessMetric | str) -> RolloutBuilder:
        self._metric = SuccessMetric(metric) if isinstance(metric, str) else metric
        return self

    def with_member_count_fallback(self, enabled: bool = True) -> RolloutBuilder:
        self._fallback = enabled
        return self

    def with_window(
        self,
        days: Iterable[int | str] = (),
        start_hour: int = 0,
        end_hour: int = 24,
        timezone: str = "UTC",
    ) -> RolloutBuilder:
        self._window = TimeWindow(
            days=frozenset(days),
            start_hour=start_hour,
            end_hour=end_hour,
            timezone=timezone,
        )
        return self

    def with_max_summary_age(self, minutes: int) -> RolloutBuilder:
        self._max_summary_age = minutes
        return self

    def dry_run(self, enabled: bool = True) -> RolloutBuilder:
        self._dry_run = enabled
        return self

    def with_metadata(self, **kwargs: Any) -> RolloutBuilder:
        self._metadata.update(kwargs)
        return self

    # -- build ----------------------------------------------------------------

    def build_config(self) -> RolloutConfig:
        """Return the validated :class:`RolloutConfig` for this builder."""
        config = RolloutConfig(
            deployment=self._deployment,
            target_collection_id=self._target_collection_id,
            success_threshold=self._threshold,
            max_per_run=self._max_per_run,
            candidate_patterns=tuple(self._patterns),
            exclusions=ExclusionRules(
                collection_ids=frozenset(self._exclude_ids),
                name_patterns=tuple(self._exclude_patterns),
            ),
            metric=self._metric,
            use_member_count_fallback=self._fallback,
            window=self._window,
            dry_run=self._dry_run,
            max_summary_age_minutes=self._max_summary_age,
        )
        config.validate()
        return config

    def build(self) -> tuple[Any, dict[str, Any]]:
        """Compile the graph and return ``(app, initial_state)``.

        Raises
        ------
        ValueError
            If no client was set or the parameters are invalid.
        """
        if self._client is None:
            raise ValueError("A management plane client is required (call .with_client())")
        config = self.build_config()
        app = build_rollout_graph(
            self._client,
            clock=self._clock,
            event_bus=self._event_bus,
            checkpointer=self._checkpointer,
        )
        return app, make_initial_state(config, self._metadata)
