"""Run orchestration: snapshot -> optimizer -> reconciler -> sink."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import AppConfig
from .filterlists import FilterLists
from .network.client import GraphQLClient
from .network.queries import QueryClient
from .network.snapshot import NetworkSnapshot, SnapshotBuilder
from .optimizer.adapter import OptimizerAdapter
from .optimizer.base import Optimizer, OptimizerSettings
from .reconcile import Action, reconcile, summarize
from .sinks.actionqueue import ActionQueueSink, MutationClient
from .sinks.directives import DirectiveSink


@dataclass(frozen=True)
class RunPlan:
    snapshot: NetworkSnapshot
    proposed: Dict[str, float]
    actions: List[Action] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "indexer": self.snapshot.indexer.id,
            "proposed": len(self.proposed),
            "frozen_stake": self.snapshot.frozen_stake,
            **summarize(self.actions),
        }


class AllocationService:
    """Compute and deliver allocation actions for one indexer."""

    def __init__(
        self,
        config: AppConfig,
        *,
        network_client: Optional[QueryClient] = None,
        optimizer: Optional[Optimizer] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.network_client = network_client or GraphQLClient(config.network_url)
        self.adapter = OptimizerAdapter(optimizer, workers=config.optimizer_workers)
        self.logger = logger or logging.getLogger("allocopt.service")

    def network_state(self, indexer_id: str, filterlists: FilterLists) -> NetworkSnapshot:
        builder = SnapshotBuilder(
            self.network_client,
            network_id=self.config.network_id,
            min_signal=self.config.min_signal,
            page_size=self.config.page_size,
        )
        snapshot = builder.build(indexer_id, filterlists)
        for diagnostic in snapshot.diagnostics:
            diagnostic.log(self.logger)
        return snapshot

    def optimize_indexer(self, snapshot: NetworkSnapshot, settings: OptimizerSettings) -> Dict[str, float]:
        return self.adapter.propose(snapshot, settings)

    def plan(
        self,
        indexer_id: str,
        filterlists: FilterLists,
        *,
        max_new_allocations: int,
        tau: float,
        gas: float,
        allocation_lifetime: int,
        min_allocation_amount: float = 0.0,
    ) -> RunPlan:
        settings = OptimizerSettings(
            max_new_allocations=max_new_allocations,
            tau=tau,
            gas=gas,
            allocation_lifetime=allocation_lifetime,
            min_allocation_amount=min_allocation_amount,
            pinnedlist=filterlists.pinnedlist,
        )
        # Reject a bad lifetime before spending any queries on the snapshot.
        settings.validate()
        snapshot = self.network_state(indexer_id, filterlists)
        proposed = self.optimize_indexer(snapshot, settings)
        actions = reconcile(
            proposed,
            snapshot.existing_allocations(),
            snapshot.frozenlist,
            snapshot.surplus_allocations(),
        )
        plan = RunPlan(snapshot=snapshot, proposed=proposed, actions=actions)
        self.logger.info("Plan for %s: %s", indexer_id, plan.summary())
        return plan

    def push_allocations(self, plan: RunPlan, management_client: Optional[MutationClient] = None) -> List[Dict[str, Any]]:
        """Queue the plan's actions on the indexer management server."""
        client = management_client or GraphQLClient(self.config.management_url)
        sink = ActionQueueSink(
            client,
            source=self.config.action_source,
            reason=self.config.action_reason,
            priority=self.config.action_priority,
        )
        return sink.deliver(plan.actions)

    def create_rules(self, plan: RunPlan) -> List[str]:
        """Render the plan's actions as commands; nothing is sent anywhere."""
        return DirectiveSink().deliver(plan.actions)
