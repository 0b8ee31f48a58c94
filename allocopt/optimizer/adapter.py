"""Bridge between a network snapshot and the optimizer's weight vector."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from ..errors import OptimizerContractError
from ..network.snapshot import NetworkSnapshot
from ..reconcile import AMOUNT_DECIMALS
from .analytic import AnalyticOptimizer
from .base import Optimizer, OptimizerRequest, OptimizerSettings
from .pool import ScenarioPool


class OptimizerAdapter:
    """Run the optimizer once and keep its strictly positive weights by deployment hash."""

    def __init__(
        self,
        optimizer: Optional[Optimizer] = None,
        *,
        pool: Optional[ScenarioPool] = None,
        workers: int = 4,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.optimizer = optimizer or AnalyticOptimizer()
        self._pool = pool
        self._workers = workers
        self.logger = logger or logging.getLogger("allocopt.optimizer.adapter")

    def build_request(self, snapshot: NetworkSnapshot, settings: OptimizerSettings) -> OptimizerRequest:
        return OptimizerRequest(
            indexer=snapshot.indexer,
            repository=snapshot.repository,
            full_repository=snapshot.full_repository,
            network=snapshot.network,
            settings=settings,
        )

    def propose(self, snapshot: NetworkSnapshot, settings: OptimizerSettings) -> Dict[str, float]:
        """Return ``{ipfshash: amount}`` in candidate order.

        Weights that are zero, below the minimum allocation amount or too small
        to survive amount formatting are dropped.
        """
        settings.validate()
        request = self.build_request(snapshot, settings)
        if self._pool is not None:
            weights = list(self.optimizer.optimize(request, self._pool))
        else:
            with ScenarioPool(self._workers, name="optimizer") as pool:
                weights = list(self.optimizer.optimize(request, pool))

        hashes = snapshot.repository.ipfshashes()
        if len(weights) != len(hashes):
            raise OptimizerContractError(
                f"optimizer returned {len(weights)} weights for {len(hashes)} candidate deployments"
            )
        proposed = {
            ipfshash: float(weight)
            for ipfshash, weight in zip(hashes, weights)
            if _allocatable(weight, settings.min_allocation_amount)
        }
        dropped = sum(1 for weight in weights if weight > 0) - len(proposed)
        if dropped:
            self.logger.info(
                "Dropped %s allocations below %.6f GRT or the amount precision",
                dropped,
                settings.min_allocation_amount,
            )
        self.logger.info(
            "Proposed %s allocations totalling %.2f GRT", len(proposed), sum(proposed.values())
        )
        return proposed


def _allocatable(weight: float, minimum: float) -> bool:
    return round(weight, AMOUNT_DECIMALS) > 0 and weight >= minimum
