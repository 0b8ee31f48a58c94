"""Default optimizer: water-filling over the indexing reward curve.

An indexer allocating ``w`` to a deployment that already carries ``o`` from
other indexers earns ``psi * w / (w + o)`` of the deployment's rewards
``psi``. With a fixed stake budget the optimum has the closed form
``w = max(0, c * sqrt(psi * o) - o)``, where ``c`` makes the budget add up.
Sparse candidate sets (current allocations plus the ``n`` best new
deployments) are solved independently in the scenario pool and the one with
the best rewards net of gas wins. Deployments that would get less than the
minimum allocation amount are dropped and their stake is refilled elsewhere.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .base import OptimizerRequest
from .pool import ScenarioPool

# Floor for other indexers' stake so untouched deployments keep a finite optimum.
MIN_OTHER_STAKE = 1.0


@dataclass(frozen=True, slots=True)
class Scenario:
    new_allocations: int
    selection: tuple[int, ...]
    weights: tuple[float, ...]
    rewards: float
    gas_cost: float

    @property
    def profit(self) -> float:
        return self.rewards - self.gas_cost

    @property
    def allocation_count(self) -> int:
        return sum(1 for weight in self.weights if weight > 0)


def water_fill(psi: Sequence[float], omega: Sequence[float], stake: float, indices: Sequence[int]) -> Dict[int, float]:
    """Optimal split of ``stake`` over ``indices``; indices left out get nothing."""
    if stake <= 0:
        return {}
    ranked = sorted(
        (idx for idx in indices if psi[idx] > 0),
        key=lambda idx: psi[idx] / omega[idx],
        reverse=True,
    )
    active = 0
    omega_sum = 0.0
    root_sum = 0.0
    for position, idx in enumerate(ranked, start=1):
        candidate_omega = omega_sum + omega[idx]
        candidate_root = root_sum + math.sqrt(psi[idx] * omega[idx])
        scale = (stake + candidate_omega) / candidate_root
        if scale * math.sqrt(psi[idx] / omega[idx]) <= 1.0:
            break
        active, omega_sum, root_sum = position, candidate_omega, candidate_root
    if not active:
        return {}
    scale = (stake + omega_sum) / root_sum
    return {idx: scale * math.sqrt(psi[idx] * omega[idx]) - omega[idx] for idx in ranked[:active]}


def water_fill_above(
    psi: Sequence[float], omega: Sequence[float], stake: float, indices: Sequence[int], minimum: float
) -> Dict[int, float]:
    """Like :func:`water_fill`, but no deployment ends up with less than ``minimum``.

    Deployments that fall short are dropped and the stake is refilled over the
    rest until every weight clears the floor.
    """
    selection = list(indices)
    while True:
        weights = water_fill(psi, omega, stake, selection)
        kept = [idx for idx, w in weights.items() if w >= minimum]
        if len(kept) == len(weights):
            return weights
        selection = kept


def indexing_rewards(psi: Sequence[float], omega: Sequence[float], weights: Dict[int, float]) -> float:
    return sum(psi[idx] * w / (w + omega[idx]) for idx, w in weights.items() if w > 0)


class AnalyticOptimizer:
    """Closed-form optimizer with a sparse scenario search."""

    def __init__(self, *, min_other_stake: float = MIN_OTHER_STAKE, logger: Optional[logging.Logger] = None) -> None:
        self.min_other_stake = min_other_stake
        self.logger = logger or logging.getLogger("allocopt.optimizer")

    def reward_shares(self, request: OptimizerRequest) -> List[float]:
        """Rewards each candidate deployment mints over the allocation lifetime."""
        network = request.network
        issuance = network.issuance_over(request.settings.allocation_lifetime)
        total_signal = network.total_tokens_signalled
        if total_signal <= 0 or issuance <= 0:
            return [0.0] * len(request.repository)
        return [issuance * subgraph.signal / total_signal for subgraph in request.repository.subgraphs]

    def other_stake(self, request: OptimizerRequest) -> List[float]:
        """Stake other indexers hold, blended by tau towards a signal-proportional market."""
        tau = request.settings.tau
        observed = request.repository.allocated_stake()
        full = request.full_repository
        full_signal = full.total_signal()
        stake_per_signal = sum(full.allocated_stake()) / full_signal if full_signal > 0 else 0.0
        blended = []
        for subgraph, current in zip(request.repository.subgraphs, observed):
            equilibrium = stake_per_signal * subgraph.signal
            blended.append(max(self.min_other_stake, (1.0 - tau) * current + tau * equilibrium))
        return blended

    def optimize(self, request: OptimizerRequest, pool: ScenarioPool) -> List[float]:
        settings = request.settings
        size = len(request.repository)
        if size == 0:
            return []
        if settings.pinnedlist:
            self.logger.debug("Ignoring %s pinned deployments", len(settings.pinnedlist))

        psi = self.reward_shares(request)
        omega = self.other_stake(request)
        stake = request.indexer.stake

        current = sorted(
            {
                idx
                for idx in (request.repository.position(a.ipfshash) for a in request.indexer.allocations)
                if idx is not None
            }
        )
        unconstrained = water_fill(psi, omega, stake, range(size))
        existing = set(current)
        new_ranked = [
            idx for idx, _ in sorted(unconstrained.items(), key=lambda item: item[1], reverse=True) if idx not in existing
        ]
        limit = min(settings.max_new_allocations, len(new_ranked))
        selections = [tuple(current + new_ranked[:n]) for n in range(limit + 1)]

        def evaluate(selection: tuple[int, ...]) -> Scenario:
            weights = water_fill_above(psi, omega, stake, selection, settings.min_allocation_amount)
            vector = [0.0] * size
            for idx, w in weights.items():
                vector[idx] = w
            count = sum(1 for w in weights.values() if w > 0)
            return Scenario(
                new_allocations=len(selection) - len(current),
                selection=selection,
                weights=tuple(vector),
                rewards=indexing_rewards(psi, omega, weights),
                gas_cost=settings.gas * count,
            )

        scenarios = pool.map(evaluate, selections)
        best = scenarios[0]
        for scenario in scenarios[1:]:
            if scenario.profit > best.profit:
                best = scenario
        self.logger.info(
            "Optimizer picked %s allocations (%s new) out of %s scenarios: rewards %.2f GRT, gas %.2f GRT",
            best.allocation_count,
            best.new_allocations,
            len(scenarios),
            best.rewards,
            best.gas_cost,
        )
        return list(best.weights)
