"""Optimizer boundary types."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence, Tuple

from ..errors import InvalidAllocationLifetime
from ..network.models import Indexer, NetworkParameters, Repository

if TYPE_CHECKING:
    from .pool import ScenarioPool

# Allocations stop earning indexing rewards after this many epochs.
MAX_ALLOCATION_LIFETIME = 28


@dataclass(frozen=True)
class OptimizerSettings:
    """Per-run knobs forwarded verbatim to the optimizer."""

    max_new_allocations: int
    tau: float
    gas: float  # GRT spent per allocation transaction
    allocation_lifetime: int  # epochs
    min_allocation_amount: float = 0.0  # GRT, smallest allocation worth opening
    pinnedlist: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "pinnedlist", tuple(self.pinnedlist))

    def validate(self) -> None:
        if not 0 <= self.allocation_lifetime <= MAX_ALLOCATION_LIFETIME:
            raise InvalidAllocationLifetime(self.allocation_lifetime, MAX_ALLOCATION_LIFETIME)
        if not (0.0 <= self.tau <= 1.0):
            raise ValueError(f"tau must be within [0, 1], got {self.tau}")
        if self.max_new_allocations < 0:
            raise ValueError("max_new_allocations must not be negative")
        if self.gas < 0 or math.isnan(self.gas):
            raise ValueError("gas must be a non-negative amount of GRT")
        if self.min_allocation_amount < 0 or math.isnan(self.min_allocation_amount):
            raise ValueError("min_allocation_amount must be a non-negative amount of GRT")


@dataclass(frozen=True)
class OptimizerRequest:
    indexer: Indexer
    repository: Repository
    full_repository: Repository
    network: NetworkParameters
    settings: OptimizerSettings


class Optimizer(Protocol):
    """Return one weight (GRT) per subgraph of ``request.repository``, in order."""

    def optimize(self, request: OptimizerRequest, pool: "ScenarioPool") -> Sequence[float]:
        ...
