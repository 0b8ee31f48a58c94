"""Immutable domain values describing one network snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Allocation:
    """An open stake commitment. ``id`` is the handle used to close it."""

    id: str
    ipfshash: str
    amount: float  # GRT
    indexer_id: str
    created_at_epoch: int = 0


@dataclass(frozen=True, slots=True)
class Indexer:
    id: str
    stake: float  # GRT available for allocation
    cut: float = 0.0  # indexing reward cut, fraction in [0, 1]
    allocations: Tuple[Allocation, ...] = ()

    def with_stake(self, stake: float) -> "Indexer":
        return replace(self, stake=stake)


@dataclass(frozen=True, slots=True)
class Subgraph:
    """A subgraph deployment and its network-visible signal."""

    id: str
    ipfshash: str
    signal: float  # GRT signalled by curators
    stake: float = 0.0  # GRT allocated by all indexers


@dataclass(frozen=True, slots=True)
class NetworkParameters:
    id: int
    total_supply: float
    issuance_per_block: float  # GRT minted as indexing rewards per block
    blocks_per_epoch: int
    total_tokens_signalled: float
    total_tokens_staked: float
    current_epoch: int

    def issuance_over(self, epochs: int) -> float:
        """Indexing rewards minted network-wide over ``epochs`` epochs."""
        return self.issuance_per_block * self.blocks_per_epoch * max(0, epochs)


@dataclass(frozen=True)
class Repository:
    """Subgraphs (in query order) and the indexers seen allocating to them."""

    subgraphs: Tuple[Subgraph, ...] = ()
    indexers: Tuple[Indexer, ...] = ()
    _positions: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "subgraphs", tuple(self.subgraphs))
        object.__setattr__(self, "indexers", tuple(self.indexers))
        object.__setattr__(
            self, "_positions", {subgraph.ipfshash: idx for idx, subgraph in enumerate(self.subgraphs)}
        )

    def __len__(self) -> int:
        return len(self.subgraphs)

    def ipfshashes(self) -> List[str]:
        return [subgraph.ipfshash for subgraph in self.subgraphs]

    def position(self, ipfshash: str) -> Optional[int]:
        return self._positions.get(ipfshash)

    def find_indexer(self, indexer_id: str) -> Optional[Indexer]:
        wanted = indexer_id.lower()
        for indexer in self.indexers:
            if indexer.id.lower() == wanted:
                return indexer
        return None

    def without_indexer(self, indexer_id: str) -> "Repository":
        wanted = indexer_id.lower()
        return Repository(
            subgraphs=self.subgraphs,
            indexers=tuple(indexer for indexer in self.indexers if indexer.id.lower() != wanted),
        )

    def allocated_stake(self, indexers: Optional[Iterable[Indexer]] = None) -> List[float]:
        """Stake allocated per subgraph (aligned with ``subgraphs``)."""
        totals = [0.0] * len(self.subgraphs)
        for indexer in self.indexers if indexers is None else indexers:
            for allocation in indexer.allocations:
                idx = self._positions.get(allocation.ipfshash)
                if idx is not None:
                    totals[idx] += allocation.amount
        return totals

    def total_signal(self) -> float:
        return sum(subgraph.signal for subgraph in self.subgraphs)
