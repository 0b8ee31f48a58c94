"""Two-pass network snapshot for one indexer.

The candidate pass honours the filter lists, the full pass sees the whole
market above the signal threshold. The target indexer is pulled out of the
candidate repository and its stake is reduced by whatever sits in frozen
allocations.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..filterlists import FilterLists
from .models import Allocation, Indexer, NetworkParameters, Repository
from .queries import (
    DEFAULT_PAGE_SIZE,
    QueryClient,
    frozen_stake,
    network_parameters,
    query_indexer,
    query_indexer_allocations,
    query_indexers,
    query_subgraphs,
)

PINNEDLIST_UNSUPPORTED = "pinnedlist-unsupported"
INDEXER_NOT_IN_CANDIDATES = "indexer-not-in-candidates"
DUPLICATE_ALLOCATION = "duplicate-allocation"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    level: str
    code: str
    message: str

    def log(self, logger: logging.Logger) -> None:
        logger.log(logging.getLevelName(self.level.upper()), "%s: %s", self.code, self.message)


@dataclass(frozen=True)
class NetworkSnapshot:
    indexer: Indexer
    repository: Repository
    full_repository: Repository
    network: NetworkParameters
    open_allocations: Tuple[Allocation, ...] = ()
    frozenlist: Tuple[str, ...] = ()
    pinnedlist: Tuple[str, ...] = ()
    frozen_stake: float = 0.0
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    def existing_allocations(self) -> Dict[str, str]:
        """Deployment hash -> allocation id for open allocations that are not frozen.

        When several allocations share a deployment the first one returned by
        the network subgraph is used; the others are in :meth:`surplus_allocations`.
        """
        frozen = set(self.frozenlist)
        existing: Dict[str, str] = {}
        for allocation in self.open_allocations:
            if allocation.ipfshash in frozen:
                continue
            existing.setdefault(allocation.ipfshash, allocation.id)
        return existing

    def surplus_allocations(self) -> List[Tuple[str, str]]:
        """Open allocations past the first on each non-frozen deployment, as ``(ipfshash, id)``."""
        frozen = set(self.frozenlist)
        seen: Set[str] = set()
        surplus: List[Tuple[str, str]] = []
        for allocation in self.open_allocations:
            if allocation.ipfshash in frozen:
                continue
            if allocation.ipfshash in seen:
                surplus.append((allocation.ipfshash, allocation.id))
            seen.add(allocation.ipfshash)
        return surplus

    def warnings(self) -> List[Diagnostic]:
        return [item for item in self.diagnostics if item.level == "warning"]


def detach_indexer(repository: Repository, indexer_id: str) -> Tuple[Optional[Indexer], Repository]:
    """Split ``indexer_id`` off the repository. Returns ``(None, repository)`` if absent."""
    indexer = repository.find_indexer(indexer_id)
    if indexer is None:
        return None, repository
    return indexer, repository.without_indexer(indexer_id)


def read_repository(
    client: QueryClient,
    ipfshash_in: Sequence[str],
    ipfshash_not_in: Sequence[str],
    *,
    min_signal: float,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Repository:
    subgraphs = query_subgraphs(
        client, ipfshash_in, ipfshash_not_in, min_signal=min_signal, page_size=page_size
    )
    indexers = query_indexers(client, subgraphs, page_size=page_size)
    return Repository(subgraphs=tuple(subgraphs), indexers=tuple(indexers))


class SnapshotBuilder:
    """Build a :class:`NetworkSnapshot` from the network subgraph."""

    def __init__(
        self,
        client: QueryClient,
        *,
        network_id: int = 1,
        min_signal: float = 0.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.network_id = network_id
        self.min_signal = min_signal
        self.page_size = page_size
        self.logger = logger or logging.getLogger("allocopt.snapshot")

    def build(self, indexer_id: str, filterlists: FilterLists) -> NetworkSnapshot:
        # Nothing touches the network before every hash has been checked.
        filterlists.validate()

        diagnostics: List[Diagnostic] = []
        if filterlists.pinnedlist:
            diagnostics.append(
                Diagnostic(
                    "warning",
                    PINNEDLIST_UNSUPPORTED,
                    f"pinnedlist is not currently optimised for ({len(filterlists.pinnedlist)} entries ignored)",
                )
            )

        candidate = read_repository(
            self.client,
            filterlists.inclusion(),
            filterlists.exclusion(),
            min_signal=self.min_signal,
            page_size=self.page_size,
        )
        full = read_repository(self.client, [], [], min_signal=self.min_signal, page_size=self.page_size)
        network = network_parameters(self.client, self.network_id)

        indexer, repository = detach_indexer(candidate, indexer_id)
        if indexer is None:
            # No candidate allocations yet: read the indexer record directly and
            # keep only allocations on candidate deployments.
            record = query_indexer(self.client, indexer_id)
            indexer = Indexer(
                id=record.id,
                stake=record.stake,
                cut=record.cut,
                allocations=tuple(a for a in record.allocations if candidate.position(a.ipfshash) is not None),
            )
            diagnostics.append(
                Diagnostic(
                    "info",
                    INDEXER_NOT_IN_CANDIDATES,
                    f"indexer {indexer_id} has no allocations on candidate deployments",
                )
            )

        open_allocations = query_indexer_allocations(self.client, indexer_id, page_size=self.page_size)
        duplicated = [h for h, count in Counter(a.ipfshash for a in open_allocations).items() if count > 1]
        if duplicated:
            diagnostics.append(
                Diagnostic(
                    "warning",
                    DUPLICATE_ALLOCATION,
                    f"several open allocations on {', '.join(duplicated)}; the extra ones will be closed",
                )
            )

        fstake = frozen_stake(open_allocations, filterlists.frozenlist)
        indexer = indexer.with_stake(indexer.stake - fstake)
        self.logger.info(
            "Snapshot for %s: %s candidate / %s total deployments, %s open allocations, "
            "stake %.2f GRT after %.2f GRT frozen",
            indexer.id,
            len(repository),
            len(full),
            len(open_allocations),
            indexer.stake,
            fstake,
        )
        return NetworkSnapshot(
            indexer=indexer,
            repository=repository,
            full_repository=full,
            network=network,
            open_allocations=tuple(open_allocations),
            frozenlist=filterlists.frozenlist,
            pinnedlist=filterlists.pinnedlist,
            frozen_stake=fstake,
            diagnostics=tuple(diagnostics),
        )
