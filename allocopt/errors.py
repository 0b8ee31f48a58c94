"""Error taxonomy for allocopt.

Every error here is fatal for a run: nothing is retried and no partial
snapshot, reconciliation or delivery is kept.
"""

from __future__ import annotations

from typing import Iterable, Optional


class AllocOptError(RuntimeError):
    """Base class for run-aborting failures."""


class InvalidHashFormat(AllocOptError, ValueError):
    """Raised when a filter-list entry is not a CIDv0 deployment hash."""

    def __init__(self, invalid: Iterable[str]) -> None:
        self.invalid = list(invalid)
        preview = ", ".join(repr(item) for item in self.invalid[:5])
        if len(self.invalid) > 5:
            preview += f", ... ({len(self.invalid)} total)"
        super().__init__(f"Invalid subgraph deployment IPFS hash(es): {preview}")


class InvalidAllocationLifetime(AllocOptError, ValueError):
    """Raised when the allocation lifetime is outside the rewardable window."""

    def __init__(self, lifetime: int, maximum: int) -> None:
        self.lifetime = lifetime
        self.maximum = maximum
        super().__init__(f"Allocation lifetime must be within [0, {maximum}] epochs, got {lifetime}")


class NetworkSourceFailure(AllocOptError):
    """Raised when the network subgraph cannot be queried."""


class MalformedResponse(NetworkSourceFailure):
    """Raised when the network subgraph answers with data we cannot decode."""


class ManagementBoundaryFailure(AllocOptError):
    """Raised when the indexer management server rejects or drops the action batch."""


class MalformedFilterListInput(AllocOptError):
    """Raised when the filter-list file is missing, unreadable or lacks a required column."""


class OptimizerContractError(AllocOptError):
    """Raised when the optimizer returns weights that do not line up with the candidates."""


class GraphQLRequestError(AllocOptError):
    """Raised on transport failures, bad statuses or GraphQL ``errors`` payloads."""

    def __init__(self, message: str, *, url: str, errors: Optional[list] = None) -> None:
        self.url = url
        self.errors = list(errors or [])
        super().__init__(message)
