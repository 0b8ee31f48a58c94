"""Typed records for network subgraph responses.

Every value coming back from the network subgraph is decoded here before it
reaches `allocopt.network.models`; anything that does not match the expected
shape raises `MalformedResponse` at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..errors import MalformedResponse
from ..ipfs import is_valid_ipfshash
from .models import Allocation, Indexer, NetworkParameters, Subgraph

WEI_PER_GRT = 10**18
PPM = 1_000_000


def to_grt(wei: int) -> float:
    return wei / WEI_PER_GRT


def to_wei(grt: float) -> str:
    """Render a GRT amount as the integer wei string the subgraph filters expect."""
    return str(int(round(grt * WEI_PER_GRT)))


def _require(payload: Any, key: str, context: str) -> Any:
    if not isinstance(payload, Mapping):
        raise MalformedResponse(f"{context}: expected an object, got {type(payload).__name__}")
    if key not in payload or payload[key] is None:
        raise MalformedResponse(f"{context}: missing field '{key}'")
    return payload[key]


def _as_str(payload: Any, key: str, context: str) -> str:
    value = _require(payload, key, context)
    if not isinstance(value, str) or not value:
        raise MalformedResponse(f"{context}: field '{key}' must be a non-empty string")
    return value


def _as_int(payload: Any, key: str, context: str, *, default: Optional[int] = None) -> int:
    if default is not None and isinstance(payload, Mapping) and payload.get(key) is None:
        return default
    value = _require(payload, key, context)
    if isinstance(value, bool):
        raise MalformedResponse(f"{context}: field '{key}' must be an integer")
    try:
        # BigInt fields arrive as decimal strings, Int fields as numbers.
        return int(value) if isinstance(value, int) else int(str(value), 10)
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"{context}: field '{key}' is not an integer: {value!r}") from exc


def _as_wei(payload: Any, key: str, context: str, *, default: Optional[int] = None) -> int:
    value = _as_int(payload, key, context, default=default)
    if value < 0:
        raise MalformedResponse(f"{context}: field '{key}' must not be negative")
    return value


def _as_list(payload: Any, key: str, context: str) -> List[Any]:
    if not isinstance(payload, Mapping):
        raise MalformedResponse(f"{context}: expected an object, got {type(payload).__name__}")
    if key not in payload:
        raise MalformedResponse(f"{context}: missing field '{key}'")
    value = payload[key]
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedResponse(f"{context}: field '{key}' must be a list")
    return value


def _as_ipfshash(payload: Any, key: str, context: str) -> str:
    value = _as_str(payload, key, context)
    if not is_valid_ipfshash(value):
        raise MalformedResponse(f"{context}: '{value}' is not a valid deployment hash")
    return value


@dataclass(frozen=True, slots=True)
class SubgraphDeploymentRecord:
    id: str
    ipfs_hash: str
    signalled_tokens: int
    staked_tokens: int

    @classmethod
    def from_payload(cls, payload: Any) -> "SubgraphDeploymentRecord":
        ctx = "subgraphDeployment"
        return cls(
            id=_as_str(payload, "id", ctx),
            ipfs_hash=_as_ipfshash(payload, "ipfsHash", ctx),
            signalled_tokens=_as_wei(payload, "signalledTokens", ctx),
            staked_tokens=_as_wei(payload, "stakedTokens", ctx, default=0),
        )

    def to_model(self) -> Subgraph:
        return Subgraph(
            id=self.id,
            ipfshash=self.ipfs_hash,
            signal=to_grt(self.signalled_tokens),
            stake=to_grt(self.staked_tokens),
        )


@dataclass(frozen=True, slots=True)
class AllocationRecord:
    id: str
    ipfs_hash: str
    allocated_tokens: int
    created_at_epoch: int

    @classmethod
    def from_payload(cls, payload: Any) -> "AllocationRecord":
        ctx = "allocation"
        deployment = _require(payload, "subgraphDeployment", ctx)
        return cls(
            id=_as_str(payload, "id", ctx),
            ipfs_hash=_as_ipfshash(deployment, "ipfsHash", f"{ctx}.subgraphDeployment"),
            allocated_tokens=_as_wei(payload, "allocatedTokens", ctx),
            created_at_epoch=_as_int(payload, "createdAtEpoch", ctx, default=0),
        )

    def to_model(self, indexer_id: str) -> Allocation:
        return Allocation(
            id=self.id,
            ipfshash=self.ipfs_hash,
            amount=to_grt(self.allocated_tokens),
            indexer_id=indexer_id,
            created_at_epoch=self.created_at_epoch,
        )


@dataclass(frozen=True, slots=True)
class IndexerRecord:
    id: str
    staked_tokens: int
    delegated_tokens: int
    locked_tokens: int
    indexing_reward_cut: int  # ppm
    allocations: Tuple[AllocationRecord, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> "IndexerRecord":
        ctx = "indexer"
        return cls(
            id=_as_str(payload, "id", ctx),
            staked_tokens=_as_wei(payload, "stakedTokens", ctx),
            delegated_tokens=_as_wei(payload, "delegatedTokens", ctx, default=0),
            locked_tokens=_as_wei(payload, "lockedTokens", ctx, default=0),
            indexing_reward_cut=_as_int(payload, "indexingRewardCut", ctx, default=0),
            allocations=tuple(
                AllocationRecord.from_payload(item) for item in _as_list(payload, "allocations", ctx)
            ),
        )

    @property
    def available_tokens(self) -> int:
        return max(0, self.staked_tokens + self.delegated_tokens - self.locked_tokens)

    def to_model(self) -> Indexer:
        return Indexer(
            id=self.id,
            stake=to_grt(self.available_tokens),
            cut=min(1.0, max(0.0, self.indexing_reward_cut / PPM)),
            allocations=tuple(record.to_model(self.id) for record in self.allocations),
        )


@dataclass(frozen=True, slots=True)
class GraphNetworkRecord:
    id: int
    total_supply: int
    network_grt_issuance: int  # wei per block
    epoch_length: int
    total_tokens_signalled: int
    total_tokens_staked: int
    current_epoch: int

    @classmethod
    def from_payload(cls, payload: Any) -> "GraphNetworkRecord":
        ctx = "graphNetwork"
        return cls(
            id=_as_int(payload, "id", ctx),
            total_supply=_as_wei(payload, "totalSupply", ctx),
            network_grt_issuance=_as_wei(payload, "networkGRTIssuancePerBlock", ctx),
            epoch_length=_as_int(payload, "epochLength", ctx),
            total_tokens_signalled=_as_wei(payload, "totalTokensSignalled", ctx),
            total_tokens_staked=_as_wei(payload, "totalTokensStaked", ctx, default=0),
            current_epoch=_as_int(payload, "currentEpoch", ctx),
        )

    def to_model(self) -> NetworkParameters:
        return NetworkParameters(
            id=self.id,
            total_supply=to_grt(self.total_supply),
            issuance_per_block=to_grt(self.network_grt_issuance),
            blocks_per_epoch=self.epoch_length,
            total_tokens_signalled=to_grt(self.total_tokens_signalled),
            total_tokens_staked=to_grt(self.total_tokens_staked),
            current_epoch=self.current_epoch,
        )


def records(data: Any, key: str) -> List[Dict[str, Any]]:
    """Return the list stored under ``key`` of a query's ``data`` object."""
    return _as_list(data, key, "data")
