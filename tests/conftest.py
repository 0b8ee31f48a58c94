"""Shared pytest fixtures for allocopt tests.

Provides deterministic deployment hashes, payload builders that mimic the
network subgraph, and an in-memory GraphQL client so no test touches the
network.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

import pytest

from allocopt.config import AppConfig
from allocopt.ipfs import BASE58_ALPHABET

WEI = 10**18
INDEXER_ID = "0x00000000000000000000000000000000000000aa"
OTHER_INDEXER_ID = "0x00000000000000000000000000000000000000bb"


def make_hash(seed: int) -> str:
    """A valid CIDv0 hash unique per ``seed``."""
    suffix = ""
    value = seed
    for _ in range(4):
        suffix = BASE58_ALPHABET[value % 58] + suffix
        value //= 58
    return "Qm" + "a" * 40 + suffix


def deployment_payload(seed: int, signal: int, stake: int = 0) -> Dict[str, Any]:
    return {
        "id": f"0x{seed:064x}",
        "ipfsHash": make_hash(seed),
        "signalledTokens": str(signal * WEI),
        "stakedTokens": str(stake * WEI),
    }


def allocation_payload(allocation_id: str, seed: int, amount: int, epoch: int = 100) -> Dict[str, Any]:
    return {
        "id": allocation_id,
        "allocatedTokens": str(amount * WEI),
        "createdAtEpoch": epoch,
        "subgraphDeployment": {"ipfsHash": make_hash(seed)},
    }


def indexer_payload(
    indexer_id: str,
    staked: int,
    allocations: List[Dict[str, Any]],
    *,
    delegated: int = 0,
    locked: int = 0,
    cut: int = 1_000_000,
) -> Dict[str, Any]:
    return {
        "id": indexer_id,
        "stakedTokens": str(staked * WEI),
        "delegatedTokens": str(delegated * WEI),
        "lockedTokens": str(locked * WEI),
        "indexingRewardCut": cut,
        "allocations": allocations,
    }


def network_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "id": "1",
        "totalSupply": str(10_000_000_000 * WEI),
        "networkGRTIssuancePerBlock": str(100 * WEI),
        "epochLength": 6646,
        "totalTokensSignalled": str(5_000_000 * WEI),
        "totalTokensStaked": str(3_000_000_000 * WEI),
        "currentEpoch": 700,
    }
    payload.update(overrides)
    return payload


_OPERATION = re.compile(r"\b(query|mutation)\s+(\w+)")


class FakeNetworkClient:
    """Answers the network subgraph queries from in-memory payloads."""

    def __init__(
        self,
        deployments: List[Dict[str, Any]],
        indexers: List[Dict[str, Any]],
        network: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.deployments = deployments
        self.indexers = indexers
        self.network = network if network is not None else network_payload()
        self.calls: List[tuple[str, Dict[str, Any]]] = []

    def operations(self) -> List[str]:
        return [name for name, _ in self.calls]

    def query(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        name = _OPERATION.search(document).group(2)
        variables = dict(variables or {})
        self.calls.append((name, variables))
        return getattr(self, f"_{name}")(variables)

    @staticmethod
    def _page(items: List[Dict[str, Any]], variables: Dict[str, Any]) -> List[Dict[str, Any]]:
        last_id = variables["where"].get("id_gt", "")
        remaining = sorted((item for item in items if item["id"] > last_id), key=lambda item: item["id"])
        return remaining[: variables["first"]]

    def _subgraphDeployments(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        where = variables["where"]
        minimum = int(where.get("signalledTokens_gte", "0"))
        matches = [
            item
            for item in self.deployments
            if int(item["signalledTokens"]) >= minimum
            and ("ipfsHash_in" not in where or item["ipfsHash"] in where["ipfsHash_in"])
            and item["ipfsHash"] not in where.get("ipfsHash_not_in", [])
        ]
        return {"subgraphDeployments": self._page(matches, variables)}

    def _deployment_hashes(self, ids: List[str]) -> set:
        return {item["ipfsHash"] for item in self.deployments if item["id"] in ids}

    def _indexers(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        hashes = self._deployment_hashes(variables["deployments"])
        result = []
        for item in self._page(self.indexers, variables):
            allocations = [a for a in item["allocations"] if a["subgraphDeployment"]["ipfsHash"] in hashes]
            result.append({**item, "allocations": allocations})
        return {"indexers": result}

    def _indexer(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        for item in self.indexers:
            if item["id"] == variables["id"]:
                return {"indexer": item}
        return {"indexer": None}

    def _allocations(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        owner = variables["where"]["indexer"]
        allocations: List[Dict[str, Any]] = []
        for item in self.indexers:
            if item["id"] == owner:
                allocations = item["allocations"]
        return {"allocations": self._page(allocations, variables)}

    def _graphNetwork(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        return {"graphNetwork": self.network}


class FakeManagementClient:
    """Records mutations and echoes queued actions back with ids."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[tuple[str, Dict[str, Any]]] = []

    def mutate(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        self.calls.append((document, dict(variables or {})))
        if self.error is not None:
            raise self.error
        actions = (variables or {}).get("actions", [])
        return {"queueActions": [{"id": idx + 1, **action} for idx, action in enumerate(actions)]}


@pytest.fixture
def hashes() -> List[str]:
    return [make_hash(seed) for seed in range(1, 9)]


@pytest.fixture
def network_client() -> FakeNetworkClient:
    """Five deployments; the target indexer holds allocations on 1, 2 and 5."""
    deployments = [
        deployment_payload(1, signal=10_000, stake=500_000),
        deployment_payload(2, signal=20_000, stake=300_000),
        deployment_payload(3, signal=15_000, stake=100_000),
        deployment_payload(4, signal=5_000, stake=0),
        deployment_payload(5, signal=8_000, stake=200_000),
        deployment_payload(6, signal=10, stake=0),  # below the signal threshold
    ]
    indexers = [
        indexer_payload(
            INDEXER_ID,
            staked=1_000_000,
            allocations=[
                allocation_payload("0xa1", 1, 200_000),
                allocation_payload("0xa2", 2, 100_000),
                allocation_payload("0xa5", 5, 50_000),
            ],
        ),
        indexer_payload(
            OTHER_INDEXER_ID,
            staked=2_000_000,
            allocations=[
                allocation_payload("0xb1", 1, 300_000),
                allocation_payload("0xb2", 2, 200_000),
                allocation_payload("0xb3", 3, 100_000),
                allocation_payload("0xb5", 5, 150_000),
            ],
        ),
    ]
    return FakeNetworkClient(deployments, indexers)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        base_dir=tmp_path,
        network_url="http://network.test/network",
        management_url="http://management.test",
        min_signal=1000.0,
        page_size=2,
        optimizer_workers=2,
    )
