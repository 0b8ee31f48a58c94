"""Network subgraph reads used to build a snapshot."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from ..errors import GraphQLRequestError, MalformedResponse, NetworkSourceFailure
from .models import Allocation, Indexer, NetworkParameters, Subgraph
from .schema import (
    AllocationRecord,
    GraphNetworkRecord,
    IndexerRecord,
    SubgraphDeploymentRecord,
    records,
    to_wei,
)

_LOGGER = logging.getLogger("allocopt.network.queries")

DEFAULT_PAGE_SIZE = 1000

_ALLOCATION_FIELDS = """
    id
    allocatedTokens
    createdAtEpoch
    subgraphDeployment { ipfsHash }
"""

_INDEXER_FIELDS = """
    id
    stakedTokens
    delegatedTokens
    lockedTokens
    indexingRewardCut
"""

SUBGRAPH_DEPLOYMENTS_QUERY = """
query subgraphDeployments($first: Int!, $where: SubgraphDeployment_filter!) {
  subgraphDeployments(first: $first, orderBy: id, orderDirection: asc, where: $where) {
    id
    ipfsHash
    signalledTokens
    stakedTokens
  }
}
"""

INDEXERS_QUERY = (
    """
query indexers($first: Int!, $where: Indexer_filter!, $deployments: [String!]!) {
  indexers(first: $first, orderBy: id, orderDirection: asc, where: $where) {"""
    + _INDEXER_FIELDS
    + """
    allocations(first: 1000, where: {status: Active, subgraphDeployment_in: $deployments}) {"""
    + _ALLOCATION_FIELDS
    + """    }
  }
}
"""
)

INDEXER_QUERY = (
    """
query indexer($id: ID!) {
  indexer(id: $id) {"""
    + _INDEXER_FIELDS
    + """
    allocations(first: 1000, where: {status: Active}) {"""
    + _ALLOCATION_FIELDS
    + """    }
  }
}
"""
)

ALLOCATIONS_QUERY = (
    """
query allocations($first: Int!, $where: Allocation_filter!) {
  allocations(first: $first, orderBy: id, orderDirection: asc, where: $where) {"""
    + _ALLOCATION_FIELDS
    + """  }
}
"""
)

GRAPH_NETWORK_QUERY = """
query graphNetwork($id: ID!) {
  graphNetwork(id: $id) {
    id
    totalSupply
    networkGRTIssuancePerBlock
    epochLength
    totalTokensSignalled
    totalTokensStaked
    currentEpoch
  }
}
"""


class QueryClient(Protocol):
    def query(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        ...


def _run(client: QueryClient, document: str, variables: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        return client.query(document, variables)
    except GraphQLRequestError as exc:
        raise NetworkSourceFailure(f"Network subgraph query failed: {exc}") from exc


def _paginate(
    client: QueryClient,
    document: str,
    key: str,
    where: Mapping[str, Any],
    *,
    page_size: int,
    extra: Optional[Mapping[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """Walk a collection with ``id_gt`` cursors until a short page comes back."""
    results: List[Dict[str, Any]] = []
    last_id = ""
    while True:
        variables: Dict[str, Any] = {"first": page_size, "where": {**where, "id_gt": last_id}}
        if extra:
            variables.update(extra)
        page = records(_run(client, document, variables), key)
        results.extend(page)
        if len(page) < page_size:
            return results
        last = page[-1]
        if not isinstance(last, Mapping) or not last.get("id"):
            raise MalformedResponse(f"{key}: page entry without id, cannot continue pagination")
        last_id = str(last["id"])


def subgraph_filter(
    ipfshash_in: Sequence[str],
    ipfshash_not_in: Sequence[str],
    *,
    min_signal: float,
) -> Dict[str, Any]:
    """Build the ``where`` clause; empty predicate lists are left out entirely."""
    where: Dict[str, Any] = {"signalledTokens_gte": to_wei(min_signal)}
    if ipfshash_in:
        where["ipfsHash_in"] = list(ipfshash_in)
    if ipfshash_not_in:
        where["ipfsHash_not_in"] = list(ipfshash_not_in)
    return where


def query_subgraphs(
    client: QueryClient,
    ipfshash_in: Sequence[str],
    ipfshash_not_in: Sequence[str],
    *,
    min_signal: float = 0.0,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[Subgraph]:
    where = subgraph_filter(ipfshash_in, ipfshash_not_in, min_signal=min_signal)
    payload = _paginate(client, SUBGRAPH_DEPLOYMENTS_QUERY, "subgraphDeployments", where, page_size=page_size)
    subgraphs = [SubgraphDeploymentRecord.from_payload(item).to_model() for item in payload]
    _LOGGER.debug("Fetched %s subgraph deployments (in=%s, not_in=%s)", len(subgraphs), len(ipfshash_in), len(ipfshash_not_in))
    return subgraphs


def query_indexers(
    client: QueryClient,
    subgraphs: Iterable[Subgraph],
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[Indexer]:
    """Indexers with active allocations on ``subgraphs``, allocations restricted to them."""
    deployment_ids = [subgraph.id for subgraph in subgraphs]
    if not deployment_ids:
        return []
    payload = _paginate(
        client,
        INDEXERS_QUERY,
        "indexers",
        {"allocationCount_gt": 0},
        page_size=page_size,
        extra={"deployments": deployment_ids},
    )
    indexers = [IndexerRecord.from_payload(item).to_model() for item in payload]
    return [indexer for indexer in indexers if indexer.allocations]


def query_indexer(client: QueryClient, indexer_id: str) -> Indexer:
    data = _run(client, INDEXER_QUERY, {"id": indexer_id.lower()})
    payload = data.get("indexer")
    if payload is None:
        raise NetworkSourceFailure(f"Indexer {indexer_id} not found on the network subgraph")
    return IndexerRecord.from_payload(payload).to_model()


def query_indexer_allocations(
    client: QueryClient,
    indexer_id: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[Allocation]:
    """Active allocations of one indexer, regardless of any filter list."""
    owner = indexer_id.lower()
    payload = _paginate(
        client,
        ALLOCATIONS_QUERY,
        "allocations",
        {"indexer": owner, "status": "Active"},
        page_size=page_size,
    )
    return [AllocationRecord.from_payload(item).to_model(owner) for item in payload]


def frozen_stake(allocations: Iterable[Allocation], frozenlist: Iterable[str]) -> float:
    """GRT locked in allocations on frozen deployments."""
    frozen = set(frozenlist)
    return sum(allocation.amount for allocation in allocations if allocation.ipfshash in frozen)


def network_parameters(client: QueryClient, network_id: int) -> NetworkParameters:
    data = _run(client, GRAPH_NETWORK_QUERY, {"id": str(network_id)})
    payload = data.get("graphNetwork")
    if payload is None:
        raise NetworkSourceFailure(f"Graph network {network_id} not found on the network subgraph")
    return GraphNetworkRecord.from_payload(payload).to_model()
