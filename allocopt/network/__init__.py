"""Network subgraph access: client, typed records, queries and snapshots."""

from .client import GraphQLClient, GraphQLRequestError
from .models import Allocation, Indexer, NetworkParameters, Repository, Subgraph
from .queries import (
    frozen_stake,
    network_parameters,
    query_indexer,
    query_indexer_allocations,
    query_indexers,
    query_subgraphs,
)
from .snapshot import Diagnostic, NetworkSnapshot, SnapshotBuilder, detach_indexer, read_repository

__all__ = [
    "GraphQLClient",
    "GraphQLRequestError",
    "Allocation",
    "Indexer",
    "NetworkParameters",
    "Repository",
    "Subgraph",
    "frozen_stake",
    "network_parameters",
    "query_indexer",
    "query_indexer_allocations",
    "query_indexers",
    "query_subgraphs",
    "Diagnostic",
    "NetworkSnapshot",
    "SnapshotBuilder",
    "detach_indexer",
    "read_repository",
]
