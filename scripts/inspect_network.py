#!/usr/bin/env python3
"""
Inspect what the optimizer would see, without computing or queueing anything.

Examples:
    python scripts/inspect_network.py snapshot --indexer 0xabc... --filepath lists.csv
    python scripts/inspect_network.py filters --filepath lists.csv
    python scripts/inspect_network.py network --network-id 1
"""

from __future__ import annotations

import argparse
from pathlib import Path

from allocopt.config import AppConfig
from allocopt.errors import AllocOptError
from allocopt.filterlists import FilterLists, read_filterlists
from allocopt.network import GraphQLClient, SnapshotBuilder, network_parameters
from allocopt.services import configure_http, configure_logging


def _client(config: AppConfig, args) -> GraphQLClient:
    return GraphQLClient(args.network_url or config.network_url)


def command_filters(config: AppConfig, args) -> None:
    lists = read_filterlists(args.filepath)
    lists.validate()
    for name, hashes in lists.as_dict().items():
        print(f"{name}: {len(hashes)}")
        for ipfshash in hashes:
            print(f"  {ipfshash}")


def command_network(config: AppConfig, args) -> None:
    params = network_parameters(_client(config, args), args.network_id or config.network_id)
    print(f"Network {params.id} at epoch {params.current_epoch}")
    print(f"  Issuance per block: {params.issuance_per_block:.4f} GRT")
    print(f"  Blocks per epoch: {params.blocks_per_epoch}")
    print(f"  Signalled: {params.total_tokens_signalled:.2f} GRT")
    print(f"  Staked: {params.total_tokens_staked:.2f} GRT")


def command_snapshot(config: AppConfig, args) -> None:
    lists = read_filterlists(args.filepath) if args.filepath else FilterLists.empty()
    builder = SnapshotBuilder(
        _client(config, args),
        network_id=args.network_id or config.network_id,
        min_signal=config.min_signal,
        page_size=config.page_size,
    )
    snapshot = builder.build(args.indexer, lists)
    print(f"Indexer {snapshot.indexer.id}")
    print(f"  Stake available: {snapshot.indexer.stake:.2f} GRT (frozen {snapshot.frozen_stake:.2f} GRT)")
    print(f"  Candidate deployments: {len(snapshot.repository)} of {len(snapshot.full_repository)}")
    print("  Open allocations:")
    for allocation in snapshot.open_allocations:
        marker = " (frozen)" if allocation.ipfshash in snapshot.frozenlist else ""
        print(f"    {allocation.id} {allocation.ipfshash} {allocation.amount:.2f} GRT{marker}")
    for diagnostic in snapshot.diagnostics:
        print(f"  [{diagnostic.level}] {diagnostic.code}: {diagnostic.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect network state and filter lists.")
    parser.add_argument("--network-url", help="Network subgraph endpoint (defaults to ALLOCOPT_NETWORK_URL).")
    parser.add_argument("--network-id", type=int, help="Graph network id (defaults to ALLOCOPT_NETWORK_ID).")
    sub = parser.add_subparsers(dest="command", required=True)

    filters = sub.add_parser("filters", help="Parse and validate a filter list CSV.")
    filters.add_argument("--filepath", type=Path, required=True)
    filters.set_defaults(func=command_filters)

    network = sub.add_parser("network", help="Print network-wide parameters.")
    network.set_defaults(func=command_network)

    snapshot = sub.add_parser("snapshot", help="Print the snapshot for one indexer.")
    snapshot.add_argument("--indexer", required=True)
    snapshot.add_argument("--filepath", type=Path)
    snapshot.set_defaults(func=command_snapshot)
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    config = AppConfig.load()
    configure_logging(level=config.log_level)
    configure_http(config.http_settings())
    try:
        args.func(config, args)
    except AllocOptError as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main()
