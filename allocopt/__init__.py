"""Indexer allocation optimisation and reconciliation."""

from .config import AppConfig, load_app_config
from .errors import (
    AllocOptError,
    InvalidAllocationLifetime,
    InvalidHashFormat,
    MalformedFilterListInput,
    MalformedResponse,
    ManagementBoundaryFailure,
    NetworkSourceFailure,
    GraphQLRequestError,
    OptimizerContractError,
)
from .filterlists import FilterLists, ipfshash_in, ipfshash_not_in, ordered_union, read_filterlists
from .ipfs import is_valid_ipfshash, require_valid_ipfshashes, verify_ipfshashes
from .reconcile import Action, Allocate, Reallocate, Unallocate, reconcile
from .service import AllocationService, RunPlan

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "load_app_config",
    "AllocOptError",
    "InvalidAllocationLifetime",
    "InvalidHashFormat",
    "MalformedFilterListInput",
    "MalformedResponse",
    "ManagementBoundaryFailure",
    "NetworkSourceFailure",
    "GraphQLRequestError",
    "OptimizerContractError",
    "FilterLists",
    "ipfshash_in",
    "ipfshash_not_in",
    "ordered_union",
    "read_filterlists",
    "is_valid_ipfshash",
    "require_valid_ipfshashes",
    "verify_ipfshashes",
    "Action",
    "Allocate",
    "Reallocate",
    "Unallocate",
    "reconcile",
    "AllocationService",
    "RunPlan",
]
