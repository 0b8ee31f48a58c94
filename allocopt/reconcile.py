"""Turn proposed allocations into actions against the open allocations.

Every deployment hash lands in exactly one bucket:

* proposed and already open  -> ``Reallocate`` (close then reopen, even when
  the amount would not change)
* proposed only              -> ``Allocate``
* open only                  -> ``Unallocate``

Extra open allocations on an already mapped deployment are closed on top of
that. Frozen hashes are dropped from every bucket. Actions come out grouped in
that order: reallocations, then allocations, then unallocations.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, List, Mapping, Tuple, Union

REALLOCATE = "reallocate"
ALLOCATE = "allocate"
UNALLOCATE = "unallocate"

# GRT amounts travel as decimal strings with this many places.
AMOUNT_DECIMALS = 6


@dataclass(frozen=True, slots=True)
class Reallocate:
    ipfshash: str
    allocation_id: str
    amount: float
    kind: ClassVar[str] = REALLOCATE


@dataclass(frozen=True, slots=True)
class Allocate:
    ipfshash: str
    amount: float
    kind: ClassVar[str] = ALLOCATE


@dataclass(frozen=True, slots=True)
class Unallocate:
    ipfshash: str
    allocation_id: str
    kind: ClassVar[str] = UNALLOCATE


Action = Union[Reallocate, Allocate, Unallocate]


def reconcile(
    proposed: Mapping[str, float],
    existing: Mapping[str, str],
    frozenlist: Iterable[str] = (),
    surplus: Iterable[Tuple[str, str]] = (),
) -> List[Action]:
    """Diff ``proposed`` (hash -> amount) against ``existing`` (hash -> allocation id).

    ``surplus`` holds ``(hash, allocation id)`` pairs for extra open allocations
    on a deployment that ``existing`` already maps; each one is closed after the
    regular unallocations.
    """
    frozen = set(frozenlist)
    reallocations: List[Action] = []
    allocations: List[Action] = []
    for ipfshash, amount in proposed.items():
        if ipfshash in frozen:
            continue
        if ipfshash in existing:
            reallocations.append(Reallocate(ipfshash, existing[ipfshash], amount))
        else:
            allocations.append(Allocate(ipfshash, amount))
    unallocations: List[Action] = [
        Unallocate(ipfshash, allocation_id)
        for ipfshash, allocation_id in existing.items()
        if ipfshash not in proposed and ipfshash not in frozen
    ]
    unallocations.extend(
        Unallocate(ipfshash, allocation_id) for ipfshash, allocation_id in surplus if ipfshash not in frozen
    )
    return reallocations + allocations + unallocations


def summarize(actions: Iterable[Action]) -> Dict[str, int]:
    counts = Counter(action.kind for action in actions)
    return {kind: counts.get(kind, 0) for kind in (REALLOCATE, ALLOCATE, UNALLOCATE)}
