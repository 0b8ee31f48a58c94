"""Operator filter lists and the query predicates derived from them."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

from .errors import MalformedFilterListInput
from .ipfs import require_valid_ipfshashes

LIST_COLUMNS: Tuple[str, ...] = ("whitelist", "blacklist", "pinnedlist", "frozenlist")

_LOGGER = logging.getLogger("allocopt.filterlists")


def ordered_union(*sequences: Iterable[str]) -> List[str]:
    """Concatenate ``sequences`` keeping the first occurrence of each item."""
    seen: set[str] = set()
    merged: List[str] = []
    for sequence in sequences:
        for item in sequence:
            if item in seen:
                continue
            seen.add(item)
            merged.append(item)
    return merged


def ipfshash_in(whitelist: Sequence[str], pinnedlist: Sequence[str]) -> List[str]:
    """Deployments a query must be restricted to (empty means no restriction)."""
    return ordered_union(whitelist, pinnedlist)


def ipfshash_not_in(blacklist: Sequence[str], frozenlist: Sequence[str]) -> List[str]:
    """Deployments a query must leave out."""
    return ordered_union(blacklist, frozenlist)


@dataclass(frozen=True)
class FilterLists:
    """The four operator-supplied lists. Overlaps between lists are allowed."""

    whitelist: Tuple[str, ...] = ()
    blacklist: Tuple[str, ...] = ()
    pinnedlist: Tuple[str, ...] = ()
    frozenlist: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in LIST_COLUMNS:
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @classmethod
    def empty(cls) -> "FilterLists":
        return cls()

    def inclusion(self) -> List[str]:
        return ipfshash_in(self.whitelist, self.pinnedlist)

    def exclusion(self) -> List[str]:
        return ipfshash_not_in(self.blacklist, self.frozenlist)

    def validate(self) -> None:
        """Fail the whole batch if any list holds a malformed hash."""
        require_valid_ipfshashes(self.whitelist, self.blacklist, self.pinnedlist, self.frozenlist)

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(getattr(self, name)) for name in LIST_COLUMNS}


def read_filterlists(filepath: str | Path) -> FilterLists:
    """Read the filter-list CSV.

    The header row must name the four list columns; any other column is
    ignored. Rows may be ragged and blank cells are skipped, so each list
    keeps only its non-blank entries in file order.
    """
    path = Path(filepath).expanduser().resolve()
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as fh:
            reader = csv.reader(fh)
            header = next(reader, None)
            if header is None:
                raise MalformedFilterListInput(f"Filter-list file {path} is empty")
            columns = [name.strip() for name in header]
            missing = [name for name in LIST_COLUMNS if name not in columns]
            if missing:
                raise MalformedFilterListInput(
                    f"Filter-list file {path} is missing column(s): {', '.join(missing)}"
                )
            positions = {name: columns.index(name) for name in LIST_COLUMNS}
            lists: Dict[str, List[str]] = {name: [] for name in LIST_COLUMNS}
            for row in reader:
                for name, idx in positions.items():
                    if idx >= len(row):
                        continue
                    cell = row[idx].strip()
                    if cell:
                        lists[name].append(cell)
    except OSError as exc:
        raise MalformedFilterListInput(f"Cannot read filter-list file {path}: {exc}") from exc
    except csv.Error as exc:
        raise MalformedFilterListInput(f"Cannot parse filter-list file {path}: {exc}") from exc

    _LOGGER.debug(
        "Filter lists loaded from %s: %s",
        path,
        {name: len(values) for name, values in lists.items()},
    )
    return FilterLists(**lists)
