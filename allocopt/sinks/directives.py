"""Render actions as indexer CLI commands for manual execution."""

from __future__ import annotations

from typing import List, Sequence

from ..reconcile import Action, Allocate, Reallocate, Unallocate
from .actionqueue import format_amount

COMMAND_PREFIX = "graph indexer allocations"


def render_directive(action: Action) -> str:
    if isinstance(action, Reallocate):
        return f"{COMMAND_PREFIX} reallocate {action.allocation_id} {format_amount(action.amount)}"
    if isinstance(action, Allocate):
        return f"{COMMAND_PREFIX} create {action.ipfshash} {format_amount(action.amount)}"
    if isinstance(action, Unallocate):
        return f"{COMMAND_PREFIX} close {action.allocation_id}"
    raise TypeError(f"Unsupported action: {action!r}")


class DirectiveSink:
    """Produce one command per action; performs no I/O."""

    def deliver(self, actions: Sequence[Action]) -> List[str]:
        return [render_directive(action) for action in actions]
