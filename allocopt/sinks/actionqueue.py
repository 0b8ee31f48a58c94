"""Deliver actions to the indexer management server's action queue."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from ..errors import GraphQLRequestError, ManagementBoundaryFailure
from ..reconcile import AMOUNT_DECIMALS, Action, Allocate, Reallocate, Unallocate

QUEUE_ACTIONS_MUTATION = """
mutation queueActions($actions: [ActionInput!]!) {
  queueActions(actions: $actions) {
    id
    type
    deploymentID
    allocationID
    amount
    status
    source
    reason
    priority
  }
}
"""

QUEUED = "queued"


class MutationClient(Protocol):
    def mutate(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        ...


def format_amount(amount: float) -> str:
    """GRT amount as a plain decimal string (at most ``AMOUNT_DECIMALS`` places)."""
    text = f"{amount:.{AMOUNT_DECIMALS}f}".rstrip("0").rstrip(".")
    return text or "0"


def to_action_input(action: Action, *, source: str, reason: str, priority: int) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "status": QUEUED,
        "type": action.kind,
        "deploymentID": action.ipfshash,
        "source": source,
        "reason": reason,
        "priority": priority,
    }
    if isinstance(action, (Reallocate, Unallocate)):
        record["allocationID"] = action.allocation_id
    if isinstance(action, (Reallocate, Allocate)):
        record["amount"] = format_amount(action.amount)
    return record


class ActionQueueSink:
    """Queue every action with a single ``queueActions`` mutation."""

    def __init__(
        self,
        client: MutationClient,
        *,
        source: str = "allocopt",
        reason: str = "allocopt",
        priority: int = 0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.source = source
        self.reason = reason
        self.priority = priority
        self.logger = logger or logging.getLogger("allocopt.sinks.actionqueue")

    def serialize(self, actions: Sequence[Action]) -> List[Dict[str, Any]]:
        return [
            to_action_input(action, source=self.source, reason=self.reason, priority=self.priority)
            for action in actions
        ]

    def deliver(self, actions: Sequence[Action]) -> List[Dict[str, Any]]:
        if not actions:
            self.logger.info("No actions to queue")
            return []
        payload = self.serialize(actions)
        try:
            data = self.client.mutate(QUEUE_ACTIONS_MUTATION, {"actions": payload})
        except GraphQLRequestError as exc:
            raise ManagementBoundaryFailure(f"queueActions failed: {exc}") from exc
        queued = data.get("queueActions")
        if not isinstance(queued, list):
            raise ManagementBoundaryFailure("queueActions returned an unexpected payload")
        self.logger.info("Queued %s actions on the management server", len(queued))
        return queued
