"""Action sinks: the remote action queue and local CLI directives."""

from .actionqueue import QUEUE_ACTIONS_MUTATION, ActionQueueSink, format_amount, to_action_input
from .directives import DirectiveSink, render_directive

__all__ = [
    "QUEUE_ACTIONS_MUTATION",
    "ActionQueueSink",
    "format_amount",
    "to_action_input",
    "DirectiveSink",
    "render_directive",
]
