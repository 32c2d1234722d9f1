"""Push channel: SSE framing, subscription state machine and client."""

from .client import EventStreamClient
from .routing import classify
from .state import StreamEvent, SubscriptionHandle, SubscriptionState, transition

__all__ = [
    "EventStreamClient",
    "StreamEvent",
    "SubscriptionHandle",
    "SubscriptionState",
    "classify",
    "transition",
]
