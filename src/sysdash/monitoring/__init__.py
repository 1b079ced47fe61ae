"""
Server-side real-time delivery: subscriber registry and broadcast loop.
"""

from .broadcaster import BroadcastLoop, BroadcastState, BroadcastStats
from .registry import Subscriber, SubscriberRegistry, WebSocketSubscriber

__all__ = [
    "BroadcastLoop",
    "BroadcastState",
    "BroadcastStats",
    "Subscriber",
    "SubscriberRegistry",
    "WebSocketSubscriber",
]
