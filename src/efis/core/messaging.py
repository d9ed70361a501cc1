"""Priority message queue between display components.

Components publish messages on topics and receive them from the queue
once per frame. The terrain plugin consumes position fixes this way and
publishes elevation and availability updates for the renderer.

Typical usage example:
    from efis.core.messaging import Message, MessageQueue, MessageTopic

    queue = MessageQueue()
    queue.subscribe(MessageTopic.TERRAIN_UPDATED, on_terrain)
    queue.publish(Message(
        sender="gps",
        recipients=["*"],
        topic=MessageTopic.POSITION_UPDATED,
        data={"latitude": -10.5, "longitude": 100.5, "altitude_m": 1500.0},
    ))
    queue.process()
"""

import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from queue import Empty, PriorityQueue
from typing import Any

_sequence = itertools.count()


class MessagePriority(Enum):
    """Priority levels for messages, processed CRITICAL first."""

    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass(order=True)
class Message:
    """A message between components.

    Messages of equal priority are delivered in publication order.

    Attributes:
        priority: Message priority value (lower is processed first).
        sequence: Publication order tie-breaker.
        timestamp: Unix timestamp when the message was created.
        sender: Name of the sending component.
        recipients: Recipient names, or ["*"] for broadcast.
        topic: Message topic (see MessageTopic).
        data: Message payload.
    """

    priority: int = field(compare=True)
    sequence: int = field(compare=True)
    timestamp: float = field(compare=False)
    sender: str = field(default="", compare=False)
    recipients: list[str] = field(default_factory=list, compare=False)
    topic: str = field(default="", compare=False)
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    def __init__(
        self,
        sender: str,
        recipients: list[str],
        topic: str,
        data: dict[str, Any],
        priority: MessagePriority = MessagePriority.NORMAL,
    ) -> None:
        """Initialize a message.

        Args:
            sender: Name of the sending component.
            recipients: Recipient names.
            topic: Message topic.
            data: Message payload.
            priority: Message priority (defaults to NORMAL).
        """
        self.priority = priority.value
        self.sequence = next(_sequence)
        self.timestamp = time.time()
        self.sender = sender
        self.recipients = recipients
        self.topic = topic
        self.data = data


class MessageTopic:
    """Well-known topic names."""

    # Position source
    POSITION_UPDATED = "flight.position_updated"

    # Terrain
    TERRAIN_UPDATED = "terrain.updated"
    TERRAIN_STATUS = "terrain.status"


class MessageQueue:
    """Queue that dispatches messages to topic subscribers in priority order.

    Examples:
        >>> queue = MessageQueue()
        >>> queue.subscribe("terrain.updated", lambda msg: print(msg.data["elevation"]))
        >>> queue.publish(Message("terrain", ["*"], "terrain.updated", {"elevation": 412}))
        >>> queue.process()
        412
        1
    """

    def __init__(self) -> None:
        """Initialize an empty queue."""
        self._queue: PriorityQueue[Message] = PriorityQueue()
        self._subscriptions: dict[str, list[Callable[[Message], None]]] = {}

    def subscribe(self, topic: str, handler: Callable[[Message], None]) -> None:
        """Subscribe a handler to a topic."""
        self._subscriptions.setdefault(topic, []).append(handler)

    def unsubscribe(self, topic: str, handler: Callable[[Message], None]) -> None:
        """Remove a handler from a topic. Unknown handlers are ignored."""
        if topic in self._subscriptions:
            self._subscriptions[topic] = [h for h in self._subscriptions[topic] if h != handler]
            if not self._subscriptions[topic]:
                del self._subscriptions[topic]

    def publish(self, message: Message) -> None:
        """Queue a message for the next ``process`` call."""
        self._queue.put(message)

    def process(self, max_messages: int = 100) -> int:
        """Dispatch queued messages.

        Args:
            max_messages: Upper bound per call, so messages published by
                handlers cannot loop forever.

        Returns:
            Number of messages processed.
        """
        processed = 0

        while processed < max_messages:
            try:
                message = self._queue.get_nowait()
            except Empty:
                break
            for handler in list(self._subscriptions.get(message.topic, [])):
                handler(message)
            processed += 1

        return processed
