"""
Event-driven communication for the photoedit core.

Provides a publish-subscribe event bus so that callers (a UI, an IPC bridge,
a CLI) can follow batch jobs without polling. Supports sync and async handlers.

Usage:
    from photoedit.core.events import get_event_bus

    bus = get_event_bus()

    @bus.on("batch.job.finished")
    def on_finished(event):
        print(f"{event.job_id} finished as {event.status}")
"""

import asyncio
import inspect
import threading
import weakref
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from photoedit.core.logging import get_logger

logger = get_logger(__name__)


class Event(BaseModel):
    """Base event class for all system events.

    Attributes:
        event_type: Unique identifier for the event type.
        timestamp: When the event was created.
        metadata: Additional event metadata.
    """

    event_type: str = Field(description="Event type identifier")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Event creation timestamp"
    )
    metadata: dict[str, Any] = Field(default_factory=dict, description="Additional event metadata")

    model_config = {"extra": "allow"}


SyncHandler = Callable[[Event], None]
AsyncHandler = Callable[[Event], Awaitable[None]]
Handler = SyncHandler | AsyncHandler


class EventBus:
    """Publish-subscribe event bus for component communication.

    Singleton pattern - use EventBus() to get the shared instance.
    Batch events are published from worker threads, so the subscriber
    tables are guarded by a lock and handlers run on the publishing thread.

    Features:
    - Sync and async handler support
    - Weak references to prevent memory leaks
    - Wildcard subscriptions ("batch.*", "*")
    - Error isolation (one handler failure doesn't affect others)
    """

    _instance: "EventBus | None" = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "EventBus":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._subscribers = defaultdict(list)
                instance._weak_subscribers = defaultdict(list)
                instance._lock = threading.RLock()
                cls._instance = instance
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (primarily for testing).

        Warning: This will clear all subscriptions.
        """
        with cls._instance_lock:
            cls._instance = None

    def subscribe(
        self,
        event_type: str,
        handler: Handler,
        *,
        weak: bool = False,
    ) -> Callable[[], None]:
        """Subscribe a handler to an event type.

        Args:
            event_type: Event type to subscribe to. Supports wildcards:
                - "batch.job.finished" - exact match
                - "batch.*" - matches all batch events
                - "*" - matches all events
            handler: Function to call when event is published.
            weak: Use weak reference (handler removed when object is collected).

        Returns:
            Unsubscribe function - call to remove the subscription.
        """
        with self._lock:
            if weak:
                ref = weakref.ref(handler)
                self._weak_subscribers[event_type].append(ref)
                logger.debug(f"Subscribed (weak) to {event_type}: {handler.__name__}")

                def unsubscribe():
                    with self._lock:
                        if ref in self._weak_subscribers[event_type]:
                            self._weak_subscribers[event_type].remove(ref)

                return unsubscribe

            self._subscribers[event_type].append(handler)
            logger.debug(f"Subscribed to {event_type}: {handler.__name__}")

        def unsubscribe():
            self.unsubscribe(event_type, handler)

        return unsubscribe

    def unsubscribe(self, event_type: str, handler: Handler) -> bool:
        """Remove a handler subscription.

        Returns:
            True if handler was found and removed, False otherwise.
        """
        with self._lock:
            if handler in self._subscribers[event_type]:
                self._subscribers[event_type].remove(handler)
                logger.debug(f"Unsubscribed from {event_type}: {handler.__name__}")
                return True
        return False

    def on(self, event_type: str) -> Callable[[Handler], Handler]:
        """Decorator for subscribing handlers."""

        def decorator(handler: Handler) -> Handler:
            self.subscribe(event_type, handler)
            return handler

        return decorator

    @staticmethod
    def _matches(pattern: str, event_type: str) -> bool:
        if pattern == "*" or pattern == event_type:
            return True
        return pattern.endswith(".*") and event_type.startswith(pattern[:-1])

    def _get_handlers(self, event_type: str) -> list[Handler]:
        """Get all handlers matching an event type, dropping dead weak refs."""
        handlers: list[Handler] = []
        with self._lock:
            for pattern, pattern_handlers in self._subscribers.items():
                if self._matches(pattern, event_type):
                    handlers.extend(pattern_handlers)

            for pattern, weak_refs in self._weak_subscribers.items():
                if not self._matches(pattern, event_type):
                    continue
                alive_refs = []
                for ref in weak_refs:
                    handler = ref()
                    if handler is not None:
                        handlers.append(handler)
                        alive_refs.append(ref)
                self._weak_subscribers[pattern] = alive_refs

        return handlers

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        Handlers are called synchronously in order of subscription.
        Errors in handlers are logged but don't prevent other handlers
        from being called.
        """
        handlers = self._get_handlers(event.event_type)
        logger.debug(f"Publishing {event.event_type} to {len(handlers)} handlers")

        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    try:
                        loop = asyncio.get_running_loop()
                        loop.create_task(handler(event))
                    except RuntimeError:
                        asyncio.run(handler(event))
                else:
                    handler(event)
            except Exception as e:
                logger.exception(f"Handler {handler.__name__} failed for {event.event_type}: {e}")

    def clear(self, event_type: str | None = None) -> None:
        """Clear all subscribers for an event type or all events."""
        with self._lock:
            if event_type:
                self._subscribers[event_type].clear()
                self._weak_subscribers[event_type].clear()
                logger.debug(f"Cleared subscribers for {event_type}")
            else:
                self._subscribers.clear()
                self._weak_subscribers.clear()
                logger.debug("Cleared all subscribers")


class BatchJobQueued(Event):
    """Emitted when a job enters the admission queue."""

    event_type: str = "batch.job.queued"
    job_id: str
    queue_length: int


class BatchJobStarted(Event):
    """Emitted when a job is admitted and starts processing."""

    event_type: str = "batch.job.started"
    job_id: str
    total_files: int


class BatchFileProcessed(Event):
    """Emitted after a file of a job was exported successfully."""

    event_type: str = "batch.file.processed"
    job_id: str
    input_file: str
    output_file: str
    progress: int


class BatchFileFailed(Event):
    """Emitted after a file of a job failed; the job keeps going."""

    event_type: str = "batch.file.failed"
    job_id: str
    input_file: str
    error: str
    progress: int


class BatchJobFinished(Event):
    """Emitted when a job reaches a terminal status after processing."""

    event_type: str = "batch.job.finished"
    job_id: str
    status: str
    processed_files: int
    error_count: int


class BatchJobCancelled(Event):
    """Emitted when a pending job is cancelled."""

    event_type: str = "batch.job.cancelled"
    job_id: str


def get_event_bus() -> EventBus:
    """Get the global event bus instance."""
    return EventBus()
