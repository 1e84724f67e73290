"""
Event bus for RoomChat.

In-memory asyncio pub/sub keyed on event class. Publishing never blocks:
events are queued and delivered by a background task that starts on the
first publish. Subscriber failures are logged and never reach the
publisher.
"""

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Callable
from typing import Any, TypeVar

from ..structured_logging.enhanced_logging_config import get_logger
from .event_types import BaseEvent

T = TypeVar("T", bound=BaseEvent)

logger = get_logger(__name__)


class EventBus:
    """
    Pure asyncio event bus.

    Events are processed in publish order by a single processing task.
    Sync subscribers run inline; async subscribers for one event run
    concurrently and are awaited before the next event is taken.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[BaseEvent], list[Callable[[Any], Any]]] = defaultdict(list)
        self._event_queue: asyncio.Queue[BaseEvent | None] = asyncio.Queue()
        self._running: bool = False
        self._processing_task: asyncio.Task | None = None

    def _ensure_async_processing(self) -> None:
        """Start the processing task if it is not running and a loop is available."""
        if self._running:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError as e:
            logger.warning(
                "EventBus will start processing on first publish when event loop available",
                error=str(e),
            )
            return
        self._running = True
        self._processing_task = asyncio.create_task(self._process_events_async(), name="roomchat-event-bus")
        logger.debug("EventBus processing started")

    async def _process_events_async(self) -> None:
        """Drain the queue until a sentinel arrives or the task is cancelled."""
        try:
            while True:
                event = await self._event_queue.get()
                try:
                    if event is None:
                        break
                    await self._handle_event_async(event)
                except Exception as e:  # pylint: disable=broad-exception-caught
                    logger.error("Error processing event", error=str(e), exc_info=True)
                finally:
                    self._event_queue.task_done()
        except asyncio.CancelledError:
            pass
        finally:
            self._running = False
            logger.debug("EventBus processing stopped")

    async def _handle_event_async(self, event: BaseEvent) -> None:
        """Call every subscriber registered for the event's exact type."""
        event_type = type(event)
        subscribers = list(self._subscribers.get(event_type, []))

        if not subscribers:
            logger.debug("No subscribers for event type", event_type=event.event_type)
            return

        async_subscribers = []
        for subscriber in subscribers:
            if inspect.iscoroutinefunction(subscriber):
                async_subscribers.append(subscriber)
                continue
            try:
                subscriber(event)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error(
                    "Error in sync event subscriber",
                    subscriber_name=getattr(subscriber, "__name__", "unknown"),
                    error=str(e),
                )

        if not async_subscribers:
            return

        results = await asyncio.gather(*(subscriber(event) for subscriber in async_subscribers), return_exceptions=True)
        for subscriber, result in zip(async_subscribers, results, strict=True):
            if isinstance(result, Exception):
                logger.error(
                    "Error in async subscriber",
                    subscriber_name=getattr(subscriber, "__name__", "unknown"),
                    error=str(result),
                    error_type=type(result).__name__,
                )

    def publish(self, event: BaseEvent) -> None:
        """
        Publish an event to the bus.

        Args:
            event: The event to publish

        Raises:
            ValueError: If event is not a BaseEvent
        """
        if not isinstance(event, BaseEvent):
            raise ValueError("Event must inherit from BaseEvent")

        self._ensure_async_processing()
        self._event_queue.put_nowait(event)
        logger.debug("Published event to queue", event_type=event.event_type, queue_size=self._event_queue.qsize())

    def subscribe(self, event_type: type[T], handler: Callable[[T], Any]) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: The type of event to subscribe to
            handler: Sync or async callable invoked with the event
        """
        if not issubclass(event_type, BaseEvent):
            raise ValueError("Event type must inherit from BaseEvent")
        if not callable(handler):
            raise ValueError("Handler must be callable")

        self._subscribers[event_type].append(handler)
        logger.debug("Added subscriber for event type", event_type=event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], Any]) -> bool:
        """
        Unsubscribe from events of a specific type.

        Returns:
            True if the handler was found and removed, False otherwise
        """
        subscribers = self._subscribers.get(event_type, [])
        try:
            subscribers.remove(handler)
            return True
        except ValueError:
            return False

    def get_subscriber_count(self, event_type: type[BaseEvent]) -> int:
        return len(self._subscribers.get(event_type, []))

    async def wait_until_idle(self) -> None:
        """Wait until every event published so far has been delivered."""
        if self._running:
            await self._event_queue.join()

    async def shutdown(self) -> None:
        """Deliver queued events, then stop the processing task."""
        if not self._running or self._processing_task is None:
            return
        self._event_queue.put_nowait(None)
        try:
            await asyncio.wait_for(self._processing_task, timeout=2.0)
        except TimeoutError:
            self._processing_task.cancel()
            logger.warning("EventBus shutdown timed out; processing task cancelled")
        self._processing_task = None
        logger.info("EventBus shut down")
