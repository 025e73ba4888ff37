"""
Minimal event plumbing shared by the runtime objects and the capture services.

Decoding elements and recorders report progress through named events
("loadedmetadata", "error", "ended", "dataavailable", "stop"). The capture
services never poll; they suspend on `wait_for_event` until exactly one of a
success/error pair fires.
"""
import asyncio
from collections import defaultdict
from typing import Any, Callable


class EventFailed(Exception):
    """Raised from `wait_for_event` when the paired error event fires first."""

    def __init__(self, event: str, detail: Any = None):
        self.event = event
        self.detail = detail
        message = f"'{event}' event fired"
        if detail is not None:
            message += f": {detail}"
        super().__init__(message)


class EventEmitter:
    """A small synchronous listener registry, in the style of DOM event targets."""

    def __init__(self):
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: str, listener: Callable[..., Any]):
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Callable[..., Any]):
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any):
        # Copy so listeners may unregister themselves while being called.
        for listener in list(self._listeners.get(event, ())):
            listener(*args)


def wait_for_event(emitter: EventEmitter, event: str, error_event: str = "error") -> asyncio.Future:
    """
    Returns a future settled by the first of `event` or `error_event`.

    Listeners are registered immediately, so the caller can create the future
    first and then trigger the action that emits the event. Both listeners are
    removed as soon as the future is done, including when it is cancelled, so a
    late second event can never settle it twice.

    The future resolves with the event's single argument (or a tuple of its
    arguments, or None when there are none). When `error_event` fires first it
    fails with `EventFailed`, whose `detail` is the error event's argument.
    """
    future = asyncio.get_running_loop().create_future()

    def on_event(*args: Any):
        if not future.done():
            if not args:
                future.set_result(None)
            elif len(args) == 1:
                future.set_result(args[0])
            else:
                future.set_result(args)

    def on_error(*args: Any):
        if not future.done():
            future.set_exception(EventFailed(error_event, args[0] if args else None))

    def cleanup(_: asyncio.Future):
        emitter.off(event, on_event)
        emitter.off(error_event, on_error)

    emitter.on(event, on_event)
    emitter.on(error_event, on_error)
    future.add_done_callback(cleanup)
    return future
