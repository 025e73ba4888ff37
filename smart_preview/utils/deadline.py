"""
A cancellable wall-clock deadline.

The timed trimmer bounds a capture by arming a `Deadline` when recording
starts. When it fires it calls back into the same stop path a natural end of
playback uses, so "finished early" and "timed out" share their cleanup.
"""
import asyncio
from typing import Callable, Optional

from loguru import logger


class Deadline:
    """
    Fires `callback` once, `seconds` after `start()`, unless cancelled first.

    Attributes:
        seconds (float): Delay between `start()` and firing.
        fired (bool): True once the callback has run.
    """

    def __init__(self, seconds: float, callback: Callable[[], None]):
        self.seconds = seconds
        self.callback = callback
        self.fired = False
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None and not self.fired

    def start(self):
        if self._handle is not None:
            raise RuntimeError("Deadline already started")
        self._handle = asyncio.get_running_loop().call_later(self.seconds, self._fire)
        logger.debug(f"Deadline armed for {self.seconds}s")

    def cancel(self):
        if self._handle is not None and not self.fired:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self.fired = True
        logger.debug(f"Deadline of {self.seconds}s reached")
        self.callback()


DeadlineFactory = Callable[[float, Callable[[], None]], Deadline]
