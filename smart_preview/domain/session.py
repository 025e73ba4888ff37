"""
Defines the state of a single capture (play-and-record) operation.
"""

from typing import Any, Optional

from loguru import logger

from ..config.common import (
    SESSION_STATUS_CAPTURING,
    SESSION_STATUS_FAILED,
    SESSION_STATUS_PENDING,
    SESSION_STATUS_STOPPING,
)
from .media import MediaAsset, MediaKind


class CaptureSession:
    """
    Owns every runtime resource of one transcode or trim operation.

    A session holds one decoding element bound to a temporary resource handle,
    the live stream captured from that element, the recorder bound to the stream,
    and the encoded chunks received so far, in arrival order.

    Lifecycle:
    1. `open()` creates the handle and the element (video output is muted
       unless the session records audio from a video).
    2. The capture service attaches the stream and the recorder, then plays.
    3. `request_stop()` is called on deadline or on a playback error. It stops
       the recorder and pauses playback; the recorder then delivers its
       remaining data followed by its "stop" event. On natural end
       `on_playback_ended()` lets a recorder that drains its input finish
       by itself instead.
    4. `release()` stops every stream track and revokes the handle. It runs
       exactly once however many exit paths reach it.

    Attributes:
        asset (MediaAsset): The source being captured.
        kind (MediaKind): AUDIO or VIDEO.
        status (str): One of the SESSION_STATUS_* constants from `config.common`.
        chunks (list[bytes]): Encoded data received from the recorder.
        playback_error (Any): Detail of an element error seen mid-capture, if any.
    """

    def __init__(self, runtime: Any, asset: MediaAsset, kind: MediaKind, mute_video: bool = True):
        self.runtime = runtime
        self.asset = asset
        self.kind = kind
        self.mute_video = mute_video
        self.status: str = SESSION_STATUS_PENDING
        self.handle: Optional[Any] = None
        self.element: Optional[Any] = None
        self.stream: Optional[Any] = None
        self.recorder: Optional[Any] = None
        self.chunks: list[bytes] = []
        self.playback_error: Any = None
        self.released = False

    def open(self):
        self.handle = self.runtime.create_object_url(self.asset)
        self.element = self.runtime.create_element(self.kind)
        if self.kind == MediaKind.VIDEO and self.mute_video:
            self.element.muted = True
        self.element.src = self.handle

    def add_chunk(self, chunk: bytes):
        if chunk:
            self.chunks.append(chunk)

    def on_playback_error(self, detail: Any = None):
        if self.playback_error is None:
            self.playback_error = detail if detail is not None else "playback error"
        self.request_stop()

    def on_playback_ended(self):
        """
        Natural end of playback. A recorder that can drain its remaining input
        is let to finish on its own; any other recorder is stopped.
        """
        finish = getattr(self.recorder, "finish", None)
        if not callable(finish):
            self.request_stop()
            return
        if self.status == SESSION_STATUS_CAPTURING:
            self.status = SESSION_STATUS_STOPPING
        if self.recorder.state != "inactive":
            finish()

    def request_stop(self):
        if self.status == SESSION_STATUS_CAPTURING:
            self.status = SESSION_STATUS_STOPPING
        if self.recorder is not None and self.recorder.state != "inactive":
            self.recorder.stop()
        if self.element is not None:
            self.element.pause()

    def discard(self):
        self.status = SESSION_STATUS_FAILED
        self.chunks.clear()

    def release(self):
        if self.released:
            return
        self.released = True
        try:
            if self.recorder is not None and self.recorder.state != "inactive":
                self.recorder.stop()
            if self.element is not None:
                self.element.pause()
            if self.stream is not None:
                for track in self.stream.get_tracks():
                    track.stop()
        finally:
            if self.handle is not None:
                self.runtime.revoke_object_url(self.handle)
            logger.debug(f"Released capture session for {self.asset.filename} ({self.status})")
