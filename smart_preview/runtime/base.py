"""
The runtime capability interface consumed by the capture services.

Decoding, live capture, recording and playback-support queries are provided
by a `MediaRuntime` injected into every service. The services only rely on
the structural protocols below, so any backend (the FFmpeg runtime shipped
here, a browser bridge, or a deterministic fake in tests) can be plugged in.

Events (all objects are `EventEmitter`s):
    MediaElement:  "loadedmetadata"(), "error"(detail), "ended"()
    MediaRecorder: "dataavailable"(chunk: bytes), "stop"(), "error"(detail)
"""
from typing import Any, Callable, Optional, Protocol, Sequence

from ..domain.media import MediaAsset, MediaKind

RECORDER_INACTIVE = "inactive"
RECORDER_RECORDING = "recording"


class ResourceHandle(Protocol):
    """A temporary reference through which an element can read an asset's payload."""

    url: str


class StreamTrack(Protocol):
    kind: str

    def stop(self) -> None: ...


class CaptureStream(Protocol):
    def get_tracks(self) -> Sequence[StreamTrack]: ...


class MediaElement(Protocol):
    src: Optional[ResourceHandle]
    muted: bool
    duration: float
    current_time: float

    def on(self, event: str, listener: Callable[..., Any]) -> None: ...

    def off(self, event: str, listener: Callable[..., Any]) -> None: ...

    def load(self) -> None:
        """Starts loading metadata; settles with "loadedmetadata" or "error"."""

    async def play(self) -> None:
        """Starts playback; raises if playback is rejected."""

    def pause(self) -> None: ...

    # Elements able to produce a live stream also provide:
    #     def capture_stream(self) -> CaptureStream


class MediaRecorder(Protocol):
    state: str
    mime_type: str

    def on(self, event: str, listener: Callable[..., Any]) -> None: ...

    def off(self, event: str, listener: Callable[..., Any]) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None:
        """Requests finalization; remaining data arrives before "stop"."""

    # Recorders that can finish on their own once their input ends also provide:
    #     def finish(self) -> None
    # which is used instead of `stop()` when playback ended naturally.


class MediaRuntime(Protocol):
    def create_object_url(self, asset: MediaAsset) -> ResourceHandle: ...

    def revoke_object_url(self, handle: ResourceHandle) -> None: ...

    def create_element(self, kind: MediaKind) -> MediaElement: ...

    def create_stream(self, tracks: Sequence[StreamTrack]) -> CaptureStream:
        """A new stream carrying only `tracks`, taken from a captured stream."""

    def can_play_type(self, mime_type: str) -> str:
        """Answers "probably", "maybe" or "" for the exact encoded type string."""

    def is_type_supported(self, mime_type: str) -> bool:
        """Whether a recorder can produce `mime_type`."""

    def create_recorder(
        self,
        stream: CaptureStream,
        mime_type: str,
        audio_bits_per_second: int,
        video_bits_per_second: Optional[int] = None,
    ) -> MediaRecorder: ...
