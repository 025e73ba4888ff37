"""
This module defines the capture-based transcoder.

With no codec library assumed available, the only way to convert media is to
play it and re-record what comes out: the source is bound to a decoding
element, a live stream is captured from the element's output, and a recorder
encodes that stream into a new webm container while the element plays in real
time. Conversion is therefore lossy and takes as long as the media plays.
The timed trimmer reuses the same capture with a deadline.
"""
from datetime import datetime
from typing import Any, Optional

from loguru import logger

from ..config.audio import AUDIO_BITS_PER_SECOND, AUDIO_RECORDER_MIME_TYPES
from ..config.common import (
    AUDIO_ONLY_SUFFIX,
    CONVERSION_SAFETY_TIMEOUT_SECONDS,
    CONVERTED_SUFFIX,
    OUTPUT_EXTENSION,
    SESSION_STATUS_CAPTURING,
    SESSION_STATUS_COMPLETED,
)
from ..config.video import VIDEO_BITS_PER_SECOND, VIDEO_RECORDER_MIME_TYPES
from ..domain.exceptions import CaptureUnsupported, InvalidAssetKind, NoAudioTrack, TranscodeError
from ..domain.media import MediaAsset, MediaKind
from ..domain.session import CaptureSession
from ..utils.deadline import Deadline, DeadlineFactory
from ..utils.events import EventFailed, wait_for_event
from ..utils.format_utils import formatted_size
from .duration_prober import load_metadata
from .format_classifier import classify_asset


class CaptureTranscoder:
    """
    Converts assets by real-time playback and recapture.

    Attributes:
        runtime: The injected media runtime.
        deadline_factory: Builds the deadline that bounds a capture. Replaced in
                          tests to fire without waiting on the wall clock.
        conversion_timeout (float): Safety bound for a plain conversion.
    """

    def __init__(
        self,
        runtime: Any,
        deadline_factory: DeadlineFactory = Deadline,
        conversion_timeout: float = CONVERSION_SAFETY_TIMEOUT_SECONDS,
    ):
        self.runtime = runtime
        self.deadline_factory = deadline_factory
        self.conversion_timeout = conversion_timeout

    def choose_mime_type(self, kind: MediaKind) -> str:
        """Returns the first recorder type from the preference table the runtime supports."""
        preferences = VIDEO_RECORDER_MIME_TYPES if kind == MediaKind.VIDEO else AUDIO_RECORDER_MIME_TYPES
        for mime_type in preferences:
            if self.runtime.is_type_supported(mime_type):
                return mime_type
        raise CaptureUnsupported(f"No supported recorder type among {', '.join(preferences)}")

    async def transcode(self, asset: MediaAsset) -> MediaAsset:
        """Re-encodes `asset` into webm; the output is named `<base>_converted.webm`."""
        return await self.capture(asset, CONVERTED_SUFFIX, stop_after=self.conversion_timeout)

    async def extract_audio(self, asset: MediaAsset) -> MediaAsset:
        """
        Records only the audio of `asset` into `<base>_audio.webm`.

        Video sources lose their picture, so every preview plays through the
        same audio player. Audio sources are simply re-encoded.

        Raises:
            NoAudioTrack: The source has no audio to record.
        """
        return await self.capture(asset, AUDIO_ONLY_SUFFIX, stop_after=self.conversion_timeout, audio_only=True)

    async def capture(
        self,
        asset: MediaAsset,
        suffix: str,
        stop_after: Optional[float] = None,
        audio_only: bool = False,
    ) -> MediaAsset:
        """
        Plays `asset` from the start and records it into a new webm asset.

        Recording ends on natural end of playback, when the recorder goes
        inactive, or `stop_after` seconds after recording started, whichever
        comes first. The session's handle and stream tracks are released on
        every exit path, including cancellation of the awaiting task.

        Args:
            asset: The source asset.
            suffix: Appended to the source's base name for the output filename.
            stop_after: Deadline in seconds, armed when recording starts. None
                        means run until the media ends.
            audio_only: Record the audio tracks only, as audio webm. Video
                        elements are left unmuted for it.

        Raises:
            InvalidAssetKind: The asset is neither audio nor video.
            DecodeError: The source could not be loaded.
            CaptureUnsupported: No live capture or no supported recorder type.
            TranscodeError: Playback was rejected or the recorder failed.
            NoAudioTrack: `audio_only` was asked for media without audio.
        """
        kind = classify_asset(asset)
        if kind == MediaKind.UNSUPPORTED:
            raise InvalidAssetKind(f"File must be audio or video: {asset}")

        start_time = datetime.now()
        session = CaptureSession(self.runtime, asset, kind, mute_video=not audio_only)
        deadline = None
        finished = None
        try:
            session.open()
            element = session.element
            await load_metadata(element, session.handle, asset)

            capture_stream = getattr(element, "capture_stream", None)
            if not callable(capture_stream):
                raise CaptureUnsupported("Live stream capture is not supported by this runtime")
            session.stream = capture_stream()

            record_stream = session.stream
            record_kind = kind
            if audio_only:
                audio_tracks = [track for track in session.stream.get_tracks() if track.kind == "audio"]
                if not audio_tracks:
                    raise NoAudioTrack(f"No audio track found in media file {asset.filename}")
                record_stream = self.runtime.create_stream(audio_tracks)
                record_kind = MediaKind.AUDIO

            mime_type = self.choose_mime_type(record_kind)
            try:
                session.recorder = self.runtime.create_recorder(
                    record_stream,
                    mime_type,
                    AUDIO_BITS_PER_SECOND,
                    VIDEO_BITS_PER_SECOND if record_kind == MediaKind.VIDEO else None,
                )
            except Exception as e:
                raise TranscodeError(f"Could not create recorder for {asset.filename}: {e}") from e
            recorder = session.recorder
            recorder.on("dataavailable", session.add_chunk)
            finished = wait_for_event(recorder, "stop")
            element.on("ended", session.on_playback_ended)
            element.on("error", session.on_playback_error)

            try:
                recorder.start()
            except Exception as e:
                raise TranscodeError(f"Recording failed for {asset.filename}: {e}") from e
            session.status = SESSION_STATUS_CAPTURING
            if stop_after is not None:
                deadline = self.deadline_factory(stop_after, session.request_stop)
                deadline.start()
            logger.debug(f"Capturing {asset.filename} as {mime_type} (stop after {stop_after}s)")

            element.current_time = 0
            try:
                await element.play()
            except Exception as e:
                raise TranscodeError(f"Playback failed for {asset.filename}: {e}") from e

            try:
                await finished
            except EventFailed as e:
                raise TranscodeError(f"Recording failed for {asset.filename}: {e.detail}") from e

            if session.playback_error is not None:
                raise TranscodeError(f"Playback failed for {asset.filename}: {session.playback_error}")
            if not session.chunks:
                raise TranscodeError(f"Recorder produced no data for {asset.filename}")

            payload = b"".join(session.chunks)
            session.status = SESSION_STATUS_COMPLETED
            output = asset.renamed(suffix, OUTPUT_EXTENSION, mime_type, payload)
            logger.info(
                f"Captured {output.filename} ({formatted_size(output.size)}) "
                f"in {(datetime.now() - start_time).total_seconds():.1f}s"
                + (" (deadline reached)" if deadline is not None and deadline.fired else "")
            )
            return output
        except BaseException:
            session.discard()
            raise
        finally:
            if deadline is not None:
                deadline.cancel()
            if finished is not None:
                finished.cancel()
            if session.element is not None:
                session.element.off("ended", session.on_playback_ended)
                session.element.off("error", session.on_playback_error)
            session.release()
