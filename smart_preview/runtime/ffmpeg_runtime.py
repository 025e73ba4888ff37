"""
An FFmpeg-backed implementation of the runtime capability interface.

The browser primitives the capture services are written against map onto
FFmpeg processes as follows:

- Object URL: a temporary file holding the asset's payload. Revoking it deletes
  the file.
- Media element: `load()` probes the file with ffprobe (via ffmpeg-python, off
  the event loop). `play()` starts a real-time (`-re`) decode process that
  writes uncompressed NUT into the element's capture pipe.
- Capture stream: an OS pipe between the decode process and the recorder.
  Stopping its tracks closes whatever ends of the pipe this process still holds.
- Recorder: an FFmpeg process encoding the pipe into a temporary webm file.
  When the process exits the file is read in chunks and emitted as
  "dataavailable". `stop()` sends SIGINT so FFmpeg writes the container trailer
  before exiting; `finish()` lets it drain the pipe to end of input instead.
"""
import asyncio
import math
import os
import signal
import tempfile
import uuid
from pathlib import Path
from typing import Optional, Sequence

import ffmpeg
from loguru import logger

from ..config.audio import OPUS_ENCODER
from ..config.common import OUTPUT_EXTENSION, RECORDER_CHUNK_SIZE, USER_PLAYABLE_TYPES
from ..config.video import VP8_ENCODER
from ..domain.media import MediaAsset, MediaKind, parse_duration
from ..utils.events import EventEmitter
from ..utils.ffmpeg_utils import (
    build_decode_cmd,
    build_record_cmd,
    display_cmd,
    ffmpeg_executable,
    list_encoders,
    packet_end_time,
)
from ..utils.format_utils import find_key_in_dictionary, formatted_size
from .base import RECORDER_INACTIVE, RECORDER_RECORDING

# What a preview player is expected to decode without help. The answers follow
# HTML media elements' canPlayType(): "probably", "maybe", or absent ("").
DEFAULT_PLAYABLE_TYPES = {
    "audio/mpeg": "probably",
    "audio/mp3": "maybe",
    "audio/mp4": "maybe",
    "audio/x-m4a": "maybe",
    "audio/aac": "maybe",
    "audio/wav": "maybe",
    "audio/x-wav": "maybe",
    "audio/wave": "maybe",
    "audio/ogg": "maybe",
    "audio/flac": "maybe",
    "audio/webm": "maybe",
    "audio/webm;codecs=opus": "probably",
    "video/mp4": "maybe",
    "video/ogg": "maybe",
    "video/webm": "maybe",
    "video/webm;codecs=vp8,opus": "probably",
}

VORBIS_ENCODER = "libvorbis"
VP9_ENCODER = "libvpx-vp9"


def normalize_mime_type(mime_type: str) -> str:
    """Lower-cases a MIME type and removes whitespace and quotes around parameters."""
    return mime_type.lower().replace(" ", "").replace('"', "")


class TempFileHandle:
    """A temporary file standing in for an object URL."""

    def __init__(self, path: Path):
        self.path = path
        self.url = path.as_uri()

    def __repr__(self) -> str:
        return f"TempFileHandle({self.path})"


class PipeTrack:
    def __init__(self, kind: str, stream: "PipeCaptureStream"):
        self.kind = kind
        self.stream = stream
        self.ready_state = "live"

    def stop(self):
        if self.ready_state == "ended":
            return
        self.ready_state = "ended"
        self.stream._track_stopped()


class PipeCaptureStream:
    """An OS pipe carrying decoded media from an element's decoder to a recorder."""

    def __init__(self, has_video: bool, has_audio: bool = True):
        self.read_fd: Optional[int]
        self.write_fd: Optional[int]
        self.read_fd, self.write_fd = os.pipe()
        self.has_video = has_video
        self.has_audio = has_audio
        self._tracks = []
        if has_audio:
            self._tracks.append(PipeTrack("audio", self))
        if has_video:
            self._tracks.append(PipeTrack("video", self))

    def get_tracks(self) -> list[PipeTrack]:
        return list(self._tracks)

    def close_read_end(self):
        if self.read_fd is not None:
            os.close(self.read_fd)
            self.read_fd = None

    def close_write_end(self):
        if self.write_fd is not None:
            os.close(self.write_fd)
            self.write_fd = None

    def _track_stopped(self):
        if all(track.ready_state == "ended" for track in self._tracks):
            self.close_read_end()
            self.close_write_end()


class PipeTrackSelection:
    """
    A stream made of some of the tracks of one `PipeCaptureStream`.

    The recorder reads the same pipe; tracks left out are simply not encoded.
    Stopping tracks is still done through the source stream.
    """

    def __init__(self, tracks: Sequence[PipeTrack]):
        if not tracks:
            raise ValueError("A stream needs at least one track")
        self._tracks = list(tracks)
        self.source = self._tracks[0].stream
        self.has_video = any(track.kind == "video" for track in self._tracks)
        self.has_audio = any(track.kind == "audio" for track in self._tracks)

    @property
    def read_fd(self) -> Optional[int]:
        return self.source.read_fd

    def close_read_end(self):
        self.source.close_read_end()

    def get_tracks(self) -> list[PipeTrack]:
        return list(self._tracks)


class FFmpegMediaElement(EventEmitter):
    """A decoding element backed by ffprobe (metadata) and an `ffmpeg -re` process (playback)."""

    def __init__(self, kind: MediaKind):
        super().__init__()
        self.kind = kind
        self.src: Optional[TempFileHandle] = None
        self.muted = False
        self.duration = math.nan
        self.current_time = 0.0
        self.has_audio = True
        self.has_video = False
        self.paused = True
        self._stream: Optional[PipeCaptureStream] = None
        self._decoder: Optional[asyncio.subprocess.Process] = None
        self._tasks: set[asyncio.Task] = set()

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def load(self):
        if self.src is None:
            raise RuntimeError("Media element has no source")
        self._spawn(self._load(self.src.path))

    async def _load(self, path: Path):
        try:
            probe = await asyncio.to_thread(ffmpeg.probe, str(path), cmd=ffmpeg_executable("ffprobe"))
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else str(e)
            logger.debug(f"ffprobe failed for {path.name}: {stderr}")
            self.emit("error", stderr or "ffprobe failed")
            return
        except OSError as e:
            self.emit("error", f"Could not run ffprobe: {e}")
            return

        streams = probe.get("streams", [])
        self.has_audio = any(s.get("codec_type") == "audio" for s in streams)
        self.has_video = self.kind == MediaKind.VIDEO and any(
            s.get("codec_type") == "video" for s in streams
        )
        if not self.has_audio and not self.has_video:
            self.emit("error", "No decodable audio or video stream found")
            return

        raw_duration = find_key_in_dictionary(probe.get("format", {}), "duration")
        duration = parse_duration(raw_duration) if raw_duration is not None else 0.0
        if duration <= 0:
            duration = await self._duration_from_packets(path)
        if duration <= 0:
            self.emit("error", "No duration found")
            return

        self.duration = duration
        self.emit("loadedmetadata")

    @staticmethod
    async def _duration_from_packets(path: Path) -> float:
        """Reads the duration of a container without a Duration header from its packet timestamps."""
        logger.debug(f"No container duration for {path.name}, reading packet timestamps")
        try:
            probe = await asyncio.to_thread(
                ffmpeg.probe,
                str(path),
                cmd=ffmpeg_executable("ffprobe"),
                show_entries="packet=pts_time,duration_time",
            )
        except (ffmpeg.Error, OSError) as e:
            logger.debug(f"Packet probe failed for {path.name}: {e}")
            return 0.0
        return packet_end_time(probe.get("packets", []))

    def capture_stream(self) -> PipeCaptureStream:
        if self._stream is None:
            self._stream = PipeCaptureStream(self.has_video, self.has_audio)
        return self._stream

    def _decode_cmd(self) -> list[str]:
        return build_decode_cmd(str(self.src.path), self.has_video, self.has_audio)

    async def play(self):
        if self.src is None:
            raise RuntimeError("Media element has no source")
        cmd = self._decode_cmd()
        logger.debug(f"Starting playback: {display_cmd(cmd)}")
        stdout = self._stream.write_fd if self._stream and self._stream.write_fd is not None else asyncio.subprocess.DEVNULL
        self._decoder = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=stdout,
            stderr=asyncio.subprocess.PIPE,
        )
        if self._stream:
            # The decoder owns the write end now; EOF reaches the recorder when it exits.
            self._stream.close_write_end()
        self.paused = False
        self._spawn(self._watch_decoder(self._decoder))

    async def _watch_decoder(self, decoder: asyncio.subprocess.Process):
        _, stderr = await decoder.communicate()
        if self.paused:
            return
        self.paused = True
        if decoder.returncode == 0:
            self.current_time = self.duration
            self.emit("ended")
        else:
            message = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            self.emit("error", message or f"Decoder exited with code {decoder.returncode}")

    def pause(self):
        self.paused = True
        if self._decoder is not None and self._decoder.returncode is None:
            try:
                self._decoder.terminate()
            except ProcessLookupError:
                pass


class FFmpegRecorder(EventEmitter):
    """
    Encodes a `PipeCaptureStream` into webm with an FFmpeg process.

    The encoder writes to `output_path`, a temporary file owned by the recorder
    and deleted once its contents have been emitted.
    """

    def __init__(self, stream, mime_type: str, cmd: list[str], output_path: Path):
        super().__init__()
        self.stream = stream
        self.mime_type = mime_type
        self.cmd = cmd
        self.output_path = output_path
        self.state = RECORDER_INACTIVE
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stop_requested = False
        self._finishing = False
        self._task: Optional[asyncio.Task] = None

    def start(self):
        if self.state != RECORDER_INACTIVE:
            raise RuntimeError("Recorder already started")
        if self.stream.read_fd is None:
            raise RuntimeError("Capture stream has been stopped")
        self.state = RECORDER_RECORDING
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        try:
            await self._record()
        finally:
            self.output_path.unlink(missing_ok=True)

    async def _record(self):
        read_fd = self.stream.read_fd
        if read_fd is None:
            self.state = RECORDER_INACTIVE
            self.emit("error", "Capture stream was stopped before the recorder started")
            return
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.cmd,
                stdin=read_fd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.state = RECORDER_INACTIVE
            self.emit("error", f"Could not start recorder: {e}")
            return
        self.stream.close_read_end()
        if self._stop_requested:
            self._interrupt()

        _, stderr = await self._process.communicate()
        returncode = self._process.returncode
        self.state = RECORDER_INACTIVE

        # FFmpeg exits non-zero when interrupted; the trailer is written anyway.
        if returncode != 0 and not self._stop_requested:
            message = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            self.emit("error", message or f"Recorder exited with code {returncode}")
            return

        try:
            chunks = await asyncio.to_thread(self._read_output)
        except OSError as e:
            self.emit("error", f"Could not read recorder output: {e}")
            return
        for chunk in chunks:
            self.emit("dataavailable", chunk)
        logger.debug(
            f"Recorder finished ({formatted_size(sum(len(c) for c in chunks))} written, rc={returncode}"
            + (", drained to end of input)" if self._finishing and not self._stop_requested else ")")
        )
        self.emit("stop")

    def _read_output(self) -> list[bytes]:
        with self.output_path.open("rb") as f:
            return list(iter(lambda: f.read(RECORDER_CHUNK_SIZE), b""))

    def _interrupt(self):
        if self._process is None or self._process.returncode is not None:
            return
        try:
            if os.name == "nt":
                self._process.terminate()
            else:
                self._process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            pass

    def stop(self):
        if self.state == RECORDER_INACTIVE or self._stop_requested:
            return
        self._stop_requested = True
        self._interrupt()

    def finish(self):
        """
        Ends the recording at end of input rather than by interruption.

        Called after the decoder has exited, so the pipe is already closed on
        the writing side and FFmpeg encodes everything still buffered in it.
        """
        if self.state == RECORDER_INACTIVE:
            return
        self._finishing = True


class FFmpegRuntime:
    """
    Runtime capability provider using the local FFmpeg installation.

    Attributes:
        playable_types (dict): MIME type -> "probably"/"maybe" answers for `can_play_type`.
        temp_dir (Path | None): Where object-URL and recorder temp files are written
                                (system default if None).
    """

    def __init__(self, playable_types: Optional[dict[str, str]] = None, temp_dir: Optional[Path] = None):
        table = playable_types or USER_PLAYABLE_TYPES or DEFAULT_PLAYABLE_TYPES
        self.playable_types = {normalize_mime_type(k): v for k, v in table.items()}
        self.temp_dir = temp_dir
        self._encoders: Optional[set[str]] = None

    @property
    def encoders(self) -> set[str]:
        if self._encoders is None:
            self._encoders = list_encoders()
            logger.debug(f"FFmpeg provides {len(self._encoders)} encoders")
        return self._encoders

    def create_object_url(self, asset: MediaAsset) -> TempFileHandle:
        fd, name = tempfile.mkstemp(prefix="smart_preview_", suffix=asset.extension, dir=self.temp_dir)
        with os.fdopen(fd, "wb") as f:
            f.write(asset.payload)
        return TempFileHandle(Path(name))

    def revoke_object_url(self, handle: TempFileHandle):
        handle.path.unlink(missing_ok=True)

    def create_element(self, kind: MediaKind) -> FFmpegMediaElement:
        return FFmpegMediaElement(kind)

    def create_stream(self, tracks: Sequence[PipeTrack]) -> PipeTrackSelection:
        return PipeTrackSelection(tracks)

    def can_play_type(self, mime_type: str) -> str:
        normalized = normalize_mime_type(mime_type)
        if not normalized:
            return ""
        if normalized in self.playable_types:
            return self.playable_types[normalized]
        base, _, params = normalized.partition(";")
        if not params:
            return ""
        # A codecs parameter narrows the answer; never upgrade "maybe" to "probably".
        return "maybe" if base in self.playable_types else ""

    def select_encoders(self, mime_type: str) -> Optional[tuple[str, Optional[str]]]:
        """Maps a recorder MIME type to (audio_encoder, video_encoder), or None if unsupported."""
        normalized = normalize_mime_type(mime_type)
        available = self.encoders
        audio_fallbacks = [enc for enc in (OPUS_ENCODER, VORBIS_ENCODER) if enc in available]
        video_fallbacks = [enc for enc in (VP8_ENCODER, VP9_ENCODER) if enc in available]

        if normalized == "audio/webm;codecs=opus":
            return (OPUS_ENCODER, None) if OPUS_ENCODER in available else None
        if normalized == "audio/webm":
            return (audio_fallbacks[0], None) if audio_fallbacks else None
        if normalized == "video/webm;codecs=vp8,opus":
            if OPUS_ENCODER in available and VP8_ENCODER in available:
                return OPUS_ENCODER, VP8_ENCODER
            return None
        if normalized == "video/webm":
            if audio_fallbacks and video_fallbacks:
                return audio_fallbacks[0], video_fallbacks[0]
            return None
        return None

    def is_type_supported(self, mime_type: str) -> bool:
        return self.select_encoders(mime_type) is not None

    def create_recorder(
        self,
        stream,
        mime_type: str,
        audio_bits_per_second: int,
        video_bits_per_second: Optional[int] = None,
    ) -> FFmpegRecorder:
        selected = self.select_encoders(mime_type)
        if selected is None:
            raise ValueError(f"Recorder type not supported: {mime_type}")
        audio_encoder, video_encoder = selected
        if not stream.has_video:
            video_encoder = None

        # Only named here; the encoder creates the file, so an unstarted recorder leaves nothing behind.
        output_dir = Path(self.temp_dir) if self.temp_dir else Path(tempfile.gettempdir())
        output_path = output_dir / f"smart_preview_rec_{uuid.uuid4().hex}.{OUTPUT_EXTENSION}"
        cmd = build_record_cmd(
            audio_encoder, video_encoder, audio_bits_per_second, video_bits_per_second, output_path=str(output_path)
        )
        logger.debug(f"Recorder command: {display_cmd(cmd)}")
        return FFmpegRecorder(stream, mime_type, cmd, output_path)
