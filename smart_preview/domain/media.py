import hashlib
import mimetypes
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from ..utils.format_utils import formatted_size


def parse_duration(duration_str: str) -> float:
    """
    Parses a duration string into total seconds.

    Handles the two formats ffprobe produces:
    1. A plain floating-point number of seconds (e.g., "3600.5").
    2. A timecode string 'HH:MM:SS.sss' (e.g., "01:00:00.500"); hours are optional.

    Args:
        duration_str: The string containing the duration to parse.

    Returns:
        The total duration in seconds as a float. Returns 0.0 if parsing fails.
    """
    try:
        return float(duration_str)
    except (TypeError, ValueError):
        pattern = r"(?:(\d{1,2}):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)"
        match = re.fullmatch(pattern, str(duration_str))
        if match:
            hours_str, minutes_str, seconds_str = match.groups()
            hours = int(hours_str) if hours_str else 0
            minutes = int(minutes_str)
            seconds = float(seconds_str)
            return float(hours * 3600 + minutes * 60 + seconds)
        logger.warning(f"Could not parse duration string: {duration_str}")
    return 0.0


class MediaKind(Enum):
    AUDIO = "audio"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


class PlaybackCapability(Enum):
    """
    The runtime's own judgment of whether an encoding plays without conversion.

    Mirrors the three answers of a media element's `canPlayType`: "probably",
    "maybe" and "". Only `CANNOT_PLAY` forces a conversion.
    """

    CAN_PLAY_DIRECTLY = "probably"
    MAY_PLAY = "maybe"
    CANNOT_PLAY = ""

    @classmethod
    def from_answer(cls, answer: Optional[str]) -> "PlaybackCapability":
        if answer == "probably":
            return cls.CAN_PLAY_DIRECTLY
        if answer == "maybe":
            return cls.MAY_PLAY
        return cls.CANNOT_PLAY


@dataclass(frozen=True)
class MediaAsset:
    """
    An immutable binary media payload with its declared MIME type and filename.

    Assets are created by the caller (an upload widget, the CLI) and consumed by
    the pipeline. The pipeline never mutates an asset; every conversion or trim
    produces a new one.

    Attributes:
        payload (bytes): The encoded file contents.
        mime_type (str): The declared MIME type, possibly empty and possibly
                         carrying parameters (e.g., 'audio/webm;codecs=opus').
        filename (str): The user-facing file name, including its extension.
    """

    payload: bytes = field(repr=False)
    mime_type: str
    filename: str

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "MediaAsset":
        """
        Reads a file from disk into a new asset.

        When no MIME type is given it is guessed from the filename; an unknown
        extension yields an empty MIME type, matching what browsers report for
        files they do not recognise.
        """
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(payload=path.read_bytes(), mime_type=mime_type, filename=path.name)

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def base_name(self) -> str:
        """The filename with its last extension removed."""
        return re.sub(r"\.[^/.]+$", "", self.filename)

    @property
    def extension(self) -> str:
        """The lower-cased last extension, including the leading dot, or ''."""
        return Path(self.filename).suffix.lower()

    @property
    def base_mime_type(self) -> str:
        """The lower-cased MIME type without parameters ('audio/webm;codecs=opus' -> 'audio/webm')."""
        return self.mime_type.split(";", 1)[0].strip().lower()

    @property
    def md5(self) -> str:
        return hashlib.md5(self.payload).hexdigest()

    def renamed(self, suffix: str, extension: str, mime_type: str, payload: bytes) -> "MediaAsset":
        """Builds the derived asset `<base_name><suffix>.<extension>`."""
        return MediaAsset(
            payload=payload,
            mime_type=mime_type,
            filename=f"{self.base_name}{suffix}.{extension}",
        )

    def write_to(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        output_path = directory / self.filename
        output_path.write_bytes(self.payload)
        logger.debug(f"Wrote {self.filename} ({formatted_size(self.size)}) to {output_path}")
        return output_path

    def __str__(self) -> str:
        return f"{self.filename} [{self.mime_type or 'unknown type'}, {formatted_size(self.size)}]"


@dataclass(frozen=True)
class PipelineResult:
    """
    The outcome of one preview pipeline run.

    Attributes:
        asset (MediaAsset): The final, playable, duration-bounded asset.
        source (MediaAsset): The asset the pipeline was given.
        duration (int): Probed duration of the asset before trimming, in whole seconds.
        notes (tuple[str, ...]): Which stages were skipped, in pipeline order.
        kind (MediaKind, optional): What the source was classified as.
    """

    asset: MediaAsset
    source: MediaAsset
    duration: int
    notes: tuple[str, ...] = ()
    kind: Optional[MediaKind] = None

    @property
    def unchanged(self) -> bool:
        return self.asset is self.source
