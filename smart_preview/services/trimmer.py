"""
Bounds media to a maximum duration by capturing only its first seconds.
"""
from typing import Any, Optional

from loguru import logger

from ..config.common import MEDIA_TRIM_LIMIT_SECONDS, TRIMMED_SUFFIX
from ..domain.exceptions import InvalidAssetKind
from ..domain.media import MediaAsset
from ..utils.deadline import Deadline, DeadlineFactory
from .duration_prober import DurationProber
from .transcoder import CaptureTranscoder


class TimedTrimmer:
    """
    Runs the capture pipeline with a hard wall-clock cutoff.

    The deadline is armed when recording starts, so the encoded output never
    exceeds the limit and the whole operation never runs longer than the limit
    plus finalization.
    """

    def __init__(
        self,
        runtime: Any,
        prober: Optional[DurationProber] = None,
        transcoder: Optional[CaptureTranscoder] = None,
        deadline_factory: DeadlineFactory = Deadline,
    ):
        self.runtime = runtime
        self.prober = prober or DurationProber(runtime)
        self.transcoder = transcoder or CaptureTranscoder(runtime, deadline_factory=deadline_factory)

    async def trim(
        self,
        asset: MediaAsset,
        limit_seconds: int,
        suffix: str = TRIMMED_SUFFIX,
        duration: Optional[int] = None,
    ) -> MediaAsset:
        """
        Returns `asset` itself when it is already within `limit_seconds`,
        otherwise a new webm asset holding its first `limit_seconds`.

        Args:
            asset: The asset to bound.
            limit_seconds: Maximum duration of the output.
            suffix: Filename suffix of the trimmed output.
            duration: The already-probed duration, when the caller has it.
        """
        if duration is None:
            duration = await self.prober.probe(asset)
        if duration <= limit_seconds:
            logger.debug(f"{asset.filename} is {duration}s, within {limit_seconds}s. Not trimming.")
            return asset

        logger.info(f"Trimming {asset.filename} from {duration}s to {limit_seconds}s")
        return await self.transcoder.capture(asset, suffix, stop_after=limit_seconds)

    async def trim_media(self, asset: MediaAsset) -> MediaAsset:
        """Trims any audio or video asset to the generic media limit."""
        if not asset.base_mime_type.startswith(("audio/", "video/")):
            raise InvalidAssetKind(f"File must be audio or video, got '{asset.mime_type or 'unknown type'}'")
        return await self.trim(asset, MEDIA_TRIM_LIMIT_SECONDS)
