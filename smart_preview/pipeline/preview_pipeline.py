from typing import Any, Callable, Optional

from loguru import logger

from ..config.common import (
    AUDIO_PREVIEW_LIMIT_SECONDS,
    MEDIA_TRIM_LIMIT_SECONDS,
    NOTE_NO_CONVERSION,
    NOTE_UNDER_LIMIT,
    STAGE_CHECKING_DURATION,
    STAGE_CONVERTING,
    STAGE_EXTRACTING_AUDIO,
    STAGE_TRIMMING,
    STAGE_VALIDATING,
)
from ..domain.exceptions import InvalidAssetKind, SmartPreviewException
from ..domain.media import MediaAsset, MediaKind, PipelineResult, PlaybackCapability
from ..services.duration_prober import DurationProber
from ..services.format_classifier import FormatClassifier
from ..services.transcoder import CaptureTranscoder
from ..services.trimmer import TimedTrimmer
from ..utils.deadline import Deadline, DeadlineFactory

ProgressCallback = Callable[[str], None]


class PreviewPipeline:
    """
    Turns an uploaded clip into a bounded, uniformly playable preview.

    The pipeline runs Classifier -> (Transcoder if the runtime cannot play the
    source) -> Duration Prober -> (Timed Trimmer if the clip is too long), and
    produces exactly one output asset or raises. Invocations share no mutable
    state, so several can run concurrently on one pipeline instance.

    Attributes:
        runtime: The injected media runtime.
        default_limit (int): Limit used when a call does not pass one.
    """

    def __init__(
        self,
        runtime: Any,
        deadline_factory: DeadlineFactory = Deadline,
        default_limit: int = AUDIO_PREVIEW_LIMIT_SECONDS,
    ):
        self.runtime = runtime
        self.default_limit = default_limit
        self.classifier = FormatClassifier(runtime)
        self.prober = DurationProber(runtime)
        self.transcoder = CaptureTranscoder(runtime, deadline_factory=deadline_factory)
        self.trimmer = TimedTrimmer(runtime, prober=self.prober, transcoder=self.transcoder)

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], stage: str):
        logger.info(f"Stage: {stage}")
        if on_progress is None:
            return
        try:
            on_progress(stage)
        except Exception as e:
            logger.warning(f"Progress callback failed at stage '{stage}': {e}")

    async def process(
        self,
        asset: MediaAsset,
        limit_seconds: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Runs the full pipeline and returns the final asset with stage notes.

        Raises:
            InvalidAssetKind: The asset is neither audio nor video.
            DecodeError, CaptureUnsupported, TranscodeError: From the stages.
        """
        limit = self.default_limit if limit_seconds is None else limit_seconds
        notes: list[str] = []
        try:
            self._report(on_progress, STAGE_VALIDATING)
            kind = self.classifier.classify(asset)
            if kind == MediaKind.UNSUPPORTED:
                raise InvalidAssetKind(
                    f"File must be audio or video. Received: {asset.mime_type or 'unknown type'} ({asset.filename})"
                )

            playable = asset
            if self.classifier.capability(asset) == PlaybackCapability.CANNOT_PLAY:
                self._report(on_progress, STAGE_CONVERTING)
                playable = await self.transcoder.transcode(asset)
            else:
                notes.append(NOTE_NO_CONVERSION)

            self._report(on_progress, STAGE_CHECKING_DURATION)
            duration = await self.prober.probe(playable)

            final = playable
            if duration > limit:
                self._report(on_progress, STAGE_TRIMMING)
                final = await self.trimmer.trim(playable, limit, suffix=f"_{limit}s", duration=duration)
            else:
                notes.append(NOTE_UNDER_LIMIT)
        except SmartPreviewException as e:
            logger.error(f"Preview processing failed for {asset.filename}: {type(e).__name__}: {e}")
            raise

        logger.success(f"Preview ready: {final}")
        return PipelineResult(asset=final, source=asset, duration=duration, notes=tuple(notes), kind=kind)

    async def process_for_preview(
        self,
        asset: MediaAsset,
        limit_seconds: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MediaAsset:
        result = await self.process(asset, limit_seconds, on_progress)
        return result.asset

    async def process_for_unified_player(
        self,
        asset: MediaAsset,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Prepares any clip for a single audio-only player.

        The audio of the source is always re-recorded into `<base>_audio.webm`
        (video pictures are dropped), then cut to the media trim limit as
        `<base>_audio_<limit>s.webm` when longer. `result.kind` tells the
        caller whether the upload was a video.

        Raises:
            InvalidAssetKind: The asset is neither audio nor video.
            NoAudioTrack: A video without any audio track.
            DecodeError, CaptureUnsupported, TranscodeError: From the stages.
        """
        limit = MEDIA_TRIM_LIMIT_SECONDS
        try:
            self._report(on_progress, STAGE_VALIDATING)
            kind = self.classifier.classify(asset)
            if kind == MediaKind.UNSUPPORTED:
                raise InvalidAssetKind(
                    f"File must be audio or video. Received: {asset.mime_type or 'unknown type'} ({asset.filename})"
                )

            self._report(on_progress, STAGE_EXTRACTING_AUDIO if kind == MediaKind.VIDEO else STAGE_CONVERTING)
            audio = await self.transcoder.extract_audio(asset)

            self._report(on_progress, STAGE_CHECKING_DURATION)
            duration = await self.prober.probe(audio)

            notes: list[str] = []
            final = audio
            if duration > limit:
                self._report(on_progress, STAGE_TRIMMING)
                final = await self.trimmer.trim(audio, limit, suffix=f"_{limit}s", duration=duration)
            else:
                notes.append(NOTE_UNDER_LIMIT)
        except SmartPreviewException as e:
            logger.error(f"Unified preview failed for {asset.filename}: {type(e).__name__}: {e}")
            raise

        logger.success(f"Unified preview ready ({kind.value}): {final}")
        return PipelineResult(asset=final, source=asset, duration=duration, notes=tuple(notes), kind=kind)

    async def validate_for_preview(self, asset: MediaAsset, limit_seconds: Optional[int] = None) -> int:
        """Rejects clips over the limit instead of trimming them. Returns the duration."""
        limit = self.default_limit if limit_seconds is None else limit_seconds
        if self.classifier.classify(asset) == MediaKind.UNSUPPORTED:
            raise InvalidAssetKind(f"File must be audio or video: {asset}")
        return await self.prober.validate(asset, limit)
