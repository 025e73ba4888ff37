"""
Decides what kind of media an asset is and whether the runtime plays it as-is.

Classification is string-only (MIME type and filename). Upload widgets often
omit or mis-report the MIME type of dropped files, so the extension decides
whenever the declared type is empty or not a recognised media type.
"""
from typing import Any, Optional

from loguru import logger

from ..config.audio import AUDIO_EXTENSIONS, AUDIO_MIME_TYPES, SUBMISSION_AUDIO_EXTENSIONS
from ..config.video import VIDEO_EXTENSIONS, VIDEO_MIME_TYPES
from ..domain.exceptions import InvalidAssetKind
from ..domain.media import MediaAsset, MediaKind, PlaybackCapability
from ..utils.format_utils import contains_any_extensions


def classify_asset(asset: MediaAsset) -> MediaKind:
    mime = asset.base_mime_type
    if mime in AUDIO_MIME_TYPES:
        return MediaKind.AUDIO
    if mime in VIDEO_MIME_TYPES or mime.startswith("video/"):
        return MediaKind.VIDEO
    if contains_any_extensions(asset.filename, AUDIO_EXTENSIONS):
        return MediaKind.AUDIO
    if contains_any_extensions(asset.filename, VIDEO_EXTENSIONS):
        return MediaKind.VIDEO
    return MediaKind.UNSUPPORTED


class FormatClassifier:
    """
    Attributes:
        runtime: The media runtime asked for playback support. Only `capability`
                 needs it; classification works without one.
    """

    def __init__(self, runtime: Optional[Any] = None):
        self.runtime = runtime

    def classify(self, asset: MediaAsset) -> MediaKind:
        kind = classify_asset(asset)
        logger.debug(f"Classified {asset} as {kind.value}")
        return kind

    def capability(self, asset: MediaAsset) -> PlaybackCapability:
        if self.runtime is None:
            raise RuntimeError("FormatClassifier.capability() requires a runtime")
        answer = self.runtime.can_play_type(asset.mime_type)
        capability = PlaybackCapability.from_answer(answer)
        logger.debug(f"Runtime answered {answer!r} for '{asset.mime_type}': {capability.name}")
        return capability

    @staticmethod
    def is_submission_audio(asset: MediaAsset) -> bool:
        """The stricter upload check: allowed extension AND (audio MIME type OR no MIME type)."""
        if not contains_any_extensions(asset.filename, SUBMISSION_AUDIO_EXTENSIONS):
            return False
        return asset.base_mime_type in AUDIO_MIME_TYPES or not asset.base_mime_type

    def validate_submission(self, asset: MediaAsset):
        if not self.is_submission_audio(asset):
            allowed = ", ".join(ext.lstrip(".").upper() for ext in SUBMISSION_AUDIO_EXTENSIONS)
            raise InvalidAssetKind(
                f"Invalid audio file format. Please upload {allowed} files. "
                f"Received: {asset.mime_type or 'unknown type'}"
            )
