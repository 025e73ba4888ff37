"""
Defines custom exception types for the Smart Preview application.

These exceptions allow the pipeline and its callers to react to a specific
failure (an upload that is not media at all, a file the decoder cannot read, a
runtime that cannot capture) instead of catching a generic `Exception`.
None of them are retried automatically: each describes a condition that would
fail again in exactly the same way.

All custom exceptions inherit from the base `SmartPreviewException`.
"""


class SmartPreviewException(Exception):
    """Base class for all custom exceptions in the Smart Preview application."""

    pass


# --- Classification Exceptions ---
class InvalidAssetKind(SmartPreviewException):
    """
    Raised when an asset is neither audio nor video.

    This is raised before any resource handle is created, so there is never
    anything to clean up when it surfaces.
    """

    pass


class UnsupportedKind(InvalidAssetKind):
    """Raised by the duration prober when asked to probe a non-media asset."""

    pass


# --- Decode / Capture Exceptions ---
class DecodeError(SmartPreviewException):
    """
    Raised when the runtime's decoder cannot load the source.

    Typical causes are a corrupted file, an unsupported container or a
    zero-byte payload. A matching extension does not guarantee decodability:
    a text file renamed to `.mp3` fails here.
    """

    pass


class CaptureUnsupported(SmartPreviewException):
    """
    Raised when the runtime cannot produce a live stream from a decoding
    element, or supports none of the recorder output types.

    This describes a limitation of the environment rather than of the data.
    """

    pass


class TranscodeError(SmartPreviewException):
    """
    Raised when playback or the recorder fails mid-capture.

    By the time this is raised every stream track has been stopped and the
    temporary handle revoked. The underlying failure is chained as `__cause__`.
    """

    pass


class NoAudioTrack(TranscodeError):
    """Raised when audio is extracted from media whose captured stream has no audio track."""

    pass


# --- Validation Exceptions ---
class DurationExceeded(SmartPreviewException):
    """
    Raised by the validation-only entry point when a clip is longer than allowed.

    Callers that prefer hard rejection over silent trimming use this.
    """

    def __init__(self, duration: int, limit_seconds: int):
        self.duration = duration
        self.limit_seconds = limit_seconds
        super().__init__(
            f"Preview media must be {limit_seconds} seconds or less (got {duration}s)"
        )
