"""
This package contains the core domain models of Smart Preview.

Modules:
    exceptions.py: The error taxonomy surfaced by the pipeline (`InvalidAssetKind`,
                   `DecodeError`, `CaptureUnsupported`, `TranscodeError`,
                   `DurationExceeded`).
    media.py: `MediaAsset`, the immutable payload/MIME/filename triple that flows
              through the pipeline, plus `MediaKind`, `PlaybackCapability` and
              `PipelineResult`.
    session.py: `CaptureSession`, which owns the runtime resources of one
                play-and-record operation and releases them exactly once.
"""
