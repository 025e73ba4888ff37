"""
Smart Preview: bounded, uniformly encoded preview clips from arbitrary uploads.

The most commonly used entry points are re-exported here:

    from smart_preview import PreviewPipeline, MediaAsset, FFmpegRuntime
"""
from .domain.media import MediaAsset, MediaKind, PipelineResult, PlaybackCapability
from .pipeline.preview_pipeline import PreviewPipeline
from .runtime.ffmpeg_runtime import FFmpegRuntime

__all__ = [
    "FFmpegRuntime",
    "MediaAsset",
    "MediaKind",
    "PipelineResult",
    "PlaybackCapability",
    "PreviewPipeline",
]
