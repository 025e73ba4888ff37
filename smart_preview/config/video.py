"""
Configuration settings related to video processing.

This module defines the allow-lists used to recognise video uploads and the
encoding parameters used when a video asset is re-recorded.
"""

# --- Video File Identification ---
VIDEO_MIME_TYPES = (
    "video/mp4",
    "video/webm",
    "video/ogg",
    "video/quicktime",
    "video/x-matroska",
    "video/x-msvideo",
    "video/mpeg",
    "video/3gpp",
)
VIDEO_EXTENSIONS = (
    ".wmv", ".ts", ".mp4", ".mov", ".mpg", ".mkv", ".avi",
    ".m2ts", ".3gp", ".flv", ".vob", ".webm", ".m4v", ".asf", ".mts", ".ogv",
)

# --- Encoder Settings ---
VIDEO_RECORDER_MIME_TYPES = (
    "video/webm;codecs=vp8,opus",
    "video/webm",
)
VIDEO_BITS_PER_SECOND = 2_500_000
VP8_ENCODER = "libvpx"
