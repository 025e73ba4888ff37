"""
Configuration settings related to audio processing.

This module defines the allow-lists used to recognise audio uploads and the
encoding parameters used when an audio asset is re-recorded.
"""

# ======================================================================================
# Audio File Identification
# ======================================================================================

# MIME types accepted as audio. Browsers and upload widgets report these
# inconsistently, so several aliases of the same format are listed.
AUDIO_MIME_TYPES = (
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/m4a",
    "audio/x-m4a",
    "audio/wav",
    "audio/x-wav",
    "audio/wave",
    "audio/ogg",
    "audio/webm",
    "audio/aac",
    "audio/flac",
)

# Extensions recognised by the generic classifier. Used when the declared MIME
# type is missing or unrecognised.
AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".webm", ".aac", ".m4a", ".flac", ".opus")

# The stricter allow-list used at the submission boundary.
SUBMISSION_AUDIO_EXTENSIONS = (".mp3", ".m4a", ".wav")


# ======================================================================================
# Audio Encoding Parameters
# ======================================================================================

# Recorder MIME types in order of preference. The first one the runtime
# supports is used.
AUDIO_RECORDER_MIME_TYPES = (
    "audio/webm;codecs=opus",
    "audio/webm",
)

# The target audio bitrate in bits per second for every re-recorded asset.
# This is policy, not derived from the source bitrate.
AUDIO_BITS_PER_SECOND = 128_000

# FFmpeg audio encoder used for opus output.
OPUS_ENCODER = "libopus"
