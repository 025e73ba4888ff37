"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants that are
used across the entire Smart Preview application. It centralizes parameters for
logging, duration limits, capture behaviour, and session status tracking.
It also handles the loading of user-specific configurations from an external
YAML file, allowing for easy customization without modifying the source code.
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# This block loads user-specific settings from a 'config.user.yaml' file located
# at the project root. It allows users to point at a specific FFmpeg build and to
# adjust the preview limits without editing the source.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The directory containing the FFmpeg and ffprobe executables. If not provided,
# the application assumes the executables are available in the system's PATH.
MODULE_PATH: Path | None = None

# The maximum length, in seconds, of media processed by the generic trimmer.
MEDIA_TRIM_LIMIT_SECONDS = 30

# The maximum length, in seconds, of an audio preview clip. This is deliberately
# kept separate from `MEDIA_TRIM_LIMIT_SECONDS`; the two entry points have
# always used different limits.
AUDIO_PREVIEW_LIMIT_SECONDS = 45

# Optional override of the playable-types table used by the FFmpeg runtime.
# Maps a MIME type to "probably" or "maybe".
USER_PLAYABLE_TYPES: dict[str, str] | None = None

if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}

        paths_config = user_config.get("paths") or {}
        ffmpeg_dir_str = paths_config.get("ffmpeg_dir")
        if ffmpeg_dir_str:
            MODULE_PATH = Path(ffmpeg_dir_str)

        limits_config = user_config.get("limits") or {}
        MEDIA_TRIM_LIMIT_SECONDS = int(
            limits_config.get("media_trim_seconds", MEDIA_TRIM_LIMIT_SECONDS)
        )
        AUDIO_PREVIEW_LIMIT_SECONDS = int(
            limits_config.get("audio_preview_seconds", AUDIO_PREVIEW_LIMIT_SECONDS)
        )

        playback_config = user_config.get("playback") or {}
        if playback_config.get("playable_types"):
            USER_PLAYABLE_TYPES = {
                str(mime).lower(): str(answer)
                for mime, answer in playback_config["playable_types"].items()
            }
    except Exception as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Using built-in defaults.")


# --- Logging Configuration ---

# The format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{process} - <level>{message}</level>"
)

# The length of the random string appended to success log files, so concurrent
# runs writing into the same output directory never collide.
SUCCESS_LOG_RANDOM_LENGTH = 10

# The directory where failures are recorded by the CLI when no output
# directory is given.
BASE_ERROR_DIR = Path("preview_error").resolve()

# Default directory for processed previews written by the CLI.
DEFAULT_OUTPUT_DIR = Path("previews")


# --- Capture Settings ---

# Container extension of every converted or trimmed asset.
OUTPUT_EXTENSION = "webm"

# Filename suffixes for produced assets.
CONVERTED_SUFFIX = "_converted"
TRIMMED_SUFFIX = "_trimmed"
AUDIO_ONLY_SUFFIX = "_audio"

# Upper bound for a plain conversion. Conversion runs in real time, so a
# broken source that never reports its end would otherwise capture forever.
CONVERSION_SAFETY_TIMEOUT_SECONDS = 300

# Size of the reads taken from the recorder output file.
RECORDER_CHUNK_SIZE = 64 * 1024


# --- Progress Stages ---
# Human-readable stage names reported to the optional progress callback.

STAGE_VALIDATING = "validating"
STAGE_CONVERTING = "converting"
STAGE_CHECKING_DURATION = "checking duration"
STAGE_TRIMMING = "trimming"
STAGE_EXTRACTING_AUDIO = "extracting audio"

# Notes attached to a pipeline result for skipped stages.
NOTE_NO_CONVERSION = "no conversion needed"
NOTE_UNDER_LIMIT = "already under duration limit"


# --- Capture Session Status Constants ---

SESSION_STATUS_PENDING = "pending"  # Element created, waiting for metadata.
SESSION_STATUS_CAPTURING = "capturing"  # Recorder running, playback started.
SESSION_STATUS_STOPPING = "stopping"  # Stop requested, waiting for the recorder to finalize.
SESSION_STATUS_COMPLETED = "completed"  # Output assembled.
SESSION_STATUS_FAILED = "failed"  # Aborted; partial chunks discarded.
