"""
Services Package for Smart Preview.

Each service performs one step of preview processing against an injected
media runtime:

- **FormatClassifier**: audio / video / unsupported, and whether the runtime
  can play the encoding as-is.
- **DurationProber**: the intrinsic duration, read from metadata only.
- **CaptureTranscoder**: conversion by real-time playback and recapture.
- **TimedTrimmer**: the same capture, cut off by a deadline.
- **Logging Service (`SuccessLog`, `ErrorLog`)**: structured run logs written
  by the CLI, separate from the real-time console logging.
"""
from .duration_prober import DurationProber
from .format_classifier import FormatClassifier
from .transcoder import CaptureTranscoder
from .trimmer import TimedTrimmer

__all__ = ["CaptureTranscoder", "DurationProber", "FormatClassifier", "TimedTrimmer"]
