"""
Utilities Package for Smart Preview.

Modules:
    - events.py: Event emitter and the one-shot `wait_for_event` suspension point.
    - deadline.py: The cancellable wall-clock deadline used to cut captures off.
    - ffmpeg_utils.py: Locating FFmpeg, running one-shot commands and building
      the decode/record command lines.
    - format_utils.py: Human-readable sizes and durations, extension matching.
"""
