"""
Media runtimes: the decoding, capture and recording capabilities the services
are written against. `base.py` holds the protocols; `ffmpeg_runtime.py` the
FFmpeg-backed implementation.
"""
