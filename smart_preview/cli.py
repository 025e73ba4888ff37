"""
Command-Line Interface (CLI) setup for Smart Preview.

This module uses Python's `argparse` to define and parse the command-line
arguments that control the application's behavior.
"""
import argparse
from pathlib import Path
from typing import List, Optional

from .config.common import AUDIO_PREVIEW_LIMIT_SECONDS


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for Smart Preview.

    Args:
        argv: Arguments to parse; `sys.argv[1:]` when None.

    Returns:
        argparse.Namespace: The parsed arguments. `files` is a list of `Path`s.
    """
    parser = argparse.ArgumentParser(
        description="Convert and trim audio/video files into bounded webm previews."
    )
    parser.add_argument("files", nargs="+", type=Path, help="Media files to process.")
    parser.add_argument(
        "--limit", type=int, default=AUDIO_PREVIEW_LIMIT_SECONDS,
        help=f"Maximum preview duration in seconds (default: {AUDIO_PREVIEW_LIMIT_SECONDS}).",
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Directory for processed previews and run logs.",
    )
    parser.add_argument(
        "--concurrency", type=int, default=1,
        help="Number of files processed at the same time.",
    )
    parser.add_argument(
        "--random", action="store_true", help="Process files in random order."
    )
    parser.add_argument(
        "--validate-only", action="store_true",
        help="Reject files longer than the limit instead of trimming them. Nothing is written.",
    )
    parser.add_argument(
        "--unified-player", action="store_true",
        help="Extract the audio of every file (video included) and cut it to the media trim limit; --limit is ignored.",
    )
    parser.add_argument(
        "--submission", action="store_true",
        help="Apply the stricter submission allow-list (MP3, M4A, WAV) before processing.",
    )
    parser.add_argument(
        "--temp-work-dir", type=str, default=None,
        help="Directory for temporary files. Useful for pointing to a RAM disk.",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )

    args = parser.parse_args(argv)

    if args.limit <= 0:
        parser.error("--limit must be a positive number of seconds.")

    missing = [str(p) for p in args.files if not p.is_file()]
    if missing:
        parser.error(f"File(s) not found: {', '.join(missing)}")

    if args.temp_work_dir:
        temp_dir_path = Path(args.temp_work_dir)
        if not temp_dir_path.is_dir():
            try:
                temp_dir_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                parser.error(f"The temporary working directory '{args.temp_work_dir}' could not be created: {e}")
        args.temp_work_dir = temp_dir_path.resolve()

    return args
