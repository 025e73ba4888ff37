"""
Main entry point for Smart Preview.

Parses command-line arguments, configures logging, and runs every given file
through the preview pipeline using the local FFmpeg installation.
"""

import asyncio
import sys

from loguru import logger

from smart_preview.cli import get_args
from smart_preview.config.common import LOGGER_FORMAT
from smart_preview.pipeline.batch_pipeline import BatchPreviewRunner
from smart_preview.pipeline.preview_pipeline import PreviewPipeline
from smart_preview.runtime.ffmpeg_runtime import FFmpegRuntime


# The level is overridden once the arguments are parsed.
logger.remove()
logger.add(sys.stderr, level="DEBUG" if __debug__ else "INFO", format=LOGGER_FORMAT)


def main(argv=None) -> int:
    args = get_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    runtime = FFmpegRuntime(temp_dir=args.temp_work_dir)
    pipeline = PreviewPipeline(runtime, default_limit=args.limit)
    runner = BatchPreviewRunner(pipeline, args)
    asyncio.run(runner.run(args.files))

    if runner.failed:
        logger.warning(f"{len(runner.failed)} file(s) failed. See {runner.error_log.log_file_path}")
        return 1
    logger.success("Smart Preview finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
