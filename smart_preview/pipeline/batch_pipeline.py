import argparse
import asyncio
import random
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.common import BASE_ERROR_DIR, DEFAULT_OUTPUT_DIR, MEDIA_TRIM_LIMIT_SECONDS
from ..domain.exceptions import SmartPreviewException
from ..domain.media import MediaAsset
from ..services.logging_service import ErrorLog, SuccessLog
from .preview_pipeline import PreviewPipeline


class BatchPreviewRunner:
    """
    Processes a list of files from disk through a `PreviewPipeline`.

    Each file is an independent pipeline invocation; up to `args.concurrency` of
    them run at once. A failure is recorded in the error log and never affects
    the other files.
    """

    def __init__(self, pipeline: PreviewPipeline, args: argparse.Namespace):
        self.pipeline = pipeline
        self.args = args
        self.output_dir: Path = Path(getattr(args, "output_dir", None) or DEFAULT_OUTPUT_DIR).resolve()
        self.limit: int = getattr(args, "limit", None) or pipeline.default_limit
        self.success_log = SuccessLog(self.output_dir)
        self.error_log = ErrorLog(self.output_dir if getattr(args, "output_dir", None) else BASE_ERROR_DIR)
        self.succeeded: List[Path] = []
        self.failed: List[Path] = []

    async def process_single_file(self, path: Path) -> Optional[Path]:
        start = datetime.now()
        try:
            asset = MediaAsset.from_path(path)
            logger.info(f"Processing {asset}")
            if getattr(self.args, "submission", False):
                self.pipeline.classifier.validate_submission(asset)

            if getattr(self.args, "validate_only", False):
                duration = await self.pipeline.validate_for_preview(asset, self.limit)
                logger.success(f"{asset.filename} is valid ({duration}s <= {self.limit}s)")
                self.succeeded.append(path)
                return path

            if getattr(self.args, "unified_player", False):
                result = await self.pipeline.process_for_unified_player(asset)
                limit = MEDIA_TRIM_LIMIT_SECONDS
            else:
                result = await self.pipeline.process(asset, self.limit)
                limit = self.limit
            output_path = result.asset.write_to(self.output_dir)
            self.success_log.write(SuccessLog.entry_for(result, datetime.now() - start, limit))
            self.succeeded.append(path)
            return output_path
        except (SmartPreviewException, OSError) as e:
            logger.error(f"Failed to process {path.name}: {e}")
            self.error_log.write(
                f"File: {path}",
                f"Error: {type(e).__name__}",
                f"Message: {e}",
                f"Time: {datetime.now().isoformat()}",
            )
            self.failed.append(path)
            return None

    async def run(self, paths: List[Path]) -> List[Optional[Path]]:
        paths = list(paths)
        if getattr(self.args, "random", False):
            paths = random.sample(paths, len(paths))
        if not paths:
            logger.info("No files to process.")
            return []

        concurrency = max(1, getattr(self.args, "concurrency", 1) or 1)
        logger.info(f"Processing {len(paths)} file(s), {concurrency} at a time, limit {self.limit}s")
        semaphore = asyncio.Semaphore(concurrency)

        async def bounded(path: Path) -> Optional[Path]:
            async with semaphore:
                return await self.process_single_file(path)

        results = await asyncio.gather(*(bounded(p) for p in paths))
        logger.info(f"Done: {len(self.succeeded)} succeeded, {len(self.failed)} failed")
        return list(results)
