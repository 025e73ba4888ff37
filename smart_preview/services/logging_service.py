"""
This module provides the structured run logs written next to processed previews.

Console logging goes through loguru. In addition, every CLI run records what it
did on disk: `SuccessLog` appends a YAML entry per processed file (machine
readable, one file per run) and `ErrorLog` appends human-readable failure
reports to a plain text file.
"""

import random
import string
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Union

import yaml
from loguru import logger

from ..config.common import SUCCESS_LOG_RANDOM_LENGTH
from ..domain.media import PipelineResult
from ..utils.format_utils import format_timedelta, formatted_size


class Log:
    """Resolves and creates the log directory shared by the concrete logs."""

    # A separator line used in text-based logs for readability.
    linesep_marker: str = "=" * 50

    def __init__(self, log_base_path: Path):
        """
        Args:
            log_base_path: A directory to log into, or a file path whose parent is used.
        """
        self.log_file_path: Path
        if log_base_path.is_dir() or not log_base_path.suffix:
            self.log_dir: Path = log_base_path.resolve()
        else:
            self.log_dir = log_base_path.parent.resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, log_content: Union[dict, list, str]):
        raise NotImplementedError("Subclasses must implement the write() method.")

    @staticmethod
    def generate_random_string(length: int = SUCCESS_LOG_RANDOM_LENGTH) -> str:
        """Random uppercase/digit string used to keep concurrent run logs apart."""
        return "".join(random.choices(string.ascii_uppercase + string.digits, k=length))


class ErrorLog(Log):
    """Appends human-readable error reports to a plain text file."""

    DEFAULT_ERROR_FILENAME = "error.txt"

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_FILENAME):
        super().__init__(error_log_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """Appends the messages, one per line, followed by a separator line."""
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"
        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # Fall back to the console so the report is not lost.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")


class SuccessLog(Log):
    """
    Writes one YAML list of entries per run, `log_YYYYMMDD_<random>.yaml`.

    Each entry describes one processed file: source and output names, sizes,
    the probed duration, the skipped stages and the elapsed time.
    """

    def __init__(self, success_log_dir: Path):
        super().__init__(success_log_dir)
        date_str = datetime.now().strftime("%Y%m%d")
        self.log_file_path = self.log_dir / f"log_{date_str}_{self.generate_random_string()}.yaml"
        self.log_entries: List[Dict] = []

    @staticmethod
    def entry_for(result: PipelineResult, elapsed: timedelta, limit_seconds: int) -> dict:
        return {
            "source": result.source.filename,
            "source_mime_type": result.source.mime_type,
            "source_size": formatted_size(result.source.size),
            "source_md5": result.source.md5,
            "source_kind": result.kind.value if result.kind is not None else None,
            "output": result.asset.filename,
            "output_mime_type": result.asset.mime_type,
            "output_size": formatted_size(result.asset.size),
            "probed_duration_seconds": result.duration,
            "limit_seconds": limit_seconds,
            "notes": list(result.notes),
            "elapsed": format_timedelta(elapsed),
            "ended_datetime": datetime.now().isoformat(),
        }

    def write(self, new_log_entry: dict):
        """Appends `new_log_entry`, numbering it, and rewrites the run's YAML file."""
        if not isinstance(new_log_entry, dict):
            logger.error("SuccessLog.write expects a dictionary as a log entry.")
            return

        new_log_entry["index"] = len(self.log_entries) + 1
        self.log_entries.append(new_log_entry)
        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    self.log_entries,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=220,
                )
        except OSError as e:
            logger.error(f"Failed to write to success log {self.log_file_path}: {e}")
