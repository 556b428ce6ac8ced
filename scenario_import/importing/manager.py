"""
Import Manager
==============

Parser collaborator used by the pipeline: picks a reader by file extension,
waits briefly for files still locked by the exporting tool, and wraps I/O
failures as FileImportError.
"""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Protocol

import pandas as pd

from ..context import OperationContext
from ..data.dataset import Dataset
from ..errors import FileImportError, UnsupportedFileTypeError
from .mapping import MappingConfig
from .parser import ImportOptions, ParseSummary, TabularParser, read_csv_frame, read_excel_frames

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xls", ".xlsx")


class Importer(Protocol):
    """Anything that can populate a dataset from a file."""

    def import_file(
        self,
        file_path: str,
        mapping: MappingConfig,
        dataset: Dataset,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
    ) -> ParseSummary:
        ...


class ImportManager:
    """
    Default Importer for CSV and Excel exports.

    Attributes:
        readable_timeout: Seconds to keep retrying a locked file
        retry_interval: Seconds between readability checks
    """

    def __init__(
        self,
        parser: Optional[TabularParser] = None,
        readable_timeout: float = 5.0,
        retry_interval: float = 0.25,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if readable_timeout < 0 or retry_interval <= 0:
            raise ValueError("readable_timeout must be >= 0 and retry_interval > 0")
        self.parser = parser or TabularParser()
        self.readable_timeout = readable_timeout
        self.retry_interval = retry_interval
        self._sleep = sleep

    def import_file(
        self,
        file_path: str,
        mapping: MappingConfig,
        dataset: Dataset,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
    ) -> ParseSummary:
        """
        Parse a file into dataset.

        Raises:
            FileImportError: file missing, unreadable or malformed
            UnsupportedFileTypeError: extension has no reader
        """
        options = options or ImportOptions()
        context = context if context is not None else OperationContext()
        path = Path(file_path)
        ext = path.suffix.lower()

        if ext not in CSV_EXTENSIONS + EXCEL_EXTENSIONS:
            raise UnsupportedFileTypeError(file_path, f"Unsupported file type: {ext or '(none)'}")
        if not path.exists():
            raise FileImportError(file_path, f"File not found: {file_path}")

        self.ensure_readable(path)

        try:
            frames = self._read_frames(path, ext)
        except (OSError, ValueError) as e:
            raise FileImportError(file_path, f"Failed to read {path.name}: {e}") from e

        if options.strict_missing_required_headers:
            self.parser.check_required_headers(frames, mapping, file_path)

        summary = ParseSummary()
        for frame in frames:
            summary.merge(self.parser.parse_frame(frame, mapping, dataset, options, context, file_path))

        context.info(
            "import_file",
            f"Parsed {summary.entries_added} entries from {path.name}",
            file_path,
        )
        return summary

    def ensure_readable(self, path: Path) -> None:
        """Wait until a file can be opened for reading, up to readable_timeout."""
        attempts = int(self.readable_timeout / self.retry_interval) + 1
        for attempt in range(1, attempts + 1):
            try:
                with open(path, "rb"):
                    return
            except PermissionError as e:
                if attempt == attempts:
                    raise FileImportError(
                        str(path), f"File is locked or unreadable: {path.name} ({e})"
                    ) from e
                logger.debug("Waiting for %s to become readable", path)
                self._sleep(self.retry_interval)
            except OSError as e:
                raise FileImportError(str(path), f"Cannot open {path.name}: {e}") from e

    @staticmethod
    def _read_frames(path: Path, ext: str) -> List[pd.DataFrame]:
        if ext in CSV_EXTENSIONS:
            return [read_csv_frame(path)]
        return read_excel_frames(path)
