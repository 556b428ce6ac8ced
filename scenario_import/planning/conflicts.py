"""
Pre-Scan Conflict Detector
==========================

Answers "would importing these files replace data that is already there?"
before any commit, so the caller can warn the user.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from ..context import OperationContext
from ..data.dataset import Dataset
from ..importing.manager import Importer, ImportManager
from ..importing.mapping import MappingConfig
from ..importing.parser import ImportOptions

UNKNOWN_AFFECTED_TYPE = "Unknown (error during detection)"


@dataclass
class ConflictResult:
    """
    Outcome of a pre-scan.

    Attributes:
        will_overwrite: At least one type already holding data is touched
        affected_types: Entries of the form "<type> (<n> existing)"
        failed_files: Files that could not be parsed (skipped)
    """
    will_overwrite: bool
    affected_types: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)

    @property
    def detection_failed(self) -> bool:
        return UNKNOWN_AFFECTED_TYPE in self.affected_types

    def affected_type_names(self) -> List[str]:
        """Type names with the existing-count suffix removed."""
        return [entry.split(" (", 1)[0].strip() for entry in self.affected_types]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "will_overwrite": self.will_overwrite,
            "affected_types": list(self.affected_types),
            "failed_files": list(self.failed_files),
        }


def pre_scan(
    files: Iterable[str],
    mapping: MappingConfig,
    target: Dataset,
    parser: Optional[Importer] = None,
    options: Optional[ImportOptions] = None,
    context: Optional[OperationContext] = None,
) -> ConflictResult:
    """
    Detect which existing data types an import would touch.

    Every file is parsed into one shared scratch dataset; files that fail to
    parse are logged and skipped. If the scan machinery itself fails, the
    result conservatively reports that everything may be overwritten.

    Args:
        files: Candidate file paths
        mapping: Field mapping used by the parser
        target: Dataset the files would be imported into
        parser: Parser collaborator (defaults to ImportManager)
        options: Parser switches
        context: Event sink

    Returns:
        ConflictResult
    """
    context = context if context is not None else OperationContext()
    try:
        parser = parser or ImportManager()
        scratch = Dataset(target.registry)
        failed: List[str] = []
        for file_path in files:
            try:
                parser.import_file(file_path, mapping, scratch, options, context)
            except Exception as e:  # per-file failures never abort the scan
                failed.append(file_path)
                context.warning("pre_scan", f"Skipped {Path(file_path).name}: {e}", file_path)

        affected = [
            f"{type_name} ({target.count(type_name)} existing)"
            for type_name in scratch.types_with_data()
            if target.count(type_name) > 0
        ]
        return ConflictResult(will_overwrite=bool(affected), affected_types=affected, failed_files=failed)
    except Exception as e:  # systemic failure: assume the worst
        context.error("pre_scan", f"Conflict detection failed: {e}")
        return ConflictResult(will_overwrite=True, affected_types=[UNKNOWN_AFFECTED_TYPE])
