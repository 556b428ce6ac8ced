"""
File Pre-Scan
=============

Parses each candidate file into its own scratch dataset and summarises what
it contains (data types, scenarios, counts) so the planner can offer
per-scenario choices before anything touches the target dataset.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..context import OperationContext
from ..data.dataset import Dataset
from ..data.registry import DEFAULT_REGISTRY, DataTypeRegistry
from ..data.statistics import discovered_scenarios, scenario_counts
from ..importing.manager import Importer, ImportManager
from ..importing.mapping import MappingConfig
from ..importing.parser import ImportOptions


@dataclass
class FileScanResult:
    """
    What one file would contribute.

    Attributes:
        file_path: Source file
        scenarios: Scenario labels in discovery order
        data_types: Types with at least one entry
        scenario_counts: Entries per scenario across scenario-keyed types
        type_counts: Entries per type
        is_non_scenario_file: File has no scenario-keyed data (or failed to parse)
        error: Parse failure message, if any
        warnings: Parser warnings for this file
    """
    file_path: str
    scenarios: List[str] = field(default_factory=list)
    data_types: List[str] = field(default_factory=list)
    scenario_counts: Dict[str, int] = field(default_factory=dict)
    type_counts: Dict[str, int] = field(default_factory=dict)
    is_non_scenario_file: bool = True
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def has_uniform_scenarios(self) -> bool:
        return len(set(self.scenario_counts.values())) <= 1

    @property
    def summary(self) -> str:
        if self.error:
            return f"{self.file_name}: failed ({self.error})"
        total = sum(self.type_counts.values())
        if self.is_non_scenario_file:
            return f"{self.file_name}: {total} entries in {len(self.data_types)} types"
        return (
            f"{self.file_name}: {total} entries in {len(self.data_types)} types, "
            f"{len(self.scenarios)} scenarios"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "scenarios": list(self.scenarios),
            "data_types": list(self.data_types),
            "scenario_counts": dict(self.scenario_counts),
            "type_counts": dict(self.type_counts),
            "is_non_scenario_file": self.is_non_scenario_file,
            "error": self.error,
            "warnings": list(self.warnings),
        }


def summarize_dataset(file_path: str, scratch: Dataset) -> FileScanResult:
    """Build a FileScanResult from an already populated scratch dataset."""
    scenarios = discovered_scenarios(scratch)
    canonical = {s.lower(): s for s in scenarios}
    counts: Dict[str, int] = {}
    for spec in scratch.registry.scenario_types():
        for label, n in scenario_counts(scratch, spec.name).items():
            name = canonical[label.lower()]
            counts[name] = counts.get(name, 0) + n
    type_counts = scratch.counts()
    return FileScanResult(
        file_path=file_path,
        scenarios=scenarios,
        data_types=list(type_counts),
        scenario_counts=counts,
        type_counts=type_counts,
        is_non_scenario_file=not scenarios,
    )


def scan_file(
    file_path: str,
    mapping: MappingConfig,
    parser: Optional[Importer] = None,
    registry: DataTypeRegistry = DEFAULT_REGISTRY,
    options: Optional[ImportOptions] = None,
    context: Optional[OperationContext] = None,
) -> FileScanResult:
    """
    Parse one file into a private scratch dataset and summarise it.

    A parse failure yields an empty result flagged as a non-scenario file
    with ``error`` set; it is never raised.
    """
    parser = parser or ImportManager()
    context = context if context is not None else OperationContext()
    scratch = Dataset(registry)
    try:
        parser.import_file(file_path, mapping, scratch, options, context)
    except Exception as e:  # parser is an external collaborator
        context.error("scan", f"Failed to scan {Path(file_path).name}: {e}", file_path)
        return FileScanResult(file_path=file_path, is_non_scenario_file=True, error=str(e))

    result = summarize_dataset(file_path, scratch)
    result.warnings = [e.message for e in context.warnings if e.file_path == file_path]
    return result


def scan_files(
    files: Iterable[str],
    mapping: MappingConfig,
    parser: Optional[Importer] = None,
    registry: DataTypeRegistry = DEFAULT_REGISTRY,
    options: Optional[ImportOptions] = None,
    context: Optional[OperationContext] = None,
) -> List[FileScanResult]:
    """Scan each file independently, in order."""
    parser = parser or ImportManager()
    context = context if context is not None else OperationContext()
    return [scan_file(f, mapping, parser, registry, options, context) for f in files]
