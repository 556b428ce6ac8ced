"""
Merge / Commit Engine
=====================

Applies an import plan to a target dataset.

Policies (by project mode):
- Standard: each data type an import touches is replaced wholesale. Types
  already holding data are cleared once for the batch, then every file's
  entries are merged in order.
- Composite: the plan rows are the only authority. AddNew copies a file's
  scenario under its new name, Overwrite replaces just the chosen existing
  scenario, Skip writes nothing. Other scenarios are never touched.

Each file is parsed into its own scratch dataset, owned by the commit and
dropped when it returns. A Composite file's writes are staged first and
applied together, so a file that fails writes nothing. A failed file is
reported and the batch continues; provenance and the import log are updated
only for files that were merged.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..context import OperationContext
from ..data.dataset import Dataset
from ..data.registry import SCENARIO_FIELD
from ..data.statistics import available_scenarios
from ..errors import PlanValidationError, ScenarioConflictError
from ..importing.manager import Importer, ImportManager
from ..importing.mapping import MappingConfig
from ..importing.parser import ImportOptions
from ..modes import ProjectMode
from ..planning.plan import ImportAction, ImportPlan, ImportPlanRow
from ..provenance.records import ImportRecord, append_record
from ..provenance.tracker import Contribution, ProvenanceInfo


@dataclass
class CommitResult:
    """
    Outcome of a commit.

    Attributes:
        success_count: Files merged
        total_files: Files the plan asked to import
        per_file_errors: "<file name>: <message>" for each failed file
        entries_written: Entries upserted into the target
        cleared_types: Types cleared before merging (Standard mode)
        records: Import records created for merged files
    """
    success_count: int = 0
    total_files: int = 0
    per_file_errors: List[str] = field(default_factory=list)
    entries_written: int = 0
    cleared_types: List[str] = field(default_factory=list)
    records: List[ImportRecord] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.success_count == self.total_files and not self.per_file_errors

    @property
    def summary(self) -> str:
        text = f"Imported {self.success_count} of {self.total_files} files ({self.entries_written} entries)"
        if self.per_file_errors:
            text += f"; {len(self.per_file_errors)} failed"
        return text

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success_count": self.success_count,
            "total_files": self.total_files,
            "per_file_errors": list(self.per_file_errors),
            "entries_written": self.entries_written,
            "cleared_types": list(self.cleared_types),
            "records": [r.to_dict() for r in self.records],
        }


# ----------------------------------------------------------------------
# Primitives
# ----------------------------------------------------------------------

def _remapped_label(key_remap: Dict[str, str], label: str) -> Optional[str]:
    if label in key_remap:
        return key_remap[label]
    for original, target in key_remap.items():
        if original.lower() == label.lower():
            return target
    return None


def merge_into(
    scratch: Dataset,
    target: Dataset,
    key_remap: Optional[Dict[str, str]] = None,
) -> int:
    """
    Upsert every scratch entry into target.

    Args:
        scratch: Source entries
        target: Dataset written to
        key_remap: Source scenario label -> target label (case-insensitive);
            only the scenario component of a key changes

    Returns:
        Number of entries written
    """
    key_remap = key_remap or {}
    written = 0
    for spec in scratch.registry:
        for key, entry in scratch.items(spec.name):
            entry = dict(entry)
            if spec.has_scenarios and key_remap:
                label = _remapped_label(key_remap, key.scenario)
                if label is not None and label != key.scenario:
                    key = key.with_scenario(label)
                    entry[SCENARIO_FIELD] = label
            target.put(spec.name, key, entry)
            written += 1
    return written


def filter_by_scenario(dataset: Dataset, scenario: str) -> Dataset:
    """Copy of the scenario-keyed entries whose scenario matches (case-insensitive)."""
    subset = Dataset(dataset.registry, dataset.software_version)
    for spec in dataset.registry.scenario_types():
        for key, entry in dataset.items(spec.name):
            if key.scenario.lower() == scenario.lower():
                subset.put(spec.name, key, entry)
    return subset


def simple_entries(dataset: Dataset) -> Dataset:
    """Copy of the entries of types without a scenario dimension."""
    subset = Dataset(dataset.registry, dataset.software_version)
    for spec in dataset.registry.simple_types():
        for key, entry in dataset.items(spec.name):
            subset.put(spec.name, key, entry)
    return subset


def remove_scenario(
    dataset: Dataset,
    scenario: str,
    type_names: Optional[Iterable[str]] = None,
) -> int:
    """Delete entries of a scenario (optionally only for some types)."""
    if type_names is None:
        specs = dataset.registry.scenario_types()
    else:
        specs = [dataset.spec(t) for t in type_names]
    removed = 0
    for spec in specs:
        if not spec.has_scenarios:
            continue
        for key, _ in dataset.items(spec.name):
            if key.scenario.lower() == scenario.lower():
                dataset.remove(spec.name, key)
                removed += 1
    return removed


def rename_scenario(dataset: Dataset, old: str, new: str) -> int:
    """
    Re-key every entry of scenario ``old`` under ``new``.

    Raises:
        ValueError: blank new label
        ScenarioConflictError: ``new`` already exists as a different scenario
    """
    new = (new or "").strip()
    if not new:
        raise ValueError("New scenario name must be non-blank")
    if new.lower() != old.lower() and new.lower() in {s.lower() for s in available_scenarios(dataset)}:
        raise ScenarioConflictError(f"Scenario '{new}' already exists")

    renamed = 0
    for spec in dataset.registry.scenario_types():
        for key, entry in dataset.items(spec.name):
            if key.scenario.lower() != old.lower():
                continue
            dataset.remove(spec.name, key)
            updated = dict(entry)
            updated[SCENARIO_FIELD] = new
            dataset.put(spec.name, key.with_scenario(new), updated)
            renamed += 1
    return renamed


def clear_types(dataset: Dataset, type_names: Iterable[str]) -> Dict[str, int]:
    """Empty the given types, returning removed counts per type."""
    return {t: dataset.clear_type(t) for t in type_names}


# ----------------------------------------------------------------------
# Commit
# ----------------------------------------------------------------------

class _Committer:
    """State shared by the per-file steps of one commit."""

    def __init__(
        self,
        target: Dataset,
        mapping: MappingConfig,
        parser: Importer,
        provenance: Optional[ProvenanceInfo],
        records: Optional[List[ImportRecord]],
        is_new_data: bool,
        mapping_path: Optional[str],
        options: Optional[ImportOptions],
        context: OperationContext,
    ):
        self.target = target
        self.mapping = mapping
        self.parser = parser
        self.provenance = provenance
        self.records = records
        self.is_new_data = is_new_data
        self.mapping_path = mapping_path
        self.options = options
        self.context = context
        self.result = CommitResult()

    def parse(self, file_path: str) -> Dataset:
        scratch = Dataset(self.target.registry)
        self.parser.import_file(file_path, self.mapping, scratch, self.options, self.context)
        return scratch

    def fail(self, file_path: str, error: Exception) -> None:
        message = f"{Path(file_path).name}: {error}"
        self.result.per_file_errors.append(message)
        self.context.error("commit", str(error), file_path)

    def finish(self, contribution: Contribution, written: int) -> None:
        if self.provenance is not None:
            self.provenance.record(contribution)
        record = ImportRecord.from_contribution(
            contribution,
            entry_count=written,
            is_new_data=self.is_new_data,
            mapping_path=self.mapping_path,
        )
        if self.records is not None:
            append_record(self.records, record)
        self.result.records.append(record)
        self.result.entries_written += written
        self.result.success_count += 1
        self.context.info("commit", f"Merged {written} entries", contribution.file_path)


def commit(
    plan: ImportPlan,
    mode: ProjectMode,
    target: Dataset,
    mapping: MappingConfig,
    *,
    parser: Optional[Importer] = None,
    provenance: Optional[ProvenanceInfo] = None,
    records: Optional[List[ImportRecord]] = None,
    is_new_data: bool = True,
    mapping_path: Optional[str] = None,
    options: Optional[ImportOptions] = None,
    context: Optional[OperationContext] = None,
) -> CommitResult:
    """
    Apply a validated plan to the target dataset.

    Args:
        plan: Import plan (re-validated here)
        mode: STANDARD replaces touched types; COMPOSITE follows the plan rows
        target: Dataset written to
        mapping: Field mapping for the parser
        parser: Parser collaborator (defaults to ImportManager)
        provenance: Updated for each merged file, if given
        records: Import log appended to for each merged file, if given
        is_new_data: Stored on the created import records
        mapping_path: Stored on the created import records
        options: Parser switches
        context: Event sink

    Returns:
        CommitResult

    Raises:
        PlanValidationError: a row is in error or nothing is selected
    """
    context = context if context is not None else OperationContext()
    if not plan.validate():
        raise PlanValidationError("Import plan has invalid rows", plan.errors())
    if not plan.can_commit:
        raise PlanValidationError("Import plan does not select anything to import")

    committer = _Committer(
        target, mapping, parser or ImportManager(), provenance, records,
        is_new_data, mapping_path, options, context,
    )
    if mode == ProjectMode.STANDARD:
        _commit_standard(plan, committer)
    else:
        _commit_composite(plan, committer)

    context.info("commit", committer.result.summary)
    return committer.result


def _commit_standard(plan: ImportPlan, c: _Committer) -> None:
    files = plan.files()
    c.result.total_files = len(files)

    parsed: List[tuple] = []
    for file_path in files:
        try:
            parsed.append((file_path, c.parse(file_path)))
        except Exception as e:  # per-file failures never abort the batch
            c.fail(file_path, e)

    touched = [
        name for name in c.target.registry.names()
        if c.target.count(name) > 0 and any(s.count(name) > 0 for _, s in parsed)
    ]
    clear_types(c.target, touched)
    c.result.cleared_types = touched
    if touched:
        c.context.info("commit", "Replaced data types: " + ", ".join(touched))

    for file_path, scratch in parsed:
        try:
            written = merge_into(scratch, c.target)
        except (KeyError, ValueError) as e:
            c.fail(file_path, e)
            continue
        c.finish(Contribution.from_scratch(file_path, scratch), written)


def _commit_composite(plan: ImportPlan, c: _Committer) -> None:
    files = [f for f in plan.files() if any(r.action != ImportAction.SKIP for r in plan.rows_for_file(f))]
    c.result.total_files = len(files)

    for file_path in files:
        rows = plan.rows_for_file(file_path)
        try:
            scratch = c.parse(file_path)
            staged, overwrites = _stage_file(scratch, rows)
        except Exception as e:  # per-file failures never abort the batch
            c.fail(file_path, e)
            continue

        for label, type_names in overwrites:
            removed = remove_scenario(c.target, label, type_names)
            c.context.debug("commit", f"Cleared {removed} entries of scenario '{label}'", file_path)
        written = merge_into(staged, c.target)
        mappings = plan.scenario_mappings(file_path)
        c.finish(Contribution.from_scratch(file_path, scratch, mappings), written)


def _stage_file(
    scratch: Dataset,
    rows: List[ImportPlanRow],
) -> Tuple[Dataset, List[Tuple[str, List[str]]]]:
    """
    Collect everything one file's rows write, without touching the target.

    Returns:
        (entries to merge, (scenario, types) pairs to clear first)
    """
    if any(r.is_non_scenario for r in rows):
        return scratch, []

    staged = simple_entries(scratch)
    overwrites: List[Tuple[str, List[str]]] = []
    for row in rows:
        if row.action == ImportAction.SKIP:
            continue
        subset = filter_by_scenario(scratch, row.original_scenario)
        if row.action == ImportAction.OVERWRITE:
            overwrites.append((row.target_scenario, subset.types_with_data()))
        merge_into(subset, staged, {row.original_scenario: row.target_scenario})
    return staged, overwrites
