"""
Project Model
=============

A project owns two datasets ("new" and "old") used for before/after
comparison. Each dataset has its own provenance and import log. The project
mode decides how imports merge:

- STANDARD: imports replace whole data types
- COMPOSITE: imports merge per scenario under an explicit plan

Switching mode empties both datasets, so it requires confirmation.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..context import OperationContext
from ..data.dataset import Dataset
from ..data.registry import DEFAULT_REGISTRY, DataTypeRegistry
from ..data.statistics import ScenarioStatistics, available_scenarios, scenario_statistics
from ..errors import ConfirmationRequiredError
from ..importing.manager import Importer, ImportManager
from ..importing.mapping import MappingConfig
from ..importing.parser import ImportOptions
from ..merge.engine import CommitResult, commit, remove_scenario, rename_scenario
from ..modes import DatasetRole, ProjectMode
from ..planning.conflicts import ConflictResult, pre_scan
from ..planning.plan import ImportPlan, build_plan
from ..planning.scan import FileScanResult, scan_files
from ..provenance import records as import_log
from ..provenance.records import ImportRecord, rebuild_provenance
from ..provenance.tracker import ProvenanceInfo, ProvenanceNode, query_provenance

logger = logging.getLogger(__name__)


@dataclass
class DatasetSlot:
    """
    One of the project's datasets with its bookkeeping.

    Attributes:
        role: NEW or OLD
        dataset: Entries
        provenance: Source attribution
        records: Import log (audit display)
    """
    role: DatasetRole
    dataset: Dataset
    provenance: ProvenanceInfo = field(default_factory=ProvenanceInfo)
    records: List[ImportRecord] = field(default_factory=list)

    @property
    def is_new_data(self) -> bool:
        return self.role == DatasetRole.NEW

    def is_blank(self) -> bool:
        """True when there are no entries, attributions or import records."""
        return self.dataset.is_empty() and self.provenance.is_empty() and not self.records

    def reset(self) -> None:
        self.dataset.clear()
        self.provenance.clear()
        self.records.clear()


class Project:
    """
    Engineering project holding "new" and "old" datasets.

    Attributes:
        name: Project name
        mode: Merge policy for imports
        metadata: Free-form descriptive fields (site, engineer, ...)
        registry: Data types the datasets hold
    """

    def __init__(
        self,
        name: str = "Untitled Project",
        mode: ProjectMode = ProjectMode.STANDARD,
        metadata: Optional[Dict[str, str]] = None,
        registry: DataTypeRegistry = DEFAULT_REGISTRY,
    ):
        self.name = name
        self.mode = mode
        self.metadata: Dict[str, str] = dict(metadata or {})
        self.registry = registry
        self.slots: Dict[DatasetRole, DatasetSlot] = {
            role: DatasetSlot(role, Dataset(registry)) for role in DatasetRole
        }

    def slot(self, role: DatasetRole) -> DatasetSlot:
        return self.slots[role]

    @property
    def new_data(self) -> Dataset:
        return self.slots[DatasetRole.NEW].dataset

    @property
    def old_data(self) -> Dataset:
        return self.slots[DatasetRole.OLD].dataset

    def has_data(self) -> bool:
        return any(not s.dataset.is_empty() for s in self.slots.values())

    # ------------------------------------------------------------------
    # Destructive operations
    # ------------------------------------------------------------------

    def change_mode(self, mode: ProjectMode, confirm: bool = False) -> bool:
        """
        Switch merge policy, emptying both datasets.

        Args:
            mode: New mode
            confirm: Caller has confirmed the data loss

        Returns:
            True if the mode changed

        Raises:
            ConfirmationRequiredError: data would be lost and confirm is False
        """
        if mode == self.mode:
            return False
        if not confirm and not all(s.is_blank() for s in self.slots.values()):
            raise ConfirmationRequiredError(
                f"Changing project mode to {mode.value} will delete all imported data and import history"
            )
        for s in self.slots.values():
            s.reset()
        logger.info("Project '%s' mode changed %s -> %s", self.name, self.mode.value, mode.value)
        self.mode = mode
        return True

    def clear_dataset(self, role: DatasetRole) -> int:
        """Remove all entries of one dataset; metadata and provenance are kept."""
        dataset = self.slot(role).dataset
        removed = dataset.total_entries()
        dataset.clear()
        logger.info("Cleared %d entries from %s dataset", removed, role.value)
        return removed

    def rename_scenario(self, role: DatasetRole, old: str, new: str) -> int:
        s = self.slot(role)
        renamed = rename_scenario(s.dataset, old, new)
        if renamed:
            s.provenance.rename_scenario(old, new.strip())
            import_log.rename_scenario(s.records, old, new.strip())
        return renamed

    def remove_scenario(self, role: DatasetRole, label: str) -> int:
        s = self.slot(role)
        removed = remove_scenario(s.dataset, label)
        if removed:
            s.provenance.remove_scenario(label)
            import_log.remove_scenario(s.records, label)
        return removed

    # ------------------------------------------------------------------
    # Import pipeline
    # ------------------------------------------------------------------

    def pre_scan(
        self,
        role: DatasetRole,
        files: Iterable[str],
        mapping: MappingConfig,
        parser: Optional[Importer] = None,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
    ) -> ConflictResult:
        return pre_scan(files, mapping, self.slot(role).dataset, parser, options, context)

    def scan(
        self,
        files: Iterable[str],
        mapping: MappingConfig,
        parser: Optional[Importer] = None,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
    ) -> List[FileScanResult]:
        return scan_files(files, mapping, parser, self.registry, options, context)

    def build_plan(self, role: DatasetRole, scan_results: Iterable[FileScanResult]) -> ImportPlan:
        return build_plan(scan_results, available_scenarios(self.slot(role).dataset), self.mode)

    def commit(
        self,
        role: DatasetRole,
        plan: ImportPlan,
        mapping: MappingConfig,
        parser: Optional[Importer] = None,
        mapping_path: Optional[str] = None,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
    ) -> CommitResult:
        s = self.slot(role)
        return commit(
            plan,
            self.mode,
            s.dataset,
            mapping,
            parser=parser,
            provenance=s.provenance,
            records=s.records,
            is_new_data=s.is_new_data,
            mapping_path=mapping_path,
            options=options,
            context=context,
        )

    def import_files(
        self,
        role: DatasetRole,
        files: List[str],
        mapping: MappingConfig,
        parser: Optional[Importer] = None,
        mapping_path: Optional[str] = None,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
    ) -> CommitResult:
        """Scan, plan with defaults and commit in one step."""
        parser = parser or ImportManager()
        context = context if context is not None else OperationContext()
        plan = self.build_plan(role, self.scan(files, mapping, parser, options, context))
        return self.commit(role, plan, mapping, parser, mapping_path, options, context)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def provenance_tree(self, role: DatasetRole) -> List[ProvenanceNode]:
        """Provenance tree, replayed from the import log if none was kept."""
        s = self.slot(role)
        info = s.provenance
        if info.is_empty() and s.records:
            info = rebuild_provenance(s.records)
        return query_provenance(info, self.registry)

    def statistics(self, role: DatasetRole) -> List[ScenarioStatistics]:
        return scenario_statistics(self.slot(role).dataset)
