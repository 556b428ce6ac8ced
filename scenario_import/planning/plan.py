"""
Composite Import Planner
========================

Builds and validates the per-(file, scenario) decision table used by a
Composite-mode commit:

- AddNew: copy the file's scenario into the dataset under a new name
- Overwrite: replace an existing scenario with the file's scenario
- Skip: leave the file's scenario out

Only the first scenario of each file is opted in by default; every other
scenario starts as Skip so that unreviewed data is never mass-imported.
Validation is re-run after every row edit and gates the commit.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from ..errors import PlanValidationError
from ..modes import ProjectMode
from .scan import FileScanResult


class ImportAction(Enum):
    """Decision for one discovered scenario."""
    ADD_NEW = "add_new"
    OVERWRITE = "overwrite"
    SKIP = "skip"


@dataclass
class ImportPlanRow:
    """
    One decision for one (file, scenario) pair.

    A row with no original scenario stands for a whole non-scenario file
    ("import everything") and always uses ADD_NEW.

    Attributes:
        file_path: Source file
        original_scenario: Scenario label as found in the file
        action: Chosen action
        new_name: Target label for ADD_NEW
        overwrite_target: Existing label replaced by OVERWRITE
        data_types: Types present in the file
        entry_count: Entries this row covers
        error: Validation message, None when valid
    """
    file_path: str
    original_scenario: Optional[str] = None
    action: ImportAction = ImportAction.ADD_NEW
    new_name: Optional[str] = None
    overwrite_target: Optional[str] = None
    data_types: Tuple[str, ...] = ()
    entry_count: int = 0
    error: Optional[str] = None

    def __post_init__(self):
        """Validate row shape."""
        self.data_types = tuple(self.data_types)
        if self.original_scenario is None and self.action != ImportAction.ADD_NEW:
            raise ValueError("A whole-file row must use ADD_NEW")

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name

    @property
    def is_non_scenario(self) -> bool:
        return self.original_scenario is None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def target_scenario(self) -> Optional[str]:
        """Label the row writes to, or None for Skip and whole-file rows."""
        if self.is_non_scenario:
            return None
        if self.action == ImportAction.ADD_NEW:
            return (self.new_name or "").strip() or None
        if self.action == ImportAction.OVERWRITE:
            return (self.overwrite_target or "").strip() or None
        return None

    @property
    def label(self) -> str:
        if self.is_non_scenario:
            return f"{self.file_name} (all data)"
        return f"{self.file_name} [{self.original_scenario}]"

    def shares_types_with(self, other: "ImportPlanRow") -> bool:
        if self.file_path.lower() == other.file_path.lower():
            return True
        return bool(set(self.data_types) & set(other.data_types))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "original_scenario": self.original_scenario,
            "action": self.action.value,
            "new_name": self.new_name,
            "overwrite_target": self.overwrite_target,
            "data_types": list(self.data_types),
            "entry_count": self.entry_count,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImportPlanRow":
        return cls(
            file_path=data["file_path"],
            original_scenario=data.get("original_scenario"),
            action=ImportAction(data.get("action", ImportAction.ADD_NEW.value)),
            new_name=data.get("new_name"),
            overwrite_target=data.get("overwrite_target"),
            data_types=tuple(data.get("data_types", ())),
            entry_count=int(data.get("entry_count", 0)),
        )


@dataclass
class ImportPlan:
    """
    Ordered set of plan rows plus the labels already in the target.

    Attributes:
        rows: Plan rows, grouped by file in scan order
        existing_scenarios: Scenario labels present in the target dataset
        mode: Project mode the plan was built for
    """
    rows: List[ImportPlanRow] = field(default_factory=list)
    existing_scenarios: Set[str] = field(default_factory=set)
    mode: ProjectMode = ProjectMode.COMPOSITE

    def __iter__(self) -> Iterator[ImportPlanRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> ImportPlanRow:
        return self.rows[index]

    def validate(self) -> bool:
        return validate_plan(self)

    @property
    def can_commit(self) -> bool:
        """No row in error and at least one row that imports something."""
        if not self.validate():
            return False
        return any(r.action != ImportAction.SKIP or r.is_non_scenario for r in self.rows)

    def update_row(
        self,
        index: int,
        action: Optional[ImportAction] = None,
        new_name: Optional[str] = None,
        overwrite_target: Optional[str] = None,
    ) -> bool:
        """
        Edit one row and re-validate the whole plan.

        Returns:
            Whether the plan is valid after the edit
        """
        row = self.rows[index]
        if action is not None:
            if row.is_non_scenario and action != ImportAction.ADD_NEW:
                raise ValueError(f"{row.label}: whole-file rows cannot be changed to {action.value}")
            row.action = action
        if new_name is not None:
            row.new_name = new_name
        if overwrite_target is not None:
            row.overwrite_target = overwrite_target
        return self.validate()

    def files(self) -> List[str]:
        """Distinct files in first-appearance order."""
        seen: List[str] = []
        for r in self.rows:
            if r.file_path not in seen:
                seen.append(r.file_path)
        return seen

    def rows_for_file(self, file_path: str) -> List[ImportPlanRow]:
        return [r for r in self.rows if r.file_path == file_path]

    def active_rows(self) -> List[ImportPlanRow]:
        return [r for r in self.rows if r.action != ImportAction.SKIP]

    def scenario_mappings(self, file_path: str) -> Dict[str, str]:
        """
        Original -> target label for a file's importing rows.

        The first mapping for an original label wins.
        """
        mappings: Dict[str, str] = {}
        seen: Set[str] = set()
        for r in self.rows_for_file(file_path):
            target = r.target_scenario
            if r.is_non_scenario or target is None:
                continue
            if r.original_scenario.lower() in seen:
                continue
            seen.add(r.original_scenario.lower())
            mappings[r.original_scenario] = target
        return mappings

    def errors(self) -> List[str]:
        return [f"{r.label}: {r.error}" for r in self.rows if r.error]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "mode": self.mode.value,
            "existing_scenarios": sorted(self.existing_scenarios, key=str.lower),
            "rows": [r.to_dict() for r in self.rows],
        }


def build_plan(
    scan_results: Iterable[FileScanResult],
    existing_scenarios: Iterable[str],
    mode: ProjectMode = ProjectMode.COMPOSITE,
) -> ImportPlan:
    """
    Build the default plan for a batch of scanned files.

    Args:
        scan_results: Per-file scans, in import order
        existing_scenarios: Labels already in the target dataset
        mode: STANDARD yields one whole-file row per file

    Returns:
        Validated ImportPlan
    """
    rows: List[ImportPlanRow] = []
    for result in scan_results:
        types = tuple(result.data_types)
        if mode == ProjectMode.STANDARD or result.is_non_scenario_file:
            rows.append(ImportPlanRow(
                file_path=result.file_path,
                data_types=types,
                entry_count=sum(result.type_counts.values()),
            ))
            continue
        for i, scenario in enumerate(result.scenarios):
            rows.append(ImportPlanRow(
                file_path=result.file_path,
                original_scenario=scenario,
                action=ImportAction.ADD_NEW if i == 0 else ImportAction.SKIP,
                new_name=scenario,
                data_types=types,
                entry_count=result.scenario_counts.get(scenario, 0),
            ))

    plan = ImportPlan(rows=rows, existing_scenarios=set(existing_scenarios), mode=mode)
    plan.validate()
    return plan


def plan_from_rows(
    rows: Iterable[dict],
    existing_scenarios: Iterable[str],
    mode: ProjectMode = ProjectMode.COMPOSITE,
) -> ImportPlan:
    """
    Rebuild a plan from row dictionaries (e.g. an edited plan file).

    Raises:
        PlanValidationError: a row is not a mapping, lacks ``file_path``, names
            an unknown action or gives a whole-file row an action other than
            ADD_NEW
    """
    parsed: List[ImportPlanRow] = []
    for i, data in enumerate(rows):
        if not isinstance(data, dict):
            raise PlanValidationError(f"Plan row {i + 1} is not an object")
        try:
            parsed.append(ImportPlanRow.from_dict(data))
        except KeyError as e:
            raise PlanValidationError(f"Plan row {i + 1} is missing {e}") from e
        except (TypeError, ValueError) as e:
            actions = ", ".join(a.value for a in ImportAction)
            raise PlanValidationError(f"Plan row {i + 1}: {e} (actions: {actions})") from e

    plan = ImportPlan(
        rows=parsed,
        existing_scenarios=set(existing_scenarios),
        mode=mode,
    )
    plan.validate()
    return plan


def validate_plan(plan: ImportPlan) -> bool:
    """
    Re-check every row, setting or clearing each row's error.

    AddNew names are compared against every existing label regardless of
    data type, and against other AddNew rows whose files share a data type.
    Overwrite targets must exist and be claimed by one row only.

    Returns:
        True when no row is in error
    """
    existing = {s.lower() for s in plan.existing_scenarios}
    for row in plan.rows:
        row.error = None

    add_rows = [r for r in plan.rows if r.action == ImportAction.ADD_NEW and not r.is_non_scenario]
    for row in add_rows:
        name = (row.new_name or "").strip()
        if not name:
            row.error = "A name is required for the new scenario"
            continue
        if name.lower() in existing:
            row.error = f"Scenario '{name}' already exists in the dataset"
            continue
        for other in add_rows:
            if other is row:
                continue
            if (other.new_name or "").strip().lower() == name.lower() and row.shares_types_with(other):
                row.error = f"Scenario name '{name}' is also used by {other.label}"
                break

    overwrite_rows = [r for r in plan.rows if r.action == ImportAction.OVERWRITE]
    claims = Counter((r.overwrite_target or "").strip().lower() for r in overwrite_rows)
    for row in overwrite_rows:
        target = (row.overwrite_target or "").strip()
        if not target:
            row.error = "Choose an existing scenario to overwrite"
        elif target.lower() not in existing:
            row.error = f"Scenario '{target}' does not exist in the dataset"
        elif claims[target.lower()] > 1:
            row.error = f"Scenario '{target}' is selected for overwrite by more than one row"

    return not any(r.has_error for r in plan.rows)
