"""
Import Records
==============

Flat, append-only audit log of committed file imports. Each record carries
enough of the file's contribution to replay provenance if the derived
structure is lost. Scenario renames and removals are applied to the records
as well, so a replay matches the live attribution.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .tracker import Contribution, ProvenanceInfo


@dataclass
class ImportRecord:
    """
    One committed file import.

    Attributes:
        file_path: Source file
        imported_at: Commit time (UTC)
        data_types: Types merged from the file
        scenario_mappings: Source label -> target label for renamed/selected scenarios
        scenarios_by_type: Source-file labels merged per scenario-keyed type
        is_new_data: True for the "new" dataset, False for "old"
        entry_count: Entries merged
        mapping_path: Mapping file used, if known
    """
    file_path: str
    imported_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    data_types: List[str] = field(default_factory=list)
    scenario_mappings: Dict[str, str] = field(default_factory=dict)
    scenarios_by_type: Dict[str, List[str]] = field(default_factory=dict)
    is_new_data: bool = True
    entry_count: int = 0
    mapping_path: Optional[str] = None

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name

    def scenario_mappings_summary(self) -> str:
        if not self.scenario_mappings:
            return "(no scenarios)"
        return ", ".join(
            original if original == target else f"{original} → {target}"
            for original, target in self.scenario_mappings.items()
        )

    def target_for(self, label: str) -> str:
        """Label a merged source scenario currently has in the dataset."""
        for original, target in self.scenario_mappings.items():
            if original.lower() == label.lower():
                return target
        return label

    def rename_scenario(self, old: str, new: str) -> None:
        """Point every source label that now lands on ``old`` at ``new``."""
        for labels in self.scenarios_by_type.values():
            for label in labels:
                if self.target_for(label).lower() != old.lower():
                    continue
                for original in [k for k in self.scenario_mappings if k.lower() == label.lower()]:
                    del self.scenario_mappings[original]
                self.scenario_mappings[label] = new

    def remove_scenario(self, target: str) -> None:
        """Forget the source labels that landed on a removed scenario."""
        for type_name in list(self.scenarios_by_type):
            labels = self.scenarios_by_type[type_name]
            kept = [s for s in labels if self.target_for(s).lower() != target.lower()]
            if kept:
                self.scenarios_by_type[type_name] = kept
                continue
            del self.scenarios_by_type[type_name]
            self.data_types = [t for t in self.data_types if t != type_name]
        self.scenario_mappings = {
            k: v for k, v in self.scenario_mappings.items() if v.lower() != target.lower()
        }

    def contribution(self) -> Contribution:
        simple = [t for t in self.data_types if t not in self.scenarios_by_type]
        return Contribution(
            file_path=self.file_path,
            simple_types=simple,
            scenarios_by_type={t: list(v) for t, v in self.scenarios_by_type.items()},
            scenario_mappings=dict(self.scenario_mappings),
        )

    @classmethod
    def from_contribution(
        cls,
        contribution: Contribution,
        entry_count: int = 0,
        is_new_data: bool = True,
        mapping_path: Optional[str] = None,
    ) -> "ImportRecord":
        return cls(
            file_path=contribution.file_path,
            data_types=contribution.data_types,
            scenario_mappings=dict(contribution.scenario_mappings),
            scenarios_by_type={t: list(v) for t, v in contribution.scenarios_by_type.items()},
            is_new_data=is_new_data,
            entry_count=entry_count,
            mapping_path=mapping_path,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "imported_at": self.imported_at.isoformat(),
            "data_types": list(self.data_types),
            "scenario_mappings": dict(self.scenario_mappings),
            "scenarios_by_type": {t: list(v) for t, v in self.scenarios_by_type.items()},
            "is_new_data": self.is_new_data,
            "entry_count": self.entry_count,
            "mapping_path": self.mapping_path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImportRecord":
        imported_at = data["imported_at"]
        if isinstance(imported_at, str):
            imported_at = datetime.fromisoformat(imported_at.replace("Z", "+00:00"))
        return cls(
            file_path=data["file_path"],
            imported_at=imported_at,
            data_types=list(data.get("data_types", [])),
            scenario_mappings=dict(data.get("scenario_mappings", {})),
            scenarios_by_type={t: list(v) for t, v in data.get("scenarios_by_type", {}).items()},
            is_new_data=bool(data.get("is_new_data", True)),
            entry_count=int(data.get("entry_count", 0)),
            mapping_path=data.get("mapping_path"),
        )


def append_record(records: List[ImportRecord], record: ImportRecord) -> None:
    """Add a record to the end of the log; earlier records of the same file stay."""
    records.append(record)


def rename_scenario(records: Iterable[ImportRecord], old: str, new: str) -> None:
    """Follow a dataset scenario rename through every record."""
    for record in records:
        record.rename_scenario(old, new)


def remove_scenario(records: Iterable[ImportRecord], label: str) -> None:
    """Follow a dataset scenario removal through every record."""
    for record in records:
        record.remove_scenario(label)


def rebuild_provenance(records: Iterable[ImportRecord]) -> ProvenanceInfo:
    """Replay records in order to reconstruct provenance."""
    info = ProvenanceInfo()
    for record in records:
        info.record(record.contribution())
    return info
