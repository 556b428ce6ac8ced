"""
Provenance Tracker
==================

Remembers which file last supplied each slice of a dataset:
- Simple types: whole type, last writer wins
- Scenario-keyed types: per target scenario label, including the label the
  data carried in its source file when it was renamed on import

Provenance is derived from the scratch dataset that was actually merged,
never from the post-merge target, so pre-existing data is not attributed to
the file being imported.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..data.dataset import Dataset
from ..data.registry import DEFAULT_REGISTRY, DataTypeRegistry
from ..data.statistics import scenario_counts


@dataclass
class ScenarioSource:
    """
    Source of one scenario of one scenario-keyed type.

    Attributes:
        file_path: File that supplied the data
        original_scenario: Label in the source file, None if not renamed
        target_scenario: Label in the dataset
    """
    file_path: str
    original_scenario: Optional[str]
    target_scenario: str

    @property
    def was_renamed(self) -> bool:
        return self.original_scenario is not None

    @property
    def display(self) -> str:
        if self.was_renamed:
            return f"{self.original_scenario} → {self.target_scenario}"
        return self.target_scenario

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "original_scenario": self.original_scenario,
            "target_scenario": self.target_scenario,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioSource":
        return cls(data["file_path"], data.get("original_scenario"), data["target_scenario"])


@dataclass
class Contribution:
    """
    What one file's merge put into a dataset.

    Attributes:
        file_path: Source file
        simple_types: Simple types with at least one merged entry
        scenarios_by_type: Source-file scenario labels merged, per type
        scenario_mappings: Source label -> target label; labels without a
            mapping keep their name
    """
    file_path: str
    simple_types: List[str] = field(default_factory=list)
    scenarios_by_type: Dict[str, List[str]] = field(default_factory=dict)
    scenario_mappings: Dict[str, str] = field(default_factory=dict)

    def target_for(self, label: str) -> str:
        for original, target in self.scenario_mappings.items():
            if original.lower() == label.lower():
                return target
        return label

    @property
    def data_types(self) -> List[str]:
        return list(self.scenarios_by_type) + list(self.simple_types)

    @classmethod
    def from_scratch(
        cls,
        file_path: str,
        scratch: Dataset,
        scenario_mappings: Optional[Dict[str, str]] = None,
    ) -> "Contribution":
        """
        Derive a contribution from a merged scratch dataset.

        Args:
            file_path: Source file
            scratch: The file's parsed data
            scenario_mappings: Plan mappings for the file; when given, only
                mapped scenarios count as contributed (others were skipped)
        """
        mappings = dict(scenario_mappings or {})
        mapped = {k.lower() for k in mappings}
        simple: List[str] = []
        by_type: Dict[str, List[str]] = {}
        for spec in scratch.registry:
            if scratch.count(spec.name) == 0:
                continue
            if not spec.has_scenarios:
                simple.append(spec.name)
                continue
            labels = [
                label for label in scenario_counts(scratch, spec.name)
                if not mappings or label.lower() in mapped
            ]
            if labels:
                by_type[spec.name] = labels
        return cls(file_path, simple, by_type, mappings)


@dataclass
class ProvenanceInfo:
    """
    Source attribution for one dataset.

    Attributes:
        data_type_sources: Simple type -> last contributing file
        composite_sources: Scenario-keyed type -> target label -> ScenarioSource
    """
    data_type_sources: Dict[str, str] = field(default_factory=dict)
    composite_sources: Dict[str, Dict[str, ScenarioSource]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.data_type_sources and not any(self.composite_sources.values())

    def record(self, contribution: Contribution) -> None:
        """Apply one file's contribution, replacing earlier attributions."""
        for type_name in contribution.simple_types:
            self.data_type_sources[type_name] = contribution.file_path

        for type_name, labels in contribution.scenarios_by_type.items():
            slot = self.composite_sources.setdefault(type_name, {})
            for label in labels:
                target = contribution.target_for(label)
                for existing in [k for k in slot if k.lower() == target.lower()]:
                    del slot[existing]
                slot[target] = ScenarioSource(
                    file_path=contribution.file_path,
                    original_scenario=label if label != target else None,
                    target_scenario=target,
                )

    def source_for(self, type_name: str, scenario: Optional[str] = None) -> Optional[str]:
        """File that last supplied a type (or one scenario of it)."""
        if scenario is None:
            return self.data_type_sources.get(type_name)
        for label, source in self.composite_sources.get(type_name, {}).items():
            if label.lower() == scenario.lower():
                return source.file_path
        return None

    def rename_scenario(self, old: str, new: str) -> None:
        """Follow a scenario rename in the dataset."""
        for slot in self.composite_sources.values():
            for label in [k for k in slot if k.lower() == old.lower()]:
                source = slot.pop(label)
                original = source.original_scenario or source.target_scenario
                slot[new] = ScenarioSource(
                    file_path=source.file_path,
                    original_scenario=original if original != new else None,
                    target_scenario=new,
                )

    def remove_scenario(self, label: str) -> None:
        for slot in self.composite_sources.values():
            for existing in [k for k in slot if k.lower() == label.lower()]:
                del slot[existing]

    def clear(self) -> None:
        self.data_type_sources.clear()
        self.composite_sources.clear()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "data_type_sources": dict(self.data_type_sources),
            "composite_sources": {
                t: {label: s.to_dict() for label, s in slot.items()}
                for t, slot in self.composite_sources.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProvenanceInfo":
        return cls(
            data_type_sources=dict(data.get("data_type_sources", {})),
            composite_sources={
                t: {label: ScenarioSource.from_dict(s) for label, s in slot.items()}
                for t, slot in data.get("composite_sources", {}).items()
            },
        )


@dataclass
class ProvenanceNode:
    """Node of the provenance tree (file -> type -> scenario)."""
    label: str
    kind: str
    file_path: Optional[str] = None
    children: List["ProvenanceNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "label": self.label,
            "kind": self.kind,
            "file_path": self.file_path,
            "children": [c.to_dict() for c in self.children],
        }


def query_provenance(
    info: ProvenanceInfo,
    registry: DataTypeRegistry = DEFAULT_REGISTRY,
) -> List[ProvenanceNode]:
    """
    Group attributions by file, then by data type, then by scenario.

    Files are ordered by name; types follow registry order.
    """
    by_file: Dict[str, Dict[str, List[ScenarioSource]]] = {}
    for type_name, file_path in info.data_type_sources.items():
        by_file.setdefault(file_path, {}).setdefault(type_name, [])
    for type_name, slot in info.composite_sources.items():
        for source in slot.values():
            by_file.setdefault(source.file_path, {}).setdefault(type_name, []).append(source)

    order = {name.lower(): i for i, name in enumerate(registry.names())}
    nodes: List[ProvenanceNode] = []
    for file_path in sorted(by_file, key=lambda p: (Path(p).name.lower(), p)):
        file_node = ProvenanceNode(Path(file_path).name, "file", file_path)
        types = sorted(by_file[file_path], key=lambda t: (order.get(t.lower(), len(order)), t))
        for type_name in types:
            type_node = ProvenanceNode(registry.display_name(type_name), "type", file_path)
            sources = sorted(by_file[file_path][type_name], key=lambda s: s.target_scenario.lower())
            type_node.children = [ProvenanceNode(s.display, "scenario", file_path) for s in sources]
            file_node.children.append(type_node)
        nodes.append(file_node)
    return nodes


def render_tree(nodes: List[ProvenanceNode], indent: str = "  ") -> str:
    """Plain-text rendering of a provenance tree."""
    lines: List[str] = []

    def walk(node: ProvenanceNode, depth: int) -> None:
        lines.append(f"{indent * depth}{node.label}")
        for child in node.children:
            walk(child, depth + 1)

    for node in nodes:
        walk(node, 0)
    return "\n".join(lines)
