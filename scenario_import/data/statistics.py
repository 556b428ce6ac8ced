"""
Scenario Discovery & Statistics
===============================

Derives scenario labels and per-type, per-scenario entry counts from a
dataset. Used by the planner (existing scenarios), the UI and the CLI.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set

import pandas as pd

from .dataset import Dataset

# Label reported for types without a scenario dimension
NO_SCENARIO = "(no scenario)"


def available_scenarios(dataset: Dataset) -> Set[str]:
    """
    All scenario labels present in any scenario-keyed collection.

    Labels are de-duplicated case-insensitively; the first spelling
    encountered (registry order, then insertion order) is kept.
    """
    return set(discovered_scenarios(dataset))


def discovered_scenarios(dataset: Dataset) -> List[str]:
    """Scenario labels in discovery order, case-insensitively unique."""
    seen: Dict[str, str] = {}
    for spec in dataset.registry.scenario_types():
        for key, _ in dataset.items(spec.name):
            seen.setdefault(key.scenario.lower(), key.scenario)
    return list(seen.values())


def sorted_scenarios(dataset: Dataset) -> List[str]:
    """Available scenarios sorted case-insensitively, for display."""
    return sorted(discovered_scenarios(dataset), key=str.lower)


def scenario_counts(dataset: Dataset, type_name: str) -> Dict[str, int]:
    """Entry count per scenario label for one scenario-keyed type."""
    counts: Dict[str, int] = {}
    for key, _ in dataset.items(type_name):
        counts[key.scenario] = counts.get(key.scenario, 0) + 1
    return counts


def statistics_by_scenario(dataset: Dataset) -> Dict[str, Dict[str, int]]:
    """
    Per-type, per-scenario entry counts for types holding data.

    Simple types report their total under NO_SCENARIO.
    """
    stats: Dict[str, Dict[str, int]] = {}
    for spec in dataset.registry:
        if spec.has_scenarios:
            counts = scenario_counts(dataset, spec.name)
            if counts:
                stats[spec.name] = counts
        else:
            n = dataset.count(spec.name)
            if n:
                stats[spec.name] = {NO_SCENARIO: n}
    return stats


def is_uniform(dataset: Dataset, type_name: str) -> bool:
    """True when every scenario of a type has the same entry count."""
    spec = dataset.spec(type_name)
    if not spec.has_scenarios:
        return True
    counts = scenario_counts(dataset, spec.name)
    return len(set(counts.values())) <= 1


@dataclass
class ScenarioStatistics:
    """
    Scenario breakdown for one data type.

    Attributes:
        data_type: Type name
        display_name: Friendly type name
        counts: Entry count per scenario label
    """
    data_type: str
    display_name: str
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def has_uniform_scenarios(self) -> bool:
        return len(set(self.counts.values())) <= 1

    @property
    def statistics_display(self) -> str:
        if not self.counts:
            return "0 entries"
        if self.has_uniform_scenarios:
            return f"{next(iter(self.counts.values()))} entries"
        return "Mixed"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "data_type": self.data_type,
            "display_name": self.display_name,
            "counts": dict(self.counts),
            "total": self.total,
            "uniform": self.has_uniform_scenarios,
            "display": self.statistics_display,
        }


def scenario_statistics(dataset: Dataset) -> List[ScenarioStatistics]:
    """ScenarioStatistics for every type holding data."""
    return [
        ScenarioStatistics(name, dataset.registry.display_name(name), counts)
        for name, counts in statistics_by_scenario(dataset).items()
    ]


def statistics_frame(dataset: Dataset) -> pd.DataFrame:
    """Long-format table of counts: data_type, scenario, count."""
    rows = [
        {"data_type": type_name, "scenario": label, "count": n}
        for type_name, counts in statistics_by_scenario(dataset).items()
        for label, n in counts.items()
    ]
    return pd.DataFrame(rows, columns=["data_type", "scenario", "count"])
