"""
Data Model
==========

Datasets of equipment entries keyed by identifier or by composite
(identifier[, secondary], scenario) keys, the data-type registry, and
scenario statistics.
"""

from .keys import CompositeKey
from .registry import (
    DEFAULT_REGISTRY,
    DataTypeCategory,
    DataTypeRegistry,
    DataTypeSpec,
    build_default_registry,
    friendly_type_name,
)
from .dataset import Dataset, Entry, EntryKey
from .statistics import (
    NO_SCENARIO,
    ScenarioStatistics,
    available_scenarios,
    discovered_scenarios,
    is_uniform,
    scenario_counts,
    scenario_statistics,
    sorted_scenarios,
    statistics_by_scenario,
    statistics_frame,
)

__all__ = [
    "CompositeKey",
    "DEFAULT_REGISTRY",
    "DataTypeCategory",
    "DataTypeRegistry",
    "DataTypeSpec",
    "build_default_registry",
    "friendly_type_name",
    "Dataset",
    "Entry",
    "EntryKey",
    "NO_SCENARIO",
    "ScenarioStatistics",
    "available_scenarios",
    "discovered_scenarios",
    "is_uniform",
    "scenario_counts",
    "scenario_statistics",
    "sorted_scenarios",
    "statistics_by_scenario",
    "statistics_frame",
]
