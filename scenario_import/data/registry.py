"""
Data-Type Registry
==================

Declarative table of every equipment/result type a dataset can hold.

Each type declares its key fields once; datasets, statistics, conflict
detection and merging iterate the registry instead of naming types
individually, so a newly added type is handled everywhere at once.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

SCENARIO_FIELD = "Scenario"


class DataTypeCategory(Enum):
    """Grouping used for display."""
    CALCULATION = "calculation"  # Study results, scenario-aware
    EQUIPMENT = "equipment"      # Equipment lists, no scenario dimension


@dataclass(frozen=True)
class DataTypeSpec:
    """
    Registry entry for one data type.

    Attributes:
        name: Internal type name (e.g. "ArcFlash")
        display_name: Human-readable name (e.g. "Arc Flash")
        category: Display grouping
        key_fields: Entry fields forming the key, scenario last when present
    """
    name: str
    display_name: str
    category: DataTypeCategory = DataTypeCategory.EQUIPMENT
    key_fields: Tuple[str, ...] = ("Id",)

    def __post_init__(self):
        """Validate registry entry."""
        if not self.name or not self.name.strip():
            raise ValueError("DataTypeSpec.name must be non-blank")
        if not self.key_fields:
            raise ValueError(f"{self.name}: at least one key field is required")
        if SCENARIO_FIELD in self.key_fields[:-1]:
            raise ValueError(f"{self.name}: {SCENARIO_FIELD} must be the last key field")

    @property
    def has_scenarios(self) -> bool:
        return self.key_fields[-1] == SCENARIO_FIELD


class DataTypeRegistry:
    """
    Ordered, case-insensitive lookup of data types.

    Iteration yields specs in registration order (calculation results first,
    then equipment alphabetically for the default registry).
    """

    def __init__(self, specs: Optional[List[DataTypeSpec]] = None):
        self._specs: Dict[str, DataTypeSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: DataTypeSpec) -> None:
        key = spec.name.lower()
        if key in self._specs:
            raise ValueError(f"Data type already registered: {spec.name}")
        self._specs[key] = spec

    def get(self, name: str) -> Optional[DataTypeSpec]:
        if not name:
            return None
        return self._specs.get(name.strip().lower())

    def require(self, name: str) -> DataTypeSpec:
        """Look up a type, raising KeyError if unknown."""
        spec = self.get(name)
        if spec is None:
            raise KeyError(f"Unknown data type: {name}")
        return spec

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator[DataTypeSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def names(self) -> List[str]:
        return [s.name for s in self._specs.values()]

    def scenario_types(self) -> List[DataTypeSpec]:
        return [s for s in self._specs.values() if s.has_scenarios]

    def simple_types(self) -> List[DataTypeSpec]:
        return [s for s in self._specs.values() if not s.has_scenarios]

    def display_name(self, name: str) -> str:
        """Friendly name for a type, falling back to splitting camel case."""
        spec = self.get(name)
        if spec is not None:
            return spec.display_name
        return friendly_type_name(name)


def friendly_type_name(name: str) -> str:
    """'ShortCircuitEntries' -> 'Short Circuit'."""
    if name.endswith("Entries"):
        name = name[: -len("Entries")]
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", name)


def _equipment(name: str, display_name: str) -> DataTypeSpec:
    return DataTypeSpec(name, display_name, DataTypeCategory.EQUIPMENT, ("Id",))


def build_default_registry() -> DataTypeRegistry:
    """Registry of the types exported by the power-analysis tool."""
    return DataTypeRegistry([
        # Calculation results (scenario-aware)
        DataTypeSpec("ArcFlash", "Arc Flash", DataTypeCategory.CALCULATION, ("Id", SCENARIO_FIELD)),
        DataTypeSpec("ShortCircuit", "Short Circuit", DataTypeCategory.CALCULATION, ("Bus", "Id", SCENARIO_FIELD)),
        # Equipment
        _equipment("AFD", "Adjustable Frequency Drives"),
        _equipment("ATS", "Automatic Transfer Switches"),
        _equipment("Battery", "Batteries"),
        _equipment("Bus", "Buses"),
        _equipment("Busway", "Busways"),
        _equipment("Cable", "Cables"),
        _equipment("Capacitor", "Capacitors"),
        _equipment("CLReactor", "Current Limiting Reactors"),
        _equipment("CT", "Current Transformers"),
        _equipment("Filter", "Filters"),
        _equipment("Fuse", "Fuses"),
        _equipment("Generator", "Generators"),
        _equipment("HVBreaker", "HV Breakers"),
        _equipment("Inverter", "Inverters"),
        _equipment("Load", "Loads"),
        _equipment("LVBreaker", "LV Breakers"),
        _equipment("MCC", "Motor Control Centers"),
        _equipment("Meter", "Meters"),
        _equipment("Motor", "Motors"),
        _equipment("Panel", "Panels"),
        _equipment("Photovoltaic", "Photovoltaic Arrays"),
        _equipment("POC", "Points of Connection"),
        _equipment("Rectifier", "Rectifiers"),
        _equipment("Relay", "Relays"),
        _equipment("Shunt", "Shunts"),
        _equipment("Switch", "Switches"),
        _equipment("Transformer2W", "2-Winding Transformers"),
        _equipment("Transformer3W", "3-Winding Transformers"),
        _equipment("TransmissionLine", "Transmission Lines"),
        _equipment("UPS", "Uninterruptible Power Supplies"),
        _equipment("Utility", "Utilities"),
        _equipment("ZigzagTransformer", "Zigzag Transformers"),
    ])


DEFAULT_REGISTRY = build_default_registry()
