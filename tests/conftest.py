"""Shared fixtures for the scenario import tests."""

import json
from typing import Dict, List, Optional

import pytest

from scenario_import.data.dataset import Dataset
from scenario_import.importing.mapping import MappingConfig, parse_mapping
from scenario_import.importing.parser import ParseSummary


def arc_flash(scenario: str, n: int, prefix: str = "AF", **fields) -> List[dict]:
    """n ArcFlash entries for one scenario, ids <prefix>0..<prefix>n-1."""
    return [{"Id": f"{prefix}{i}", "Scenario": scenario, "IncidentEnergy": "1.5", **fields} for i in range(n)]


def short_circuit(scenario: str, n: int, bus: str = "BUS-1") -> List[dict]:
    return [{"Bus": bus, "Id": f"CB{i}", "Scenario": scenario, "Duty": "0.9"} for i in range(n)]


def equipment(n: int, prefix: str = "E", **fields) -> List[dict]:
    return [{"Id": f"{prefix}{i}", **fields} for i in range(n)]


def fill(dataset: Dataset, type_name: str, entries: List[dict]) -> Dataset:
    for e in entries:
        dataset.add(type_name, dict(e))
    return dataset


class FakeParser:
    """In-memory parser collaborator: file path -> type -> entries."""

    def __init__(self, sources: Optional[Dict[str, Dict[str, List[dict]]]] = None):
        self.sources = sources or {}
        self.failures: Dict[str, Exception] = {}
        self.calls: List[str] = []

    def add(self, file_path: str, type_name: str, entries: List[dict]) -> "FakeParser":
        self.sources.setdefault(file_path, {}).setdefault(type_name, []).extend(entries)
        return self

    def fail(self, file_path: str, error: Exception) -> "FakeParser":
        self.failures[file_path] = error
        return self

    def import_file(self, file_path, mapping, dataset, options=None, context=None) -> ParseSummary:
        self.calls.append(file_path)
        if file_path in self.failures:
            raise self.failures[file_path]
        summary = ParseSummary()
        for type_name, entries in self.sources.get(file_path, {}).items():
            for e in entries:
                dataset.add(type_name, dict(e))
            summary.entries_by_type[type_name] = len(entries)
        return summary


MAPPING_JSON = {
    "SoftwareVersion": "9.0",
    "MapVersion": "1",
    "ImportMap": [
        {"TargetType": "ArcFlash", "PropertyName": "Id", "ColumnHeader": "Arc Flash Bus",
         "Required": True, "Severity": "Error"},
        {"TargetType": "ArcFlash", "PropertyName": "Scenario", "ColumnHeader": "Scenario",
         "Required": True, "Severity": "Error"},
        {"TargetType": "ArcFlash", "PropertyName": "IncidentEnergy", "ColumnHeader": "Incident Energy"},
        {"TargetType": "Bus", "PropertyName": "Id", "ColumnHeader": "Bus ID", "Required": True},
        {"TargetType": "Bus", "PropertyName": "Voltage", "ColumnHeader": "Nominal kV"},
        {"TargetType": "Fuse", "PropertyName": "Id", "ColumnHeader": "Fuse ID"},
        {"TargetType": "Fuse", "PropertyName": "Rating", "ColumnHeader": "Rating"},
        {"TargetType": "Fuse", "PropertyName": "Manufacturer", "ColumnHeader": "Manufacturer",
         "DefaultValue": "Unknown"},
    ],
}


@pytest.fixture
def mapping_json() -> dict:
    return json.loads(json.dumps(MAPPING_JSON))


@pytest.fixture
def mapping(mapping_json) -> MappingConfig:
    return parse_mapping(json.dumps(mapping_json))


@pytest.fixture
def parser() -> FakeParser:
    return FakeParser()


@pytest.fixture
def dataset() -> Dataset:
    return Dataset()


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to a CSV file under tmp_path and return its path."""
    def _write(name: str, rows: List[List[str]]) -> str:
        path = tmp_path / name
        path.write_text("\n".join(",".join(r) for r in rows) + "\n", encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def mapping_file(tmp_path, mapping_json) -> str:
    path = tmp_path / "map.ezmap"
    path.write_text(json.dumps(mapping_json), encoding="utf-8")
    return str(path)
