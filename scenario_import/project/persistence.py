"""
Project Persistence
===================

JSON project documents modelled with pydantic.

Keys are stored as lists of components (``["F1", "Main-Min"]``) so the
identifier, secondary identifier and scenario stay distinguishable after a
round trip. A document without a provenance section still loads; provenance
is then rebuilt from the import log.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..data.dataset import Dataset
from ..data.keys import CompositeKey
from ..data.registry import DEFAULT_REGISTRY, DataTypeRegistry
from ..modes import DatasetRole, ProjectMode
from ..provenance.records import ImportRecord, rebuild_provenance
from ..provenance.tracker import ProvenanceInfo
from .project import DatasetSlot, Project

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class EntryDocument(BaseModel):
    key: List[str] = Field(..., min_length=1, description="Key components, scenario last.")
    data: Dict[str, Any] = Field(default_factory=dict, description="Entry fields.")


class DatasetDocument(BaseModel):
    software_version: Optional[str] = None
    collections: Dict[str, List[EntryDocument]] = Field(default_factory=dict)


class ScenarioSourceDocument(BaseModel):
    file_path: str
    original_scenario: Optional[str] = None
    target_scenario: str


class ProvenanceDocument(BaseModel):
    data_type_sources: Dict[str, str] = Field(default_factory=dict)
    composite_sources: Dict[str, Dict[str, ScenarioSourceDocument]] = Field(default_factory=dict)


class ImportRecordDocument(BaseModel):
    file_path: str
    imported_at: datetime
    data_types: List[str] = Field(default_factory=list)
    scenario_mappings: Dict[str, str] = Field(default_factory=dict)
    scenarios_by_type: Dict[str, List[str]] = Field(default_factory=dict)
    is_new_data: bool = True
    entry_count: int = Field(0, ge=0)
    mapping_path: Optional[str] = None


class SlotDocument(BaseModel):
    dataset: DatasetDocument = Field(default_factory=DatasetDocument)
    provenance: Optional[ProvenanceDocument] = Field(
        None, description="Derived; rebuilt from records when missing."
    )
    records: List[ImportRecordDocument] = Field(default_factory=list)


class ProjectDocument(BaseModel):
    format_version: int = Field(FORMAT_VERSION, description="Document schema version.")
    name: str = "Untitled Project"
    mode: ProjectMode = ProjectMode.STANDARD
    metadata: Dict[str, str] = Field(default_factory=dict)
    new: SlotDocument = Field(default_factory=SlotDocument)
    old: SlotDocument = Field(default_factory=SlotDocument)


# ----------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------

def dataset_to_document(dataset: Dataset) -> DatasetDocument:
    collections: Dict[str, List[EntryDocument]] = {}
    for type_name in dataset.types_with_data():
        docs = []
        for key, entry in dataset.items(type_name):
            parts = key.to_list() if isinstance(key, CompositeKey) else [key]
            docs.append(EntryDocument(key=parts, data=dict(entry)))
        collections[type_name] = docs
    return DatasetDocument(software_version=dataset.software_version, collections=collections)


def dataset_from_document(doc: DatasetDocument, registry: DataTypeRegistry = DEFAULT_REGISTRY) -> Dataset:
    """
    Rebuild a dataset.

    Raises:
        KeyError: unknown data type
        ValueError: key shape does not match the type's key fields
    """
    dataset = Dataset(registry, doc.software_version)
    for type_name, entries in doc.collections.items():
        spec = registry.require(type_name)
        for e in entries:
            if len(e.key) != len(spec.key_fields):
                raise ValueError(
                    f"{spec.name} key {e.key!r} does not match key fields {spec.key_fields!r}"
                )
            key = CompositeKey.from_list(e.key) if spec.has_scenarios else e.key[0]
            dataset.put(spec.name, key, dict(e.data))
    return dataset


def _slot_to_document(slot: DatasetSlot) -> SlotDocument:
    return SlotDocument(
        dataset=dataset_to_document(slot.dataset),
        provenance=ProvenanceDocument.model_validate(slot.provenance.to_dict()),
        records=[ImportRecordDocument.model_validate(r.to_dict()) for r in slot.records],
    )


def _slot_from_document(role: DatasetRole, doc: SlotDocument, registry: DataTypeRegistry) -> DatasetSlot:
    records = [ImportRecord.from_dict(r.model_dump()) for r in doc.records]
    if doc.provenance is None:
        logger.info("No provenance stored for %s dataset; rebuilding from %d records", role.value, len(records))
        provenance = rebuild_provenance(records)
    else:
        provenance = ProvenanceInfo.from_dict(doc.provenance.model_dump())
    return DatasetSlot(role, dataset_from_document(doc.dataset, registry), provenance, records)


def project_to_document(project: Project) -> ProjectDocument:
    return ProjectDocument(
        name=project.name,
        mode=project.mode,
        metadata=dict(project.metadata),
        new=_slot_to_document(project.slot(DatasetRole.NEW)),
        old=_slot_to_document(project.slot(DatasetRole.OLD)),
    )


def project_from_document(doc: ProjectDocument, registry: DataTypeRegistry = DEFAULT_REGISTRY) -> Project:
    project = Project(doc.name, doc.mode, doc.metadata, registry)
    project.slots[DatasetRole.NEW] = _slot_from_document(DatasetRole.NEW, doc.new, registry)
    project.slots[DatasetRole.OLD] = _slot_from_document(DatasetRole.OLD, doc.old, registry)
    return project


# ----------------------------------------------------------------------
# Files
# ----------------------------------------------------------------------

def dumps_project(project: Project) -> str:
    return project_to_document(project).model_dump_json(indent=2)


def loads_project(text: str, registry: DataTypeRegistry = DEFAULT_REGISTRY) -> Project:
    """Parse a project document (raises pydantic ValidationError when malformed)."""
    return project_from_document(ProjectDocument.model_validate_json(text), registry)


def save_project(project: Project, path: str | Path) -> None:
    Path(path).write_text(dumps_project(project), encoding="utf-8")


def load_project(path: str | Path, registry: DataTypeRegistry = DEFAULT_REGISTRY) -> Project:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Project file not found: {path}")
    return loads_project(p.read_text(encoding="utf-8"), registry)
