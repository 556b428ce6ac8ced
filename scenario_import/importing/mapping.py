"""
Field Mapping Configuration
===========================

Describes how columns of an exported table map onto entry fields.

Mapping files are JSON documents with PascalCase keys:

    {
      "SoftwareVersion": "2.1",
      "MapVersion": "1",
      "ImportMap": [
        {"TargetType": "ArcFlash", "PropertyName": "Id", "ColumnHeader": "Bus Name",
         "Required": true, "Severity": "Error"}
      ]
    }
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MappingError

ID_PROPERTY = "Id"

_PASCAL_CASE = re.compile(r"^[A-Z][A-Za-z0-9]*$")


class MappingSeverity(str, Enum):
    """How a missing column is reported."""
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


class MappingEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_type: str = Field("", alias="TargetType", description="Data type populated (e.g. 'ArcFlash').")
    property_name: str = Field("", alias="PropertyName", description="Entry field written.")
    column_header: str = Field("", alias="ColumnHeader", description="Source column header.")
    required: bool = Field(False, alias="Required", description="Whether the column must be present.")
    aliases: Optional[List[str]] = Field(None, alias="Aliases", description="Alternative column headers.")
    severity: MappingSeverity = Field(MappingSeverity.INFO, alias="Severity")
    default_value: Optional[str] = Field(
        None, alias="DefaultValue", description="Value used when the column is absent."
    )

    @field_validator("target_type", "property_name", "column_header", mode="before")
    @classmethod
    def _trim(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    def headers(self) -> List[str]:
        """Column header followed by any non-blank aliases."""
        out = [self.column_header]
        out.extend(a.strip() for a in (self.aliases or []) if a and a.strip())
        return out


@dataclass
class MappingValidationResult:
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


class MappingConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    software_version: str = Field("", alias="SoftwareVersion", description="Exporting tool version.")
    map_version: Optional[str] = Field(None, alias="MapVersion", description="Mapping file revision.")
    import_map: List[MappingEntry] = Field(default_factory=list, alias="ImportMap")

    def validate_mapping(self) -> MappingValidationResult:
        """
        Check the mapping for duplicates and blank fields.

        Returns:
            MappingValidationResult with warnings (duplicate mappings, first
            occurrence wins) and errors (blank fields, duplicated required
            mappings)
        """
        result = MappingValidationResult()

        groups: Dict[tuple, int] = {}
        for e in self.import_map:
            k = (e.target_type.lower(), e.property_name.lower())
            groups[k] = groups.get(k, 0) + 1

        for (target_type, prop), n in groups.items():
            if n > 1:
                result.warnings.append(
                    f"Duplicate mapping entries for {target_type}.{prop} (using first occurrence)."
                )

        for e in self.import_map:
            if not e.target_type or not e.property_name or not e.column_header:
                result.errors.append("Entry has blank TargetType/PropertyName/ColumnHeader - invalid.")

        for e in self.import_map:
            if e.required and groups[(e.target_type.lower(), e.property_name.lower())] > 1:
                result.errors.append(f"Required mapping duplicated: {e.target_type}.{e.property_name}")

        return result

    def target_types(self) -> List[str]:
        """Distinct top-level target types, in first-appearance order."""
        seen: List[str] = []
        for e in self.import_map:
            if e.target_type and "." not in e.target_type and e.target_type not in seen:
                seen.append(e.target_type)
        return seen

    def entries_for(self, target_type: str) -> List[MappingEntry]:
        """Entries for one type; duplicates of a property keep the first."""
        out: List[MappingEntry] = []
        props: Set[str] = set()
        for e in self.import_map:
            if e.target_type.lower() != target_type.lower():
                continue
            if e.property_name.lower() in props:
                continue
            props.add(e.property_name.lower())
            out.append(e)
        return out

    def id_entry(self, target_type: str) -> Optional[MappingEntry]:
        for e in self.entries_for(target_type):
            if e.property_name == ID_PROPERTY:
                return e
        return None

    def known_headers(self) -> Set[str]:
        """Every column header and alias, lower-cased."""
        return {h.lower() for e in self.import_map for h in e.headers() if h}

    def required_error_headers(self) -> List[str]:
        out: List[str] = []
        for e in self.import_map:
            if e.required and e.severity == MappingSeverity.ERROR and e.column_header not in out:
                out.append(e.column_header)
        return out

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2, exclude_none=True)


def _invalid_field_names(node: Any, invalid: Set[str]) -> None:
    if isinstance(node, dict):
        for name, value in node.items():
            if not name.startswith("$") and not _PASCAL_CASE.match(name):
                invalid.add(name)
            _invalid_field_names(value, invalid)
    elif isinstance(node, list):
        for child in node:
            _invalid_field_names(child, invalid)


def parse_mapping(text: str) -> MappingConfig:
    """
    Parse mapping JSON text.

    Raises:
        MappingError: malformed JSON, non-PascalCase field names, or values
            that fail model validation
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise MappingError(f"Mapping JSON parse error: {e}") from e

    invalid: Set[str] = set()
    _invalid_field_names(raw, invalid)
    if invalid:
        raise MappingError(
            "Invalid (non-PascalCase) mapping JSON field names: " + ", ".join(sorted(invalid))
        )

    try:
        return MappingConfig.model_validate(raw or {})
    except ValidationError as e:
        raise MappingError(f"Mapping JSON validation error: {e}") from e


def load_mapping(path: str | Path) -> MappingConfig:
    """Load a mapping file from disk."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Mapping file not found: {path}")
    return parse_mapping(p.read_text(encoding="utf-8"))
