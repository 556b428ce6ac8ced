"""
Tabular Parser
==============

Turns exported tables into dataset entries using a field mapping.

Exports may contain several tables ("sections") one after another. A row is
treated as a header when it contains at least two known column headers (or
it is the first non-blank row and contains one). Each header activates the
data types whose Id column it contains; following rows populate entries of
those types until the next header.
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import numpy as np
import pandas as pd

from ..context import OperationContext
from ..data.dataset import Dataset, EntryKey
from ..errors import FileImportError
from .mapping import MappingConfig, MappingEntry, MappingSeverity


@dataclass
class ImportOptions:
    """
    Parser behaviour switches.

    Attributes:
        skip_blank_rows: Ignore blank rows; when False a blank row ends the
            active section
        trim_whitespace: Strip cell values
        strict_missing_required_headers: Raise when a required Error-severity
            column never appears in any header row
    """
    skip_blank_rows: bool = True
    trim_whitespace: bool = True
    strict_missing_required_headers: bool = False


@dataclass
class ParseSummary:
    """Outcome of parsing one source."""
    entries_by_type: Dict[str, int] = field(default_factory=dict)
    duplicate_keys: List[str] = field(default_factory=list)
    incomplete_rows: int = 0
    missing_headers: List[str] = field(default_factory=list)
    sections: int = 0

    @property
    def entries_added(self) -> int:
        return sum(self.entries_by_type.values())

    def merge(self, other: "ParseSummary") -> None:
        for t, n in other.entries_by_type.items():
            self.entries_by_type[t] = self.entries_by_type.get(t, 0) + n
        self.duplicate_keys.extend(other.duplicate_keys)
        self.incomplete_rows += other.incomplete_rows
        for h in other.missing_headers:
            if h not in self.missing_headers:
                self.missing_headers.append(h)
        self.sections += other.sections


def read_csv_frame(path: str | Path) -> pd.DataFrame:
    """
    Read a CSV file into an untyped frame (no header row, all strings).

    Rows may have different lengths; short rows are padded with "".
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = list(csv.reader(f))
    width = max((len(r) for r in rows), default=0)
    frame = pd.DataFrame([r + [""] * (width - len(r)) for r in rows], dtype=str)
    return frame


def read_excel_frames(path: str | Path) -> List[pd.DataFrame]:
    """Read every worksheet of a workbook into untyped frames."""
    sheets = pd.read_excel(path, sheet_name=None, header=None, dtype=str)
    return [_blank_missing(frame) for frame in sheets.values()]


def _blank_missing(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.replace({np.nan: ""}).astype(str)


class TabularParser:
    """Populates a dataset from header-delimited table sections."""

    def parse_frame(
        self,
        frame: pd.DataFrame,
        mapping: MappingConfig,
        dataset: Dataset,
        options: Optional[ImportOptions] = None,
        context: Optional[OperationContext] = None,
        file_path: str = "",
    ) -> ParseSummary:
        """
        Parse one frame into the dataset.

        Entries are upserted; a key repeated within the same frame keeps its
        first occurrence and is reported.

        Args:
            frame: Raw cell grid (no header row)
            mapping: Field mapping
            dataset: Dataset receiving entries
            options: Parser switches
            context: Event sink
            file_path: Source name used in events

        Returns:
            ParseSummary for the frame
        """
        options = options or ImportOptions()
        context = context if context is not None else OperationContext()
        summary = ParseSummary()
        op = "parse"

        self._check_version(mapping, dataset, context, file_path)

        known_headers = mapping.known_headers()
        type_entries: Dict[str, List[MappingEntry]] = {}
        for target_type in mapping.target_types():
            spec = dataset.registry.get(target_type)
            if spec is None:
                context.warning(op, f"Mapping targets unknown data type '{target_type}' (ignored)", file_path)
                continue
            type_entries[spec.name] = mapping.entries_for(target_type)

        header_index: Dict[str, int] = {}
        active: List[str] = []
        seen_keys: Dict[str, Set[EntryKey]] = {}
        reported_missing: Set[tuple] = set()
        non_blank_rows = 0

        cleaned = _blank_missing(frame)
        for physical_row, values in enumerate(cleaned.itertuples(index=False, name=None), start=1):
            cells = [self._clean(v, options) for v in values]

            if all(not c.strip() for c in cells):
                if not options.skip_blank_rows:
                    active = []
                continue
            non_blank_rows += 1

            matches = sum(1 for c in cells if c.strip().lower() in known_headers)
            if matches >= 2 or (non_blank_rows == 1 and matches == 1):
                header_index = {}
                for i, c in enumerate(cells):
                    name = c.strip().lower()
                    if name and name not in header_index:
                        header_index[name] = i
                active = [
                    t for t, entries in type_entries.items()
                    if self._id_column(entries, header_index) is not None
                ]
                if active:
                    summary.sections += 1
                    context.debug(
                        op,
                        f"Activated section at row {physical_row} for {', '.join(active)}",
                        file_path,
                    )
                continue

            for target_type in active:
                entries = type_entries[target_type]
                id_col = self._id_column(entries, header_index)
                if id_col is None or id_col >= len(cells) or not cells[id_col].strip():
                    continue

                entry: Dict[str, Any] = {}
                for m in entries:
                    col = self._column(m, header_index)
                    if col is None:
                        if m.column_header not in summary.missing_headers:
                            summary.missing_headers.append(m.column_header)
                        if m.required and m.severity == MappingSeverity.ERROR:
                            marker = (target_type, m.column_header)
                            if marker not in reported_missing:
                                reported_missing.add(marker)
                                context.error(
                                    op,
                                    f"Required header missing: {m.column_header} for {target_type}.{m.property_name}",
                                    file_path,
                                )
                        elif m.default_value:
                            entry[m.property_name] = m.default_value
                        continue
                    entry[m.property_name] = cells[col] if col < len(cells) else ""

                key = dataset.key_for(target_type, entry)
                if key is None:
                    summary.incomplete_rows += 1
                    continue
                keys = seen_keys.setdefault(target_type, set())
                if key in keys:
                    summary.duplicate_keys.append(f"{target_type} {key}")
                    context.error(
                        op, f"Duplicate {target_type} key {key} at row {physical_row} (skipped)", file_path
                    )
                    continue
                keys.add(key)
                dataset.put(target_type, key, entry)
                summary.entries_by_type[target_type] = summary.entries_by_type.get(target_type, 0) + 1

        if summary.missing_headers:
            context.warning(op, "Missing headers encountered: " + ", ".join(summary.missing_headers), file_path)
        return summary

    def check_required_headers(
        self,
        frames: List[pd.DataFrame],
        mapping: MappingConfig,
        file_path: str = "",
    ) -> None:
        """Raise FileImportError when a required Error-severity header never appears."""
        observed: Set[str] = set()
        for frame in frames:
            for values in _blank_missing(frame).itertuples(index=False, name=None):
                observed.update(str(v).strip().lower() for v in values if str(v).strip())
        missing = [h for h in mapping.required_error_headers() if h.lower() not in observed]
        if missing:
            raise FileImportError(file_path, "Strict mode: required headers missing: " + ", ".join(missing))

    @staticmethod
    def _clean(value: Any, options: ImportOptions) -> str:
        text = "" if value is None else str(value)
        return text.strip() if options.trim_whitespace else text

    @staticmethod
    def _column(entry: MappingEntry, header_index: Dict[str, int]) -> Optional[int]:
        for header in entry.headers():
            idx = header_index.get(header.lower())
            if idx is not None:
                return idx
        return None

    def _id_column(self, entries: List[MappingEntry], header_index: Dict[str, int]) -> Optional[int]:
        for m in entries:
            if m.property_name == "Id":
                return self._column(m, header_index)
        return None

    @staticmethod
    def _check_version(
        mapping: MappingConfig,
        dataset: Dataset,
        context: OperationContext,
        file_path: str,
    ) -> None:
        if dataset.software_version is None:
            dataset.software_version = mapping.software_version or None
            return
        if mapping.software_version and dataset.software_version.lower() != mapping.software_version.lower():
            context.warning(
                "parse",
                f"VersionMismatch: dataset SoftwareVersion '{dataset.software_version}' "
                f"differs from mapping SoftwareVersion '{mapping.software_version}'",
                file_path,
            )
