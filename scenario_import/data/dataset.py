"""
Dataset
=======

In-memory container of equipment entries grouped by data type.

- Simple types map an identifier string to an entry.
- Scenario-keyed types map a CompositeKey (identifier[, secondary], scenario)
  to an entry; entries differing only by scenario coexist.

Writing an existing key replaces the stored entry in full.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .keys import CompositeKey
from .registry import DEFAULT_REGISTRY, DataTypeRegistry, DataTypeSpec

Entry = Dict[str, Any]
EntryKey = Union[str, CompositeKey]


class Dataset:
    """
    Collection of typed entry maps.

    Attributes:
        registry: Data types this dataset may hold
        software_version: Version of the exporting tool (metadata; survives clear())
    """

    def __init__(
        self,
        registry: DataTypeRegistry = DEFAULT_REGISTRY,
        software_version: Optional[str] = None,
    ):
        self.registry = registry
        self.software_version = software_version
        self._collections: Dict[str, Dict[EntryKey, Entry]] = {}

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def spec(self, type_name: str) -> DataTypeSpec:
        return self.registry.require(type_name)

    def key_for(self, type_name: str, entry: Entry) -> Optional[EntryKey]:
        """
        Build the key of an entry from its key fields.

        Returns None when any key field is missing or blank.
        """
        spec = self.spec(type_name)
        parts = []
        for key_field in spec.key_fields:
            value = entry.get(key_field)
            if value is None or not str(value).strip():
                return None
            parts.append(str(value))
        if spec.has_scenarios:
            return CompositeKey(tuple(parts))
        return parts[0]

    def _check_key(self, spec: DataTypeSpec, key: EntryKey) -> None:
        if spec.has_scenarios:
            if not isinstance(key, CompositeKey) or len(key.components) != len(spec.key_fields):
                raise ValueError(
                    f"{spec.name} requires a {len(spec.key_fields)}-part CompositeKey, got {key!r}"
                )
        elif not isinstance(key, str) or not key.strip():
            raise ValueError(f"{spec.name} requires a non-blank string identifier, got {key!r}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def collection(self, type_name: str) -> Dict[EntryKey, Entry]:
        """Live entry map for a type (created empty on first access)."""
        spec = self.spec(type_name)
        return self._collections.setdefault(spec.name, {})

    def get(self, type_name: str, key: EntryKey) -> Optional[Entry]:
        return self.collection(type_name).get(key)

    def items(self, type_name: str) -> Iterator[Tuple[EntryKey, Entry]]:
        spec = self.spec(type_name)
        return iter(list(self._collections.get(spec.name, {}).items()))

    def count(self, type_name: str) -> int:
        spec = self.spec(type_name)
        return len(self._collections.get(spec.name, {}))

    def counts(self) -> Dict[str, int]:
        """Entry count per type, for types holding data (registry order)."""
        result = {}
        for spec in self.registry:
            n = len(self._collections.get(spec.name, {}))
            if n:
                result[spec.name] = n
        return result

    def types_with_data(self) -> List[str]:
        return list(self.counts())

    def total_entries(self) -> int:
        return sum(len(c) for c in self._collections.values())

    def is_empty(self) -> bool:
        return self.total_entries() == 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, type_name: str, key: EntryKey, entry: Entry) -> None:
        """Insert or replace the entry stored at key."""
        spec = self.spec(type_name)
        self._check_key(spec, key)
        self._collections.setdefault(spec.name, {})[key] = entry

    def add(self, type_name: str, entry: Entry) -> EntryKey:
        """Upsert an entry keyed by its own key fields."""
        key = self.key_for(type_name, entry)
        if key is None:
            spec = self.spec(type_name)
            raise ValueError(
                f"{spec.name} entry is missing key fields {', '.join(spec.key_fields)}: {entry!r}"
            )
        self.put(type_name, key, entry)
        return key

    def remove(self, type_name: str, key: EntryKey) -> bool:
        spec = self.spec(type_name)
        return self._collections.get(spec.name, {}).pop(key, None) is not None

    def clear_type(self, type_name: str) -> int:
        """Remove every entry of a type, returning how many were removed."""
        spec = self.spec(type_name)
        removed = len(self._collections.get(spec.name, {}))
        self._collections.pop(spec.name, None)
        return removed

    def clear(self) -> None:
        """Remove all entries; metadata is kept."""
        self._collections.clear()

    def __repr__(self) -> str:
        return f"Dataset({self.counts()!r})"
