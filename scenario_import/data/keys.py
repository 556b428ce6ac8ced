"""
Composite Keys
==============

Identity of scenario-keyed entries: identifier, optional secondary
identifier, and the scenario label, always in the last position.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

MAX_COMPONENTS = 3


@dataclass(frozen=True)
class CompositeKey:
    """
    Immutable multi-part key.

    Components are compared ordinally (case-sensitive). No component may be
    empty or whitespace.

    Attributes:
        components: Key parts in key-field order
    """
    components: Tuple[str, ...]

    def __post_init__(self):
        """Validate key components."""
        if not isinstance(self.components, tuple):
            object.__setattr__(self, "components", tuple(self.components))
        if not self.components:
            raise ValueError("CompositeKey requires at least one component")
        if len(self.components) > MAX_COMPONENTS:
            raise ValueError(
                f"CompositeKey supports at most {MAX_COMPONENTS} components, got {len(self.components)}"
            )
        for i, part in enumerate(self.components):
            if not isinstance(part, str) or not part.strip():
                raise ValueError(f"CompositeKey component {i} must be a non-blank string")

    @classmethod
    def of(cls, *components: str) -> "CompositeKey":
        return cls(tuple(components))

    @property
    def identifier(self) -> str:
        return self.components[0]

    @property
    def secondary(self) -> Optional[str]:
        """Secondary identifier, present only on three-part keys."""
        return self.components[1] if len(self.components) == 3 else None

    @property
    def scenario(self) -> str:
        return self.components[-1]

    def with_scenario(self, scenario: str) -> "CompositeKey":
        """Copy of this key with only the scenario component replaced."""
        return CompositeKey(self.components[:-1] + (scenario,))

    def to_list(self) -> List[str]:
        return list(self.components)

    @classmethod
    def from_list(cls, parts: Iterable[str]) -> "CompositeKey":
        return cls(tuple(parts))

    def __str__(self) -> str:
        return "(" + ", ".join(self.components) + ")"
