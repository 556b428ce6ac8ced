"""
Merge
=====

Commit engine: Standard (replace by type) and Composite (per-scenario plan)
policies plus the dataset key-remapping primitives they use.
"""

from .engine import (
    CommitResult,
    clear_types,
    commit,
    filter_by_scenario,
    merge_into,
    remove_scenario,
    rename_scenario,
    simple_entries,
)

__all__ = [
    "CommitResult",
    "clear_types",
    "commit",
    "filter_by_scenario",
    "merge_into",
    "remove_scenario",
    "rename_scenario",
    "simple_entries",
]
