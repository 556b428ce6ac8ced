"""
Provenance
==========

Tracks which source file supplied which type or (type, scenario) slice of a
dataset, plus the flat import record log it can be rebuilt from.
"""

from .tracker import (
    Contribution,
    ProvenanceInfo,
    ProvenanceNode,
    ScenarioSource,
    query_provenance,
    render_tree,
)
from .records import ImportRecord, append_record, rebuild_provenance

__all__ = [
    "Contribution",
    "ProvenanceInfo",
    "ProvenanceNode",
    "ScenarioSource",
    "query_provenance",
    "render_tree",
    "ImportRecord",
    "append_record",
    "rebuild_provenance",
]
