"""
Scenario Import Engine
======================

Incremental import of equipment study data exported from a power-analysis
tool into a project's "new" and "old" datasets, with:
- Scenario-aware conflict detection before anything is written
- Per-(file, scenario) import plans (add as new / overwrite / skip)
- Standard (replace by type) and Composite (merge by scenario) commit policies
- Provenance tracking of which file supplied which slice of data

Architecture:
- data/: composite keys, data-type registry, datasets, scenario statistics
- importing/: field mappings and the CSV/Excel parser collaborator
- planning/: pre-scan, conflict detection and import planning
- merge/: commit engine
- provenance/: source tracking
- project/: project model, import records, persistence
- ui/: Streamlit review interface
"""

__version__ = "1.0.0"
