"""
Project
=======

Project model (two datasets, mode, provenance, import logs) and its JSON
persistence.
"""

from ..modes import DatasetRole, ProjectMode
from .project import DatasetSlot, Project
from .persistence import (
    ProjectDocument,
    dataset_from_document,
    dataset_to_document,
    dumps_project,
    load_project,
    loads_project,
    save_project,
)

__all__ = [
    "DatasetRole",
    "ProjectMode",
    "DatasetSlot",
    "Project",
    "ProjectDocument",
    "dataset_from_document",
    "dataset_to_document",
    "dumps_project",
    "load_project",
    "loads_project",
    "save_project",
]
