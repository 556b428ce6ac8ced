"""
Project Modes
=============

Enumerations shared by the planner, the commit engine and the project model.
"""

from enum import Enum


class ProjectMode(Enum):
    """Merge policy applied when importing into a project."""
    STANDARD = "standard"    # Replace whole data types on import
    COMPOSITE = "composite"  # Merge per scenario under an explicit plan


class DatasetRole(Enum):
    """Which of the project's two datasets an operation targets."""
    NEW = "new"  # Current study data
    OLD = "old"  # Baseline for comparison
