"""
UI Module
=========

Streamlit review interface:
- Dataset statistics
- Import plan editor
- Provenance tree
"""

from .tables import ACTION_LABELS, apply_plan_frame, plan_to_frame, provenance_frame

__all__ = ["ACTION_LABELS", "apply_plan_frame", "plan_to_frame", "provenance_frame"]
