"""
UI Tables
=========

Conversions between pipeline objects and pandas frames for the Streamlit
review pages.
"""

from typing import Dict, List

import pandas as pd

from ..planning.plan import ImportAction, ImportPlan
from ..provenance.tracker import ProvenanceNode

ACTION_LABELS: Dict[ImportAction, str] = {
    ImportAction.ADD_NEW: "Add as new",
    ImportAction.OVERWRITE: "Overwrite",
    ImportAction.SKIP: "Skip",
}
LABEL_ACTIONS = {label: action for action, label in ACTION_LABELS.items()}

PLAN_COLUMNS = ["file", "scenario", "entries", "action", "new_name", "overwrite_target", "error"]


def plan_to_frame(plan: ImportPlan) -> pd.DataFrame:
    """One frame row per plan row, in plan order."""
    rows = [
        {
            "file": r.file_name,
            "scenario": r.original_scenario if not r.is_non_scenario else "(all data)",
            "entries": r.entry_count,
            "action": ACTION_LABELS[r.action],
            "new_name": r.new_name or "",
            "overwrite_target": r.overwrite_target or "",
            "error": r.error or "",
        }
        for r in plan
    ]
    return pd.DataFrame(rows, columns=PLAN_COLUMNS)


def _cell_text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def apply_plan_frame(plan: ImportPlan, frame: pd.DataFrame) -> bool:
    """
    Copy edited action/name/target cells back onto the plan.

    The frame must have one row per plan row, in plan order. Whole-file
    rows keep their action.

    Returns:
        Whether the plan is valid after the edits
    """
    if len(frame) != len(plan):
        raise ValueError(f"Edited table has {len(frame)} rows, plan has {len(plan)}")
    for i, (_, cells) in enumerate(frame.iterrows()):
        row = plan[i]
        if not row.is_non_scenario:
            row.action = LABEL_ACTIONS[cells["action"]]
        row.new_name = _cell_text(cells["new_name"]) or None
        row.overwrite_target = _cell_text(cells["overwrite_target"]) or None
    return plan.validate()


def provenance_frame(nodes: List[ProvenanceNode]) -> pd.DataFrame:
    """Flatten a provenance tree to file / data_type / scenario rows."""
    rows = []
    for file_node in nodes:
        for type_node in file_node.children:
            if not type_node.children:
                rows.append({"file": file_node.label, "data_type": type_node.label, "scenario": ""})
            for scenario_node in type_node.children:
                rows.append({
                    "file": file_node.label,
                    "data_type": type_node.label,
                    "scenario": scenario_node.label,
                })
    return pd.DataFrame(rows, columns=["file", "data_type", "scenario"])
