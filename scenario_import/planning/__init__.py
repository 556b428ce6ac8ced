"""
Planning
========

Pre-import analysis:
- Per-file scans (scenarios, types, counts)
- Conflict detection against the target dataset
- Import plans and their validation
"""

from .scan import FileScanResult, scan_file, scan_files, summarize_dataset
from .conflicts import UNKNOWN_AFFECTED_TYPE, ConflictResult, pre_scan
from .plan import ImportAction, ImportPlan, ImportPlanRow, build_plan, plan_from_rows, validate_plan

__all__ = [
    "FileScanResult",
    "scan_file",
    "scan_files",
    "summarize_dataset",
    "UNKNOWN_AFFECTED_TYPE",
    "ConflictResult",
    "pre_scan",
    "ImportAction",
    "ImportPlan",
    "ImportPlanRow",
    "build_plan",
    "plan_from_rows",
    "validate_plan",
]
