"""Tests for the table conversions behind the Streamlit pages."""

import pytest

from scenario_import.planning.plan import ImportAction, build_plan
from scenario_import.planning.scan import FileScanResult
from scenario_import.provenance.tracker import Contribution, ProvenanceInfo, query_provenance
from scenario_import.ui.tables import PLAN_COLUMNS, apply_plan_frame, plan_to_frame, provenance_frame


@pytest.fixture
def plan():
    scans = [
        FileScanResult("a.csv", ["Main-Min", "Main-Max"], ["ArcFlash"], {"Main-Min": 3, "Main-Max": 2},
                       {"ArcFlash": 5}, is_non_scenario_file=False),
        FileScanResult("buses.csv", [], ["Bus"], {}, {"Bus": 4}),
    ]
    return build_plan(scans, existing_scenarios=["Base"])


class TestPlanFrame:
    def test_rows(self, plan):
        df = plan_to_frame(plan)
        assert list(df.columns) == PLAN_COLUMNS
        assert list(df["scenario"]) == ["Main-Min", "Main-Max", "(all data)"]
        assert list(df["action"]) == ["Add as new", "Skip", "Add as new"]
        assert list(df["entries"]) == [3, 2, 4]

    def test_apply_edits(self, plan):
        df = plan_to_frame(plan)
        df.loc[1, "action"] = "Overwrite"
        df.loc[1, "overwrite_target"] = "Base"
        df.loc[2, "action"] = "Skip"
        assert apply_plan_frame(plan, df)
        assert plan[1].action == ImportAction.OVERWRITE
        assert plan[1].target_scenario == "Base"
        assert plan[2].action == ImportAction.ADD_NEW

    def test_apply_reports_invalid_edits(self, plan):
        df = plan_to_frame(plan)
        df.loc[0, "new_name"] = "base"
        assert not apply_plan_frame(plan, df)
        assert plan[0].error == "Scenario 'base' already exists in the dataset"

    def test_row_count_mismatch(self, plan):
        with pytest.raises(ValueError):
            apply_plan_frame(plan, plan_to_frame(plan).iloc[:2])


class TestProvenanceFrame:
    def test_flattened(self):
        info = ProvenanceInfo()
        info.record(Contribution("a.csv", ["Bus"], {"ArcFlash": ["Main-Min"]}))
        df = provenance_frame(query_provenance(info))
        assert df.to_dict("records") == [
            {"file": "a.csv", "data_type": "Arc Flash", "scenario": "Main-Min"},
            {"file": "a.csv", "data_type": "Buses", "scenario": ""},
        ]

    def test_empty(self):
        assert provenance_frame([]).empty
