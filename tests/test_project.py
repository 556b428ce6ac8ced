"""Tests for the project model and its persistence."""

import json

import pytest
from pydantic import ValidationError

from scenario_import.data.keys import CompositeKey
from scenario_import.data.statistics import available_scenarios
from scenario_import.errors import ConfirmationRequiredError
from scenario_import.modes import DatasetRole, ProjectMode
from scenario_import.planning.plan import ImportAction
from scenario_import.project.persistence import (
    dumps_project,
    load_project,
    loads_project,
    save_project,
)
from scenario_import.project.project import Project
from scenario_import.provenance.records import rebuild_provenance

from conftest import arc_flash, equipment, fill, short_circuit


@pytest.fixture
def composite_project(parser, mapping):
    project = Project("Plant A", ProjectMode.COMPOSITE, {"site": "North"})
    parser.add("af.csv", "ArcFlash", arc_flash("Main-Min", 3) + arc_flash("Main-Max", 2))
    parser.add("af.csv", "Bus", equipment(2, "B"))
    project.import_files(DatasetRole.NEW, ["af.csv"], mapping, parser)
    return project


class TestProjectMode:
    def test_change_requires_confirmation_when_data_exists(self, composite_project):
        with pytest.raises(ConfirmationRequiredError):
            composite_project.change_mode(ProjectMode.STANDARD)
        assert composite_project.mode == ProjectMode.COMPOSITE
        assert not composite_project.new_data.is_empty()

    def test_confirmed_change_clears_both_datasets(self, composite_project):
        fill(composite_project.old_data, "Fuse", equipment(1))
        assert composite_project.change_mode(ProjectMode.STANDARD, confirm=True)
        assert composite_project.mode == ProjectMode.STANDARD
        assert not composite_project.has_data()
        assert composite_project.slot(DatasetRole.NEW).records == []
        assert composite_project.slot(DatasetRole.NEW).provenance.is_empty()
        assert composite_project.metadata == {"site": "North"}

    def test_empty_project_changes_freely(self):
        project = Project()
        assert project.change_mode(ProjectMode.COMPOSITE)
        assert not project.change_mode(ProjectMode.COMPOSITE)

    def test_cleared_project_with_history_requires_confirmation(self, composite_project):
        composite_project.clear_dataset(DatasetRole.NEW)
        assert not composite_project.has_data()
        with pytest.raises(ConfirmationRequiredError):
            composite_project.change_mode(ProjectMode.STANDARD)
        assert composite_project.slot(DatasetRole.NEW).records
        assert composite_project.change_mode(ProjectMode.STANDARD, confirm=True)
        assert composite_project.slot(DatasetRole.NEW).is_blank()


class TestProjectOperations:
    def test_import_files_uses_default_plan(self, composite_project):
        assert available_scenarios(composite_project.new_data) == {"Main-Min"}
        assert composite_project.old_data.is_empty()
        record = composite_project.slot(DatasetRole.NEW).records[0]
        assert record.is_new_data

    def test_old_dataset_records(self, parser, mapping):
        project = Project()
        parser.add("buses.csv", "Bus", equipment(2))
        project.import_files(DatasetRole.OLD, ["buses.csv"], mapping, parser)
        assert not project.slot(DatasetRole.OLD).records[0].is_new_data
        assert project.new_data.is_empty()

    def test_plan_and_commit(self, composite_project, parser, mapping):
        parser.add("af2.csv", "ArcFlash", arc_flash("Main-Min", 4, prefix="Z"))
        plan = composite_project.build_plan(DatasetRole.NEW, composite_project.scan(["af2.csv"], mapping, parser))
        plan.update_row(0, action=ImportAction.OVERWRITE, overwrite_target="Main-Min")
        result = composite_project.commit(DatasetRole.NEW, plan, mapping, parser)
        assert result.succeeded
        assert composite_project.new_data.count("ArcFlash") == 4

    def test_pre_scan_against_role(self, composite_project, parser, mapping):
        parser.add("buses.csv", "Bus", equipment(1))
        assert composite_project.pre_scan(DatasetRole.NEW, ["buses.csv"], mapping, parser).will_overwrite
        assert not composite_project.pre_scan(DatasetRole.OLD, ["buses.csv"], mapping, parser).will_overwrite

    def test_clear_dataset_keeps_provenance(self, composite_project):
        assert composite_project.clear_dataset(DatasetRole.NEW) == 5
        assert composite_project.new_data.is_empty()
        assert not composite_project.slot(DatasetRole.NEW).provenance.is_empty()

    def test_rename_scenario_updates_provenance(self, composite_project):
        assert composite_project.rename_scenario(DatasetRole.NEW, "Main-Min", "Baseline") == 3
        tree = composite_project.provenance_tree(DatasetRole.NEW)
        labels = [s.label for t in tree[0].children for s in t.children]
        assert labels == ["Main-Min → Baseline"]

    def test_remove_scenario(self, composite_project):
        assert composite_project.remove_scenario(DatasetRole.NEW, "main-min") == 3
        assert available_scenarios(composite_project.new_data) == set()
        assert composite_project.slot(DatasetRole.NEW).provenance.composite_sources["ArcFlash"] == {}

    def test_records_follow_rename_and_remove(self, composite_project, parser, mapping):
        parser.add("af2.csv", "ArcFlash", arc_flash("Main-Max", 2, prefix="Y"))
        plan = composite_project.build_plan(DatasetRole.NEW, composite_project.scan(["af2.csv"], mapping, parser))
        plan.update_row(0, new_name="Peak")
        composite_project.commit(DatasetRole.NEW, plan, mapping, parser)
        slot = composite_project.slot(DatasetRole.NEW)

        composite_project.rename_scenario(DatasetRole.NEW, "Main-Min", "Baseline")
        assert rebuild_provenance(slot.records).to_dict() == slot.provenance.to_dict()
        composite_project.remove_scenario(DatasetRole.NEW, "Peak")
        assert rebuild_provenance(slot.records).to_dict() == slot.provenance.to_dict()
        assert sorted(slot.provenance.composite_sources["ArcFlash"]) == ["Baseline"]

    def test_tree_falls_back_to_records(self, composite_project):
        slot = composite_project.slot(DatasetRole.NEW)
        expected = composite_project.provenance_tree(DatasetRole.NEW)
        slot.provenance.clear()
        assert composite_project.provenance_tree(DatasetRole.NEW) == expected

    def test_statistics(self, composite_project):
        stats = {s.data_type: s for s in composite_project.statistics(DatasetRole.NEW)}
        assert stats["ArcFlash"].counts == {"Main-Min": 3}
        assert stats["Bus"].total == 2


class TestPersistence:
    def test_round_trip(self, composite_project):
        fill(composite_project.new_data, "ShortCircuit", short_circuit("Main-Min", 2, bus="BUS-9"))
        restored = loads_project(dumps_project(composite_project))

        assert restored.name == "Plant A"
        assert restored.mode == ProjectMode.COMPOSITE
        assert restored.metadata == {"site": "North"}
        assert restored.new_data.counts() == composite_project.new_data.counts()
        key = CompositeKey.of("BUS-9", "CB1", "Main-Min")
        assert restored.new_data.get("ShortCircuit", key)["Duty"] == "0.9"
        original = composite_project.slot(DatasetRole.NEW)
        slot = restored.slot(DatasetRole.NEW)
        assert slot.provenance.to_dict() == original.provenance.to_dict()
        assert [r.to_dict() for r in slot.records] == [r.to_dict() for r in original.records]

    def test_missing_provenance_is_rebuilt(self, composite_project):
        doc = json.loads(dumps_project(composite_project))
        del doc["new"]["provenance"]
        restored = loads_project(json.dumps(doc))
        assert (
            restored.slot(DatasetRole.NEW).provenance.to_dict()
            == composite_project.slot(DatasetRole.NEW).provenance.to_dict()
        )

    def test_key_shape_mismatch_rejected(self):
        doc = {"new": {"dataset": {"collections": {"ArcFlash": [{"key": ["F1"], "data": {}}]}}}}
        with pytest.raises(ValueError, match="does not match key fields"):
            loads_project(json.dumps(doc))

    def test_malformed_document(self):
        with pytest.raises(ValidationError):
            loads_project(json.dumps({"mode": "hybrid"}))

    def test_files(self, tmp_path, composite_project):
        path = tmp_path / "project.json"
        save_project(composite_project, path)
        assert load_project(path).new_data.total_entries() == 5
        with pytest.raises(FileNotFoundError):
            load_project(tmp_path / "missing.json")
