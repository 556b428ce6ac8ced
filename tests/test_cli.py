"""End-to-end tests of the command line interface with real CSV files."""

import json

import pytest

from scenario_import.cli import main
from scenario_import.modes import DatasetRole
from scenario_import.project.persistence import load_project

AF_ROWS = [
    ["Arc Flash Bus", "Scenario", "Incident Energy"],
    ["B1", "Main-Min", "4.2"],
    ["B2", "Main-Min", "3.1"],
    ["B1", "Main-Max", "8.0"],
]
BUS_ROWS = [["Bus ID", "Nominal kV"], ["BUS-1", "13.8"], ["BUS-2", "0.48"]]


@pytest.fixture
def project_file(tmp_path):
    def _create(mode="composite"):
        path = str(tmp_path / "project.json")
        assert main(["init", path, "--name", "Plant A", "--mode", mode]) == 0
        return path
    return _create


class TestCli:
    def test_validate_mapping(self, mapping_file, capsys):
        assert main(["validate-mapping", mapping_file]) == 0
        assert "8 mapping entries for ArcFlash, Bus, Fuse" in capsys.readouterr().out

    def test_missing_project(self, tmp_path, capsys):
        assert main(["stats", str(tmp_path / "nope.json")]) == 2
        assert "Input error" in capsys.readouterr().err

    def test_composite_import_stats_and_provenance(self, project_file, mapping_file, write_csv, capsys):
        project = project_file()
        csv_path = write_csv("af.csv", AF_ROWS)

        assert main(["import", project, "-m", mapping_file, csv_path]) == 0
        assert "Imported 1 of 1 files (2 entries)" in capsys.readouterr().out

        assert main(["stats", project]) == 0
        out = capsys.readouterr().out
        assert "Arc Flash: 2 entries (2 entries)" in out
        assert "  Main-Min: 2" in out

        assert main(["provenance", project]) == 0
        assert capsys.readouterr().out.splitlines() == ["af.csv", "  Arc Flash", "    Main-Min"]

        record = load_project(project).slot(DatasetRole.NEW).records[0]
        assert record.mapping_path == mapping_file

    def test_edited_plan(self, project_file, mapping_file, write_csv, tmp_path, capsys):
        project = project_file()
        csv_path = write_csv("af.csv", AF_ROWS)
        plan_path = tmp_path / "plan.json"

        assert main(["plan", project, "-m", mapping_file, csv_path, "-o", str(plan_path)]) == 0
        doc = json.loads(plan_path.read_text())
        doc["rows"][0]["new_name"] = "Baseline"
        doc["rows"][1]["action"] = "add_new"
        doc["rows"][1]["new_name"] = "Peak"
        plan_path.write_text(json.dumps(doc))

        assert main(["import", project, "-m", mapping_file, "--plan", str(plan_path)]) == 0
        capsys.readouterr()
        assert main(["provenance", project, "--json"]) == 0
        tree = json.loads(capsys.readouterr().out)
        labels = [s["label"] for s in tree[0]["children"][0]["children"]]
        assert labels == ["Main-Min → Baseline", "Main-Max → Peak"]

    @pytest.mark.parametrize(
        "edit, message",
        [
            (lambda doc: doc["rows"][0].update(action="skip"), "whole-file row must use ADD_NEW"),
            (lambda doc: doc["rows"][0].update(action="addnew"), "'addnew' is not a valid ImportAction"),
            (lambda doc: doc.pop("rows"), "list of rows or an object with 'rows'"),
            (lambda doc: doc["rows"][0].pop("file_path"), "missing 'file_path'"),
        ],
    )
    def test_malformed_plan_is_an_input_error(
        self, project_file, mapping_file, write_csv, tmp_path, capsys, edit, message
    ):
        project = project_file()
        csv_path = write_csv("buses.csv", BUS_ROWS)
        plan_path = tmp_path / "plan.json"
        assert main(["plan", project, "-m", mapping_file, csv_path, "-o", str(plan_path)]) == 0
        doc = json.loads(plan_path.read_text())
        edit(doc)
        plan_path.write_text(json.dumps(doc))
        capsys.readouterr()

        assert main(["import", project, "-m", mapping_file, "--plan", str(plan_path)]) == 2
        err = capsys.readouterr().err
        assert "Input error: Plan" in err
        assert message in err
        assert load_project(project).new_data.is_empty()

    def test_invalid_plan_is_refused(self, project_file, mapping_file, write_csv, capsys):
        project = project_file()
        a = write_csv("a.csv", AF_ROWS)
        b = write_csv("b.csv", AF_ROWS)
        assert main(["import", project, "-m", mapping_file, a, b]) == 1
        assert "also used by" in capsys.readouterr().err
        assert load_project(project).new_data.is_empty()

    def test_standard_import_asks_before_replacing(self, project_file, mapping_file, write_csv, capsys):
        project = project_file("standard")
        buses = write_csv("buses.csv", BUS_ROWS)
        assert main(["import", project, "-m", mapping_file, buses]) == 0

        assert main(["import", project, "-m", mapping_file, buses]) == 1
        assert "Bus (2 existing)" in capsys.readouterr().err
        assert main(["import", project, "-m", mapping_file, buses, "--yes"]) == 0
        assert load_project(project).new_data.count("Bus") == 2

    def test_scan_reports_conflicts(self, project_file, mapping_file, write_csv, capsys):
        project = project_file("standard")
        buses = write_csv("buses.csv", BUS_ROWS)
        main(["import", project, "-m", mapping_file, buses])
        capsys.readouterr()

        assert main(["scan", project, "-m", mapping_file, buses]) == 0
        out = capsys.readouterr().out
        assert "buses.csv: 2 entries in 1 types" in out
        assert "- Bus (2 existing)" in out

    def test_mode_change_needs_confirmation(self, project_file, mapping_file, write_csv):
        project = project_file("standard")
        main(["import", project, "-m", mapping_file, write_csv("buses.csv", BUS_ROWS)])

        assert main(["mode", project, "composite"]) == 1
        assert main(["mode", project, "composite", "--yes"]) == 0
        loaded = load_project(project)
        assert loaded.mode.value == "composite"
        assert not loaded.has_data()

    def test_clear_and_rename(self, project_file, mapping_file, write_csv, capsys):
        project = project_file()
        main(["import", project, "-m", mapping_file, write_csv("af.csv", AF_ROWS)])

        assert main(["rename-scenario", project, "Main-Min", "Baseline"]) == 0
        assert main(["rename-scenario", project, "Nope", "X"]) == 1
        assert main(["clear", project]) == 1
        assert main(["clear", project, "--yes"]) == 0
        assert load_project(project).new_data.is_empty()
