"""Tests for scenario discovery and statistics."""

from scenario_import.data.statistics import (
    NO_SCENARIO,
    ScenarioStatistics,
    available_scenarios,
    discovered_scenarios,
    is_uniform,
    scenario_counts,
    scenario_statistics,
    sorted_scenarios,
    statistics_by_scenario,
    statistics_frame,
)

from conftest import arc_flash, equipment, fill, short_circuit


class TestScenarioDiscovery:
    def test_empty_dataset(self, dataset):
        assert available_scenarios(dataset) == set()
        assert statistics_by_scenario(dataset) == {}

    def test_labels_deduplicated_case_insensitively(self, dataset):
        fill(dataset, "ArcFlash", arc_flash("Main-Min", 2))
        fill(dataset, "ArcFlash", arc_flash("Main-Max", 2))
        fill(dataset, "ShortCircuit", short_circuit("main-min", 1))
        assert discovered_scenarios(dataset) == ["Main-Min", "Main-Max"]
        assert available_scenarios(dataset) == {"Main-Min", "Main-Max"}
        assert sorted_scenarios(dataset) == ["Main-Max", "Main-Min"]

    def test_simple_types_contribute_no_scenarios(self, dataset):
        fill(dataset, "Bus", equipment(3, "B"))
        assert available_scenarios(dataset) == set()
        assert statistics_by_scenario(dataset) == {"Bus": {NO_SCENARIO: 3}}


class TestUniformity:
    def test_equal_counts_are_uniform(self, dataset):
        fill(dataset, "ArcFlash", arc_flash("Main-Min", 40))
        fill(dataset, "ArcFlash", arc_flash("Main-Max", 40))
        assert is_uniform(dataset, "ArcFlash")

    def test_unequal_counts_are_mixed(self, dataset):
        fill(dataset, "ArcFlash", arc_flash("Main-Min", 38))
        fill(dataset, "ArcFlash", arc_flash("Main-Max", 40))
        assert not is_uniform(dataset, "ArcFlash")
        assert scenario_counts(dataset, "ArcFlash") == {"Main-Min": 38, "Main-Max": 40}

    def test_empty_and_simple_types_are_uniform(self, dataset):
        assert is_uniform(dataset, "ArcFlash")
        fill(dataset, "Bus", equipment(2))
        assert is_uniform(dataset, "Bus")


class TestScenarioStatistics:
    def test_display_text(self):
        assert ScenarioStatistics("ArcFlash", "Arc Flash").statistics_display == "0 entries"
        assert ScenarioStatistics("ArcFlash", "Arc Flash", {"A": 4, "B": 4}).statistics_display == "4 entries"
        mixed = ScenarioStatistics("ArcFlash", "Arc Flash", {"A": 4, "B": 3})
        assert mixed.statistics_display == "Mixed"
        assert mixed.total == 7
        assert mixed.to_dict()["uniform"] is False

    def test_dataset_statistics(self, dataset):
        fill(dataset, "ArcFlash", arc_flash("Main-Min", 2))
        fill(dataset, "Bus", equipment(3, "B"))
        stats = {s.data_type: s for s in scenario_statistics(dataset)}
        assert stats["ArcFlash"].display_name == "Arc Flash"
        assert stats["ArcFlash"].counts == {"Main-Min": 2}
        assert stats["Bus"].counts == {NO_SCENARIO: 3}

    def test_frame(self, dataset):
        fill(dataset, "ArcFlash", arc_flash("Main-Min", 2))
        fill(dataset, "ArcFlash", arc_flash("Main-Max", 1))
        df = statistics_frame(dataset)
        assert list(df.columns) == ["data_type", "scenario", "count"]
        assert df["count"].sum() == 3
        assert set(df["scenario"]) == {"Main-Min", "Main-Max"}

    def test_empty_frame_has_columns(self, dataset):
        df = statistics_frame(dataset)
        assert df.empty
        assert list(df.columns) == ["data_type", "scenario", "count"]
