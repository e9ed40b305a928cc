"""
Tests for analysis-record construction from simulation runs.
"""

import pandas as pd
import pytest

from firepm.core.records import (
    AnalysisRecord,
    OutcomeResult,
    RecordBuilder,
    SimulationRun,
    build_records,
    parse_run_value,
    records_by_study,
)
from firepm.core.variables import VariableRegistry
from firepm.exceptions import ColumnNotFound, MissingBaselineValue, RunIdentityError, UnresolvedThreshold
from config import OUTPUT_BASES
from synthetic import make_table, model_table, true_outcome


@pytest.fixture
def builder(registry):
    return RecordBuilder(registry, OUTPUT_BASES)


def _geometric_registry():
    return VariableRegistry(
        [
            {
                "VarType": "ISG",
                "Alias": "Vent",
                "FDS_VarName": "HOLE",
                "BaseValue": "0|2|0|1|0|2",
                "LowerLimit": "0|1.5|0|1|0|2",
                "UpperLimit": "0|2.5|0|1|0|2",
            },
            {
                "VarType": "I1C",
                "Alias": "Vent",
                "FDS_VarName": "HOLE",
                "BaseValue": "0|2|0|1|0|2",
                "LowerLimit": "0|2|0|1|0|2",
                "UpperLimit": "0|2|0|1.5|0|2",
                "Divisions": "1",
            },
            {"VarType": "O_P", "Alias": "ASET", "FDS_VarName": "TEMP_1", "TargetName": "Time", "CriticalValue": "60", "Divisions": "1"},
        ]
    )


class TestParseRunValue:
    """Test decoding of run-name value tokens."""

    def test_decimal_marker(self):
        assert parse_run_value("0D06") == pytest.approx(0.06)
        assert parse_run_value("1d2") == pytest.approx(1.2)

    def test_plain_number(self):
        assert parse_run_value("3") == 3.0

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_run_value("abc")


class TestSimulationRun:
    """Test run identity helpers."""

    def test_single_table_wrapped(self):
        run = SimulationRun("ISP_Door_0D8_1", make_table())
        assert len(run.tables) == 1

    def test_source_from_table(self):
        table = make_table()
        table.attrs["source"] = "results/ISP_Door_0D8_1_devc.csv"
        assert SimulationRun("ISP_Door_0D8_1", table).source == "results/ISP_Door_0D8_1_devc.csv"

    def test_mentions_whole_token(self):
        run = SimulationRun("ISP_DoorFrame_0D8_1", make_table())
        assert run.mentions("DoorFrame")
        assert not run.mentions("Door")

    def test_value_after(self):
        run = SimulationRun("ISP_Door_0D8_1", make_table())
        assert run.value_after("Door") == "0D8"
        assert run.value_after("Sprinkler") is None

    def test_value_after_alias_with_underscore(self):
        run = SimulationRun("ISP_Door_W_1D2_1", make_table())
        assert run.mentions("Door_W")
        assert run.value_after("Door_W") == "1D2"
        assert run.value_after("Door_Wide") is None

    def test_table_with(self):
        evac = pd.DataFrame({"Time": [0.0], "FED": [0.0]})
        devc = make_table()
        run = SimulationRun("r", [evac, devc])
        assert run.table_with("TEMP_1") is devc
        assert run.table_with("FED") is evac
        assert run.table_with("CO") is None


class TestRecordBuilder:
    """Test record construction."""

    def test_sensitivity_record(self, builder):
        run = SimulationRun("ISP_Sprinkler_0D06_1", model_table(sprinkler=0.06), study_code="ISP")
        (record,) = builder.build(run)
        assert record.study == "sensitivity"
        assert record.input_alias == "Sprinkler"
        assert record.input_base_value == 0.05
        assert record.input_new_value == pytest.approx(0.06)
        assert record.output_aliases == ["ASET", "VIS"]
        aset = record.outcome("ASET")
        assert aset.base_value == 100.0
        assert aset.new_value == pytest.approx(true_outcome("ASET", sprinkler=0.06))
        assert record.resolved

    def test_study_code_from_tokens(self, builder):
        run = SimulationRun("IRP_Door_1D4_1", model_table(door=1.4))
        (record,) = builder.build(run)
        assert record.study_code == "IRP"
        assert record.input_new_value == pytest.approx(1.4)

    def test_combined_run_matches_every_input(self, builder):
        run = SimulationRun("I1C_Sprinkler_Door_1", model_table(sprinkler=0.04, door=1.2), study_code="I1C")
        records = builder.build(run)
        assert [r.input_alias for r in records] == ["Sprinkler", "Door"]
        # Divisions -1 selects the lower limit, anything else the upper one
        assert records[0].input_new_value == pytest.approx(0.04)
        assert records[1].input_new_value == pytest.approx(1.2)

    def test_unmatched_run_warns(self, builder):
        run = SimulationRun("XYZ_Window_1_1", make_table())
        with pytest.warns(UserWarning, match="matches no input"):
            assert builder.build(run) == []

    def test_missing_value_token(self, builder):
        run = SimulationRun("ISP_Door", make_table(aset_time=50.0, vis_time=50.0), study_code="ISP")
        with pytest.raises(RunIdentityError, match="Door"):
            builder.build(run)

    def test_unreadable_value_token(self, builder):
        run = SimulationRun("ISP_Door_wide_1", make_table(aset_time=50.0, vis_time=50.0), study_code="ISP")
        with pytest.raises(RunIdentityError, match="wide"):
            builder.build(run)

    def test_missing_baseline(self, registry):
        builder = RecordBuilder(registry, {"ASET": 100.0})
        run = SimulationRun("ISP_Door_0D8_1", model_table(door=0.8), study_code="ISP")
        with pytest.raises(MissingBaselineValue) as excinfo:
            builder.build(run)
        assert excinfo.value.output_alias == "VIS"

    def test_missing_output_column(self, builder):
        table = pd.DataFrame({"Time": [0.0, 5.0], "TEMP_1": [20.0, 80.0]})
        run = SimulationRun("ISP_Door_0D8_1", table, study_code="ISP")
        with pytest.raises(ColumnNotFound, match="VIS_1"):
            builder.build(run)

    def test_unresolved_outcome(self, builder):
        run = SimulationRun("ISP_Door_0D8_1", make_table(aset_time=80.0), study_code="ISP")
        with pytest.warns(UnresolvedThreshold):
            (record,) = builder.build(run)
        assert not record.resolved
        assert record.outcome("VIS").unresolved

    def test_alias_with_underscore(self):
        registry = VariableRegistry(
            [
                {"VarType": "ISP", "Alias": "Door_W", "FDS_VarName": "DOOR_WIDTH", "BaseValue": "1.0", "LowerLimit": "0.8", "UpperLimit": "1.2"},
                {"VarType": "O_P", "Alias": "ASET", "FDS_VarName": "TEMP_1", "TargetName": "Time", "CriticalValue": "60", "Divisions": "1"},
            ]
        )
        builder = RecordBuilder(registry, {"ASET": 100.0})
        (record,) = builder.build(SimulationRun("ISP_Door_W_1D2_1", make_table(aset_time=90.0)))
        assert record.input_alias == "Door_W"
        assert record.input_new_value == pytest.approx(1.2)

    def test_geometric_input(self):
        builder = RecordBuilder(_geometric_registry(), {"ASET": 100.0})
        run = SimulationRun("ISG_Vent_2D5_1", make_table(aset_time=90.0))
        (record,) = builder.build(run)
        # new dimension measured from the lower limit's paired coordinate
        assert record.input_base_value == 2.0
        assert record.input_new_value == pytest.approx(2.5)

    def test_combined_geometric_input(self):
        builder = RecordBuilder(_geometric_registry(), {"ASET": 100.0})
        run = SimulationRun("I1C_Vent_1", make_table(aset_time=90.0), study_code="I1C")
        (record,) = builder.build(run)
        # upper limit differs from base on the y2 axis
        assert record.input_base_value == 1.0
        assert record.input_new_value == pytest.approx(1.5)


class TestBuildRecords:
    """Test batch construction and grouping."""

    def test_in_order_with_callback(self, builder, study_runs):
        seen = []
        records = build_records(builder, study_runs, on_run=seen.append)
        assert seen == study_runs
        # one record per sensitivity/response run, two per combined run
        assert len(records) == 5 + 8 + 4

    def test_by_study(self, builder, study_runs):
        grouped = records_by_study(build_records(builder, study_runs))
        assert len(grouped["sensitivity"]) == 5
        assert len(grouped["response_surface"]) == 8
        assert len(grouped["combined"]) == 4


class TestAnalysisRecord:
    """Test record properties."""

    def test_key_and_lookup(self):
        outcome = OutcomeResult("ASET", "O_P", "TEMP_1", "Time", 100.0, 90.0)
        record = AnalysisRecord("ISP", "Door", "DOOR_WIDTH", 1.0, 0.8, (outcome,), run="r1")
        assert record.key == ("ISP", "Door", "DOOR_WIDTH", 1.0, 0.8)
        assert record.outcome("ASET") is outcome
        assert record.outcome("VIS") is None
