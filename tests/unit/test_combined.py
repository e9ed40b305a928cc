"""
Tests for merging and evaluating combined scenarios.
"""

import pytest

from firepm.core.aggregation import aggregate_runs
from firepm.core.combined import (
    FINALIZED,
    MERGED,
    CombinedRecord,
    evaluate_combined,
    merge_combined,
    predict_by_response_surface,
    predict_by_sensitivity,
)
from firepm.core.records import AnalysisRecord, OutcomeResult, RecordBuilder, build_records
from firepm.core.response_surface import ResponseSurface, fit_response_surface
from firepm.core.sensitivity import SensitivityMatrix, build_sensitivity_matrix, build_sensitivity_rows
from firepm.exceptions import ColumnNotFound
from config import OUTPUT_BASES, REL_TOL
from synthetic import true_outcome


def _record(code, alias, base, new, measured, run="run"):
    outcome = OutcomeResult("ASET", "O_P", "TEMP_1", "Time", 100.0, measured)
    return AnalysisRecord(code, alias, alias.upper(), base, new, (outcome,), run=run)


@pytest.fixture
def aggregated(registry, study_runs):
    return aggregate_runs(build_records(RecordBuilder(registry, OUTPUT_BASES), study_runs))


def _central_difference(output, alias, low, high):
    return (true_outcome(output, **{alias: high}) - true_outcome(output, **{alias: low})) / (high - low)


class TestMergeCombined:
    """Test folding of combined records into heads."""

    def test_one_head_per_study_code(self):
        records = [
            _record("I1C", "Sprinkler", 0.05, 0.04, 110.0),
            _record("I1C", "Door", 1.0, 1.2, 110.0),
            _record("I2C", "Sprinkler", 0.05, 0.06, 95.0),
            _record("ISP", "Door", 1.0, 0.8, 90.0),
        ]
        heads = merge_combined(records)
        assert [h.study_code for h in heads] == ["I1C", "I2C"]
        first = heads[0]
        assert first.inputs == ("Sprinkler", "Door")
        assert first.base_values == (0.05, 1.0)
        assert first.new_values == (0.04, 1.2)
        assert first.input_key == "Sprinkler+Door"
        assert first.state == FINALIZED
        assert first.members[0].state == MERGED
        assert first.outcome("ASET").measured == 110.0

    def test_repeated_alias_ignored(self):
        records = [_record("I1C", "Door", 1.0, 1.2, 110.0), _record("I1C", "Door", 1.0, 1.2, 112.0, run="dup")]
        with pytest.warns(UserWarning, match="twice"):
            (head,) = merge_combined(records)
        assert head.inputs == ("Door",)

    def test_records_not_modified(self):
        records = [_record("I1C", "Sprinkler", 0.05, 0.04, 110.0), _record("I1C", "Door", 1.0, 1.2, 110.0)]
        merge_combined(records)
        assert records[0].input_alias == "Sprinkler"

    def test_no_combined_records(self):
        assert merge_combined([_record("ISP", "Door", 1.0, 0.8, 90.0)]) == []


class TestPredictBySensitivity:
    """Test linear superposition of sensitivities."""

    def test_superposition(self):
        head = CombinedRecord.from_record(_record("I1C", "Sprinkler", 0.05, 0.04, 80.0))
        head.absorb(CombinedRecord.from_record(_record("I1C", "Door", 1.0, 1.2, 80.0)))
        matrix = SensitivityMatrix(
            ["Sprinkler", "Door"], ["ASET"], {("Sprinkler", "ASET"): 1500.0, ("Door", "ASET"): 50.0}
        )
        predictions = predict_by_sensitivity(head, matrix)
        assert predictions["ASET"] == pytest.approx(100.0 - 15.0 + 10.0)
        assert head.outcome("ASET").sensitivity_residual == pytest.approx(80.0 - 95.0)

    def test_blank_cell_counts_as_zero(self):
        head = CombinedRecord.from_record(_record("I1C", "Door", 1.0, 1.2, 80.0))
        matrix = SensitivityMatrix(["Door"], ["ASET"], {})
        with pytest.warns(UserWarning, match="treated as zero"):
            predictions = predict_by_sensitivity(head, matrix)
        assert predictions["ASET"] == 100.0

    def test_input_not_in_matrix(self):
        head = CombinedRecord.from_record(_record("I1C", "Window", 1.0, 1.2, 80.0))
        with pytest.raises(ColumnNotFound, match="Window"):
            predict_by_sensitivity(head, SensitivityMatrix(["Door"], ["ASET"], {}))


class TestEvaluateCombined:
    """Test both predictions on the synthetic study."""

    def test_predictions(self, aggregated):
        matrix = build_sensitivity_matrix(build_sensitivity_rows(aggregated))
        heads = merge_combined(aggregated)
        surface = fit_response_surface(aggregated, heads)
        evaluate_combined(heads, matrix, surface)

        head = heads[0]
        for output in OUTPUT_BASES:
            result = head.outcome(output)
            assert result.measured == pytest.approx(true_outcome(output, sprinkler=0.04, door=1.2))
            expected = (
                OUTPUT_BASES[output]
                + _central_difference(output, "sprinkler", 0.04, 0.06) * (0.04 - 0.05)
                + _central_difference(output, "door", 0.8, 1.2) * (1.2 - 1.0)
            )
            assert result.predicted_by_sensitivity == pytest.approx(expected, rel=REL_TOL)
            # composite power law reproduces the exact model
            assert result.predicted_by_response_surface == pytest.approx(result.measured, rel=REL_TOL)
            assert result.response_surface_residual == pytest.approx(0.0, abs=1e-6)

    def test_empty_matrix_skips_sensitivity(self, aggregated):
        heads = merge_combined(aggregated)
        evaluate_combined(heads, SensitivityMatrix(), None)
        assert all(o.predicted_by_sensitivity is None for h in heads for o in h.outcomes)

    def test_without_composite_fit(self, aggregated):
        heads = merge_combined(aggregated)
        assert predict_by_response_surface(heads[0], ResponseSurface()) == {}
        assert heads[0].outcome("ASET").predicted_by_response_surface is None
