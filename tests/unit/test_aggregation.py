"""
Tests for averaging of repeated runs.
"""

import pytest

from firepm.core.aggregation import aggregate_runs, unresolved_records
from firepm.core.records import AnalysisRecord, OutcomeResult


def _record(new_input, aset, run, code="ISP", unresolved=False, vis=None):
    outcomes = [OutcomeResult("ASET", "O_P", "TEMP_1", "Time", 100.0, aset, unresolved=unresolved)]
    if vis is not None:
        outcomes.append(OutcomeResult("VIS", "O_P", "VIS_1", "Time", 200.0, vis))
    return AnalysisRecord(code, "Sprinkler", "K_FACTOR", 0.05, new_input, tuple(outcomes), run=run)


class TestAggregateRuns:
    """Test merging of records that share a configuration."""

    def test_repeats_averaged(self):
        records = [_record(0.06, 112.0, "a", vis=210.0), _record(0.06, 108.0, "b", vis=190.0)]
        (merged,) = aggregate_runs(records)
        assert merged.outcome("ASET").new_value == pytest.approx(110.0)
        assert merged.outcome("VIS").new_value == pytest.approx(200.0)
        assert merged.n_runs == 2
        assert merged.run == "a+b"

    def test_distinct_configurations_kept_in_order(self):
        records = [_record(0.06, 110.0, "a"), _record(0.04, 90.0, "b"), _record(0.06, 110.0, "c")]
        merged = aggregate_runs(records)
        assert [r.input_new_value for r in merged] == [0.06, 0.04]
        assert [r.n_runs for r in merged] == [2, 1]

    def test_inputs_not_modified(self):
        records = [_record(0.06, 112.0, "a"), _record(0.06, 108.0, "b")]
        aggregate_runs(records)
        assert records[0].outcome("ASET").new_value == 112.0
        assert records[0].n_runs == 1

    def test_single_run_unchanged(self):
        (merged,) = aggregate_runs([_record(0.04, 90.0, "a")])
        assert merged.outcome("ASET").new_value == 90.0
        assert merged.n_runs == 1

    def test_study_filter(self):
        records = [_record(0.06, 110.0, "a"), _record(0.06, 110.0, "b", code="IRP")]
        (merged,) = aggregate_runs(records, study="response_surface")
        assert merged.study_code == "IRP"

    def test_different_study_codes_not_merged(self):
        records = [_record(0.06, 110.0, "a"), _record(0.06, 110.0, "b", code="IRP")]
        assert len(aggregate_runs(records)) == 2

    def test_unresolved_excluded(self):
        records = [_record(0.06, 110.0, "a"), _record(0.06, float("nan"), "b", unresolved=True)]
        (merged,) = aggregate_runs(records)
        assert merged.outcome("ASET").new_value == 110.0
        assert merged.n_runs == 1

    def test_all_unresolved_yields_nothing(self):
        records = [_record(0.06, float("nan"), "a", unresolved=True)]
        assert aggregate_runs(records) == []
        assert unresolved_records(records) == records

    def test_empty(self):
        assert aggregate_runs([]) == []
