"""
Averaging of repeated runs.

Runs of one nominal configuration differ only by stochastic variation
(e.g. evacuation behaviour). Records sharing the key (study code, input
alias, column, base value, new value) are merged into one record whose
outcomes are the arithmetic means over the group.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .records import AnalysisRecord, OutcomeResult

__all__ = []


def _average_outcomes(group: Sequence[AnalysisRecord]) -> Tuple[OutcomeResult, ...]:
    values: Dict[str, List[float]] = {}
    first: Dict[str, OutcomeResult] = {}
    for record in group:
        for result in record.outcomes:
            values.setdefault(result.output_alias, []).append(result.new_value)
            first.setdefault(result.output_alias, result)

    averaged = []
    for alias, samples in values.items():
        template = first[alias]
        averaged.append(
            OutcomeResult(
                output_alias=alias,
                output_code=template.output_code,
                output_column=template.output_column,
                target_column=template.target_column,
                base_value=template.base_value,
                new_value=float(np.mean(samples)),
                unresolved=False,
            )
        )
    return tuple(averaged)


def aggregate_runs(records: Sequence[AnalysisRecord], study: Optional[str] = None) -> List[AnalysisRecord]:
    """Merge repeated runs of the same configuration.

    Args:
        records: Analysis records of any study. They are never modified.
        study: Only records of this study are aggregated (``None`` for
            all). Records of other studies are left for their own pass.

    Returns:
        One new record per distinct configuration, in first-seen order,
        with ``n_runs`` set to the group size. Unresolved records are not
        averaged in; a configuration whose runs are all unresolved yields
        no record.
    """
    groups: Dict[tuple, List[AnalysisRecord]] = {}
    for record in records:
        if study is not None and record.study != study:
            continue
        if not record.resolved:
            continue
        groups.setdefault(record.key, []).append(record)

    aggregated = []
    for group in groups.values():
        head = group[0]
        aggregated.append(
            AnalysisRecord(
                study_code=head.study_code,
                input_alias=head.input_alias,
                input_column=head.input_column,
                input_base_value=head.input_base_value,
                input_new_value=head.input_new_value,
                outcomes=_average_outcomes(group),
                run="+".join(r.run for r in group),
                n_runs=sum(r.n_runs for r in group),
            )
        )
    return aggregated


def unresolved_records(records: Sequence[AnalysisRecord]) -> List[AnalysisRecord]:
    """Records excluded from fitting because a threshold was never crossed."""
    return [r for r in records if not r.resolved]
