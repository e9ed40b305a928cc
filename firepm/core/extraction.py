"""
Threshold-crossing outcome extraction.

An output is defined by a critical column, a threshold and a crossing
direction. The outcome of a run is the value of the output's target column
(usually time) at the moment the critical column first crosses the
threshold, linearly interpolated between the two bracketing rows.
"""

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..exceptions import ColumnNotFound, MissingBaselineValue, UnresolvedThreshold
from ..utils.tables import RESULT_FILE_PATTERNS, list_result_files, read_time_series, table_source
from .variables import VariableSpec

__all__ = []


@dataclass(frozen=True)
class Outcome:
    """Result of one threshold-crossing extraction.

    Attributes:
        value: Target value at the crossing (``nan`` when unresolved).
        resolved: ``False`` when the threshold was never crossed.
        row: Index of the first row satisfying the crossing condition.
        interpolated: Whether *value* was interpolated between two rows.
    """

    value: float
    resolved: bool
    row: Optional[int] = None
    interpolated: bool = False


def _column(frame: pd.DataFrame, name: str, spec: VariableSpec, source: Optional[str]) -> np.ndarray:
    if name not in frame.columns:
        raise ColumnNotFound(name, output_alias=spec.alias, source=source)
    return frame[name].to_numpy(dtype=float)


def find_crossing(
    critical: np.ndarray,
    target: np.ndarray,
    threshold: float,
    direction: str,
) -> Outcome:
    """Locate the first threshold crossing in two aligned arrays.

    Args:
        critical: Values of the monitored variable, in row order.
        target: Values of the reported variable, same length.
        threshold: Critical value.
        direction: ``"increasing"`` (crossed when ``critical > threshold``)
            or ``"decreasing"`` (crossed when ``critical < threshold``).

    Returns:
        A resolved ``Outcome`` for the first crossing row, interpolated
        against the previous row unless the crossing is on the first row;
        an unresolved ``Outcome`` when no row crosses.
    """
    if direction == "increasing":
        crossed = critical > threshold
    elif direction == "decreasing":
        crossed = critical < threshold
    else:
        raise ValueError(f"direction must be 'increasing' or 'decreasing', got {direction!r}")

    rows = np.flatnonzero(crossed)
    if rows.size == 0:
        return Outcome(value=float("nan"), resolved=False)

    i = int(rows[0])
    if i == 0:
        return Outcome(value=float(target[0]), resolved=True, row=0)

    c1, c2 = critical[i - 1], critical[i]
    t1, t2 = target[i - 1], target[i]
    value = t1 - (t1 - t2) * (c1 - threshold) / (c1 - c2)
    return Outcome(value=float(value), resolved=True, row=i, interpolated=True)


def extract_outcome(frame: pd.DataFrame, spec: VariableSpec, source: Optional[str] = None) -> Outcome:
    """Extract the outcome of output *spec* from one time-series table.

    Args:
        frame: Time-series table of one run.
        spec: Output specification.
        source: Run or file reference used in diagnostics (defaults to the
            table's recorded source).

    Returns:
        The ``Outcome``. A never-crossed threshold is not an error: an
        ``UnresolvedThreshold`` warning is issued and the outcome is
        marked unresolved.

    Raises:
        ColumnNotFound: If the critical or target column is missing.
    """
    source = source or table_source(frame)
    critical = _column(frame, spec.column, spec, source)
    target = _column(frame, spec.target_column, spec, source)

    outcome = find_crossing(critical, target, spec.critical_value, spec.direction)
    if not outcome.resolved:
        warnings.warn(
            f"'{spec.column}' never went {'above' if spec.direction == 'increasing' else 'below'} "
            f"{spec.critical_value} for output '{spec.alias}' in {source or 'table'}; "
            "record excluded from fitting",
            UnresolvedThreshold,
            stacklevel=2,
        )
    return outcome


def baseline_value(
    directory: Union[str, Path],
    spec: VariableSpec,
    patterns: Sequence[str] = RESULT_FILE_PATTERNS,
) -> float:
    """Base value of output *spec* from the unperturbed run's results.

    Scans the result files of *directory* in name order and extracts the
    outcome from the first table that contains the critical column.

    Raises:
        ColumnNotFound: If no result file has the critical column.
        MissingBaselineValue: If the baseline never crosses the threshold.
    """
    for path in list_result_files(directory, patterns):
        frame = read_time_series(path)
        if spec.column not in frame.columns:
            continue
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UnresolvedThreshold)
            outcome = extract_outcome(frame, spec, source=str(path))
        if not outcome.resolved:
            raise MissingBaselineValue(
                f"Baseline run never crosses {spec.critical_value} on '{spec.column}'",
                output_alias=spec.alias,
                source=str(path),
            )
        return outcome.value
    raise ColumnNotFound(spec.column, output_alias=spec.alias, source=str(directory))


def baseline_values(
    directory: Union[str, Path],
    outputs: Iterable[VariableSpec],
    patterns: Sequence[str] = RESULT_FILE_PATTERNS,
) -> Dict[str, float]:
    """Base value of every output alias, extracted once per alias."""
    values: Dict[str, float] = {}
    for spec in outputs:
        if spec.alias not in values:
            values[spec.alias] = baseline_value(directory, spec, patterns)
    return values
