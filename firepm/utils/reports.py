"""
Report files written and read by FirePM.

``SMT.csv`` (sensitivity matrix) and ``RSMRlt.csv`` (power-curve fits) are
load formats re-read by ``Predictor.from_artifacts``; their layout and
number formatting are kept stable. The other reports are comma-separated
tables for inspection.
"""

import math
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from ..core.combined import CombinedRecord
from ..core.records import AnalysisRecord
from ..core.response_surface import PowerCurveFit, split_key
from ..core.sensitivity import MATRIX_LABEL, SensitivityMatrix, SensitivityRow

__all__ = []

PathLike = Union[str, Path]

RECORD_COLUMNS = [
    "InputVarType",
    "OutputVarType",
    "InputAlias",
    "OutputAlias",
    "TargetName",
    "InputFileVarName",
    "OutputFileVarName",
    "InputBaseValue",
    "OutputBaseValue",
    "InputNewValue",
    "OutputNewValue",
    "Unresolved",
    "Run",
]

DETAIL_COLUMNS = [
    "InputVarType",
    "OutputVarType",
    "InputAlias",
    "OutputAlias",
    "TargetName",
    "InputFileVarName",
    "OutputFileVarName",
    "InputBaseValue",
    "OutputBaseValue",
    "InputLeftValue",
    "InputRightValue",
    "OutputLeftValue",
    "OutputRightValue",
    "Sensitivity",
    "ChangeRate",
]

COMBINED_COLUMNS = RECORD_COLUMNS[:11] + ["PreValueRSM", "PreValueSMT"]

FITS_HEADER = "OutputAlias, InputAlias, a, b, r_sqr, s_sqr, OutputBaseValue"


def records_frame(records: Sequence[AnalysisRecord]) -> pd.DataFrame:
    """One row per (record, output)."""
    rows = []
    for record in records:
        for result in record.outcomes:
            rows.append(
                [
                    record.study_code,
                    result.output_code,
                    record.input_alias,
                    result.output_alias,
                    result.target_column,
                    record.input_column,
                    result.output_column,
                    record.input_base_value,
                    result.base_value,
                    record.input_new_value,
                    result.new_value,
                    int(result.unresolved),
                    record.run,
                ]
            )
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def detail_frame(rows: Sequence[SensitivityRow]) -> pd.DataFrame:
    """One row per (complete sensitivity row, output)."""
    data = []
    for row in rows:
        if not row.complete:
            continue
        sensitivities = row.sensitivities
        for alias, template in row.outputs.items():
            if alias not in sensitivities:
                continue
            data.append(
                [
                    row.study_code,
                    template.output_code,
                    row.input_alias,
                    alias,
                    template.target_column,
                    row.input_column,
                    template.output_column,
                    row.base_value,
                    template.base_value,
                    row.left_value,
                    row.right_value,
                    row.left_outcomes[alias],
                    row.right_outcomes[alias],
                    sensitivities[alias],
                    row.change_rate,
                ]
            )
    return pd.DataFrame(data, columns=DETAIL_COLUMNS)


def _joined(values: Iterable) -> str:
    return "+".join(f"{v:g}" if isinstance(v, float) else str(v) for v in values)


def combined_frame(heads: Sequence[CombinedRecord]) -> pd.DataFrame:
    """One row per (finalized head, output)."""
    data = []
    for head in heads:
        if head.state != "finalized":
            continue
        for result in head.outcomes:
            data.append(
                [
                    head.study_code,
                    result.output_code,
                    head.input_key,
                    result.output_alias,
                    result.target_column,
                    _joined(head.columns),
                    result.output_column,
                    _joined(head.base_values),
                    result.base_value,
                    _joined(head.new_values),
                    result.measured,
                    result.predicted_by_response_surface,
                    result.predicted_by_sensitivity,
                ]
            )
    return pd.DataFrame(data, columns=COMBINED_COLUMNS)


def write_records(records: Sequence[AnalysisRecord], path: PathLike) -> Path:
    """Write analysis records (``DoA.csv`` / ``RSM.csv`` layout)."""
    records_frame(records).to_csv(path, index=False)
    return Path(path)


def write_sensitivity_detail(rows: Sequence[SensitivityRow], path: PathLike) -> Path:
    """Write ``SMT_detail.csv``."""
    detail_frame(rows).to_csv(path, index=False)
    return Path(path)


def write_combined(heads: Sequence[CombinedRecord], path: PathLike) -> Path:
    """Write ``CMB.csv`` (values with two decimals)."""
    combined_frame(heads).to_csv(path, index=False, float_format="%.2f")
    return Path(path)


def write_sensitivity_matrix(matrix: SensitivityMatrix, path: PathLike) -> Path:
    """Write ``SMT.csv``.

    The first line is ``dy/dx`` followed by the output aliases; each
    following line is an input alias and its populated cells. Rows end at
    their first blank cell, so lines can be shorter than the header.
    """
    lines = [",".join([MATRIX_LABEL] + matrix.outputs)]
    for alias in matrix.inputs:
        lines.append(",".join([alias] + [f"{value:f}" for value in matrix.row(alias)]))
    Path(path).write_text("\n".join(lines) + "\n")
    return Path(path)


def read_sensitivity_matrix(path: PathLike) -> SensitivityMatrix:
    """Re-load a matrix written by ``write_sensitivity_matrix``."""
    frame = pd.read_csv(path, index_col=0, skipinitialspace=True)
    frame.columns = [str(c).strip() for c in frame.columns]
    matrix = SensitivityMatrix(inputs=[str(i).strip() for i in frame.index], outputs=list(frame.columns))
    for alias, values in zip(matrix.inputs, frame.itertuples(index=False)):
        for output, value in zip(matrix.outputs, values):
            if pd.isna(value):
                break
            matrix.cells[(alias, output)] = float(value)
    return matrix


def _format_fit(fit: PowerCurveFit) -> str:
    s_squared = "" if fit.s_squared is None else f"{fit.s_squared:.6f}"
    return (
        f"{fit.output_alias},{fit.input_key},{fit.a:.2f},{fit.b:.2f},"
        f"{fit.r_squared:.6f},{s_squared},{fit.output_base_value:.2f}"
    )


def write_power_curve_fits(fits: Iterable[PowerCurveFit], path: PathLike) -> Path:
    """Write ``RSMRlt.csv``: single-input fits first, then composite fits."""
    fits = list(fits)
    ordered = [f for f in fits if not f.is_composite] + [f for f in fits if f.is_composite]
    Path(path).write_text("\n".join([FITS_HEADER] + [_format_fit(f) for f in ordered]) + "\n")
    return Path(path)


def _optional(value) -> Optional[float]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return float(value)


def read_power_curve_fits(path: PathLike) -> List[PowerCurveFit]:
    """Re-load fits written by ``write_power_curve_fits``."""
    frame = pd.read_csv(path, skipinitialspace=True, dtype=str)
    frame.columns = [str(c).strip() for c in frame.columns]
    fits = []
    for row in frame.itertuples(index=False):
        fits.append(
            PowerCurveFit(
                output_alias=str(row.OutputAlias).strip(),
                inputs=split_key(row.InputAlias),
                a=float(row.a),
                b=float(row.b),
                r_squared=float(row.r_sqr),
                s_squared=_optional(row.s_sqr),
                output_base_value=float(row.OutputBaseValue),
            )
        )
    return fits


def write_reports(results, directory: PathLike) -> Dict[str, Path]:
    """Write every report of a ``StudyResults`` into *directory*.

    Returns:
        Report name -> written path.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = {
        "DoA": write_records(results.records, directory / "DoA.csv"),
        "RSM": write_records(results.response_surface_records, directory / "RSM.csv"),
        "SMT": write_sensitivity_matrix(results.matrix, directory / "SMT.csv"),
        "SMT_detail": write_sensitivity_detail(results.sensitivity_rows, directory / "SMT_detail.csv"),
        "RSMRlt": write_power_curve_fits(results.surface, directory / "RSMRlt.csv"),
        "CMB": write_combined(results.combined, directory / "CMB.csv"),
    }
    return written
