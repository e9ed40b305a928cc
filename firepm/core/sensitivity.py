"""
Sensitivity matrix by central finite differences.

Each sensitivity-study input is perturbed once below and once above its
base value. With left value ``L``, right value ``R`` and outcomes ``Lo`` and
``Ro`` the sensitivity of an output is ``(Ro - Lo) / (R - L)`` and the
input's change rate is ``(R - L) / base``.
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from ..exceptions import ColumnNotFound, IncompleteSensitivity, SensitivityOverflow, SensitivityTruncated
from .records import AnalysisRecord, OutcomeResult
from .variables import NEAR_ZERO

__all__ = []

MATRIX_LABEL = "dy/dx"


@dataclass
class SensitivityRow:
    """Left and right perturbation of one input.

    Attributes:
        study_code: Type code of the input.
        input_alias: Input alias.
        input_column: Input column name.
        base_value: Baseline input value.
        left_value: Input value below the base (``None`` until seen).
        right_value: Input value above the base (``None`` until seen).
        left_outcomes: Output alias -> outcome of the left perturbation.
        right_outcomes: Output alias -> outcome of the right perturbation.
        outputs: Output alias -> outcome template (identity and base value),
            in first-seen order.
    """

    study_code: str
    input_alias: str
    input_column: str
    base_value: float
    left_value: Optional[float] = None
    right_value: Optional[float] = None
    left_outcomes: Dict[str, float] = field(default_factory=dict)
    right_outcomes: Dict[str, float] = field(default_factory=dict)
    outputs: Dict[str, OutcomeResult] = field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, str, float]:
        return (self.input_alias, self.input_column, self.base_value)

    @property
    def complete(self) -> bool:
        return self.left_value is not None and self.right_value is not None

    @property
    def missing_side(self) -> Optional[str]:
        if self.left_value is None and self.right_value is None:
            return "left and right"
        if self.left_value is None:
            return "left"
        if self.right_value is None:
            return "right"
        return None

    @property
    def change_rate(self) -> Optional[float]:
        """``(R - L) / base``; ``None`` when incomplete or the base value is zero."""
        if not self.complete or abs(self.base_value) <= NEAR_ZERO:
            return None
        return (self.right_value - self.left_value) / self.base_value

    @property
    def sensitivities(self) -> Dict[str, float]:
        """Output alias -> ``(Ro - Lo) / (R - L)`` for outputs seen on both sides."""
        if not self.complete:
            return {}
        span = self.right_value - self.left_value
        return {
            alias: (self.right_outcomes[alias] - self.left_outcomes[alias]) / span
            for alias in self.outputs
            if alias in self.left_outcomes and alias in self.right_outcomes
        }

    def place(self, record: AnalysisRecord, tolerance: float = NEAR_ZERO) -> Optional[str]:
        """Store *record* on the side given by the sign of ``new - base``.

        Returns:
            ``"left"`` or ``"right"``; ``None`` when the new value equals the
            base value within *tolerance* (no slope information).

        Raises:
            SensitivityOverflow: If the side is already occupied.
        """
        delta = record.input_new_value - self.base_value
        if abs(delta) <= tolerance:
            return None
        side = "right" if delta > 0 else "left"
        current = self.right_value if side == "right" else self.left_value
        if current is not None:
            raise SensitivityOverflow(
                f"Input already has a {side} perturbation ({current}); "
                f"got another at {record.input_new_value}. Exactly one value per side is supported",
                input_alias=self.input_alias,
                source=record.run,
            )

        outcomes = {o.output_alias: o.new_value for o in record.outcomes}
        for result in record.outcomes:
            self.outputs.setdefault(result.output_alias, result)
        if side == "right":
            self.right_value = record.input_new_value
            self.right_outcomes = outcomes
        else:
            self.left_value = record.input_new_value
            self.left_outcomes = outcomes
        return side


def build_sensitivity_rows(records: Sequence[AnalysisRecord], tolerance: float = NEAR_ZERO) -> List[SensitivityRow]:
    """Collect the left and right perturbation of every sensitivity input.

    Args:
        records: Aggregated sensitivity-study records.
        tolerance: Near-zero threshold for ``new - base``.

    Returns:
        All rows in first-seen order, complete or not.

    Raises:
        SensitivityOverflow: If an input has more than one perturbation on
            either side of its base value.
    """
    rows: Dict[tuple, SensitivityRow] = {}
    for record in records:
        if record.study != "sensitivity":
            continue
        key = (record.input_alias, record.input_column, record.input_base_value)
        row = rows.get(key)
        if row is None:
            row = rows[key] = SensitivityRow(
                study_code=record.study_code,
                input_alias=record.input_alias,
                input_column=record.input_column,
                base_value=record.input_base_value,
            )
        if row.place(record, tolerance) is None:
            warnings.warn(
                f"Run '{record.run}' leaves '{record.input_alias}' at its base value; ignored",
                stacklevel=2,
            )
    return list(rows.values())


class SensitivityMatrix:
    """Grid of sensitivities indexed by input alias and output alias.

    A cell exists only while ``|s|`` exceeds the tolerance. A missing cell
    means "unknown", not "zero": rows stop at their first near-zero cell,
    so later outputs of that row stay unknown even when their sensitivity
    is not small.
    """

    def __init__(self, inputs: Sequence[str] = (), outputs: Sequence[str] = (), cells: Optional[Dict] = None):
        self.inputs: List[str] = list(inputs)
        self.outputs: List[str] = list(outputs)
        self.cells: Dict[Tuple[str, str], float] = dict(cells or {})

    def __len__(self):
        return len(self.cells)

    def __contains__(self, item):
        return item in self.cells

    def __repr__(self):
        return f"SensitivityMatrix(inputs={self.inputs}, outputs={self.outputs}, cells={len(self.cells)})"

    def sensitivity(self, input_alias: str, output_alias: str) -> Optional[float]:
        """Sensitivity of *output_alias* to *input_alias*; ``None`` when blank.

        Raises:
            ColumnNotFound: If either alias is not a label of the matrix.
        """
        if input_alias not in self.inputs:
            raise ColumnNotFound(input_alias, input_alias=input_alias, output_alias=output_alias, source="sensitivity matrix")
        if output_alias not in self.outputs:
            raise ColumnNotFound(output_alias, input_alias=input_alias, output_alias=output_alias, source="sensitivity matrix")
        return self.cells.get((input_alias, output_alias))

    def row(self, input_alias: str) -> List[float]:
        """Populated cells of one row, in output order."""
        values = []
        for output in self.outputs:
            value = self.cells.get((input_alias, output))
            if value is None:
                break
            values.append(value)
        return values

    def to_frame(self) -> pd.DataFrame:
        """The matrix as a DataFrame (inputs as index, blank cells as NaN)."""
        frame = pd.DataFrame(index=pd.Index(self.inputs, name=MATRIX_LABEL), columns=self.outputs, dtype=float)
        for (input_alias, output_alias), value in self.cells.items():
            frame.loc[input_alias, output_alias] = value
        return frame


def build_sensitivity_matrix(rows: Sequence[SensitivityRow], tolerance: float = NEAR_ZERO) -> SensitivityMatrix:
    """Assemble the matrix from complete sensitivity rows.

    Incomplete rows are left out with an ``IncompleteSensitivity`` warning
    naming the missing side. The output labels are those of the first
    complete row. Each row is filled in output order and stops at its
    first cell with ``|s| <= tolerance``; when that hides a non-small
    sensitivity further along the row a ``SensitivityTruncated`` warning
    is issued.
    """
    complete = []
    for row in rows:
        if row.complete:
            complete.append(row)
        else:
            warnings.warn(
                f"Input '{row.input_alias}' has no {row.missing_side} perturbation; left out of the matrix",
                IncompleteSensitivity,
                stacklevel=2,
            )

    matrix = SensitivityMatrix()
    if not complete:
        return matrix

    matrix.outputs = list(complete[0].outputs)
    for row in complete:
        if row.input_alias in matrix.inputs:
            warnings.warn(
                f"Input '{row.input_alias}' has several sensitivity rows; only the first is used",
                stacklevel=2,
            )
            continue
        matrix.inputs.append(row.input_alias)
        sensitivities = row.sensitivities
        for position, output in enumerate(matrix.outputs):
            value = sensitivities.get(output)
            if value is None or abs(value) <= tolerance:
                hidden = [
                    o for o in matrix.outputs[position + 1 :] if abs(sensitivities.get(o, 0.0)) > tolerance
                ]
                if hidden:
                    warnings.warn(
                        f"Row '{row.input_alias}' stops at blank cell '{output}'; "
                        f"sensitivities of {hidden} are left unknown",
                        SensitivityTruncated,
                        stacklevel=2,
                    )
                break
            matrix.cells[(row.input_alias, output)] = value
    return matrix
