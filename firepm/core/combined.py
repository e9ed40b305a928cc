"""
Combined-scenario evaluation.

In a combined study several inputs change together in one run. Every
aggregated record of the same combined study (same type code) is folded
into a single head record whose inputs form an ordered tuple. The measured
outcome of the head is then compared with two predictions:

- linear superposition of sensitivities,
  ``base + sum(s[input, output] * (new - base))``;
- the composed power law, ``A * prod(x_i ** b_i) ** B``.

Residuals are exposed; judging them is left to the caller.
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .records import AnalysisRecord
from .response_surface import KEY_SEPARATOR, ResponseSurface, composite_abscissa
from .sensitivity import SensitivityMatrix

__all__ = []

UNPROCESSED = "unprocessed"
MERGED = "merged"
FINALIZED = "finalized"


@dataclass
class CombinedOutcome:
    """Measured and predicted values of one output for a combined scenario."""

    output_alias: str
    output_code: str
    output_column: str
    target_column: Optional[str]
    base_value: float
    measured: float
    predicted_by_sensitivity: Optional[float] = None
    predicted_by_response_surface: Optional[float] = None

    @property
    def sensitivity_residual(self) -> Optional[float]:
        if self.predicted_by_sensitivity is None:
            return None
        return self.measured - self.predicted_by_sensitivity

    @property
    def response_surface_residual(self) -> Optional[float]:
        if self.predicted_by_response_surface is None:
            return None
        return self.measured - self.predicted_by_response_surface


@dataclass
class CombinedRecord:
    """A combined-study record, or the head of a merged combined scenario.

    Attributes:
        study_code: Type code shared by all inputs of the scenario.
        inputs: Input aliases, in merge order.
        columns: Input column names.
        base_values: Baseline input values.
        new_values: Input values of the scenario.
        outcomes: Per-output measured and predicted values.
        members: Records folded into this head.
        state: ``"unprocessed"``, ``"merged"`` (folded into a head) or
            ``"finalized"`` (a complete head). Only finalized heads are
            reported.
        run: Run reference of the scenario.
    """

    study_code: str
    inputs: Tuple[str, ...]
    columns: Tuple[str, ...]
    base_values: Tuple[float, ...]
    new_values: Tuple[float, ...]
    outcomes: List[CombinedOutcome] = field(default_factory=list)
    members: List["CombinedRecord"] = field(default_factory=list)
    state: str = UNPROCESSED
    run: str = ""

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> "CombinedRecord":
        return cls(
            study_code=record.study_code,
            inputs=(record.input_alias,),
            columns=(record.input_column,),
            base_values=(record.input_base_value,),
            new_values=(record.input_new_value,),
            outcomes=[
                CombinedOutcome(
                    output_alias=o.output_alias,
                    output_code=o.output_code,
                    output_column=o.output_column,
                    target_column=o.target_column,
                    base_value=o.base_value,
                    measured=o.new_value,
                )
                for o in record.outcomes
            ],
            run=record.run,
        )

    @property
    def input_key(self) -> str:
        return KEY_SEPARATOR.join(self.inputs)

    def outcome(self, output_alias: str) -> Optional[CombinedOutcome]:
        for result in self.outcomes:
            if result.output_alias == output_alias:
                return result
        return None

    def absorb(self, other: "CombinedRecord"):
        """Fold *other* into this head."""
        self.inputs += other.inputs
        self.columns += other.columns
        self.base_values += other.base_values
        self.new_values += other.new_values
        other.state = MERGED
        self.members.append(other)


def merge_combined(records: Sequence[AnalysisRecord]) -> List[CombinedRecord]:
    """Fold aggregated combined-study records into one head per study code.

    Returns:
        Finalized heads in first-seen order. Records of other studies are
        ignored.
    """
    heads: Dict[str, CombinedRecord] = {}
    for record in records:
        if record.study != "combined":
            continue
        candidate = CombinedRecord.from_record(record)
        head = heads.get(record.study_code)
        if head is None:
            heads[record.study_code] = candidate
        elif record.input_alias in head.inputs:
            warnings.warn(
                f"Combined study '{record.study_code}' lists '{record.input_alias}' twice; "
                f"run '{record.run}' ignored",
                stacklevel=2,
            )
        else:
            head.absorb(candidate)

    for head in heads.values():
        head.state = FINALIZED
    return list(heads.values())


def predict_by_sensitivity(head: CombinedRecord, matrix: SensitivityMatrix) -> Dict[str, float]:
    """Superpose sensitivities: ``base + sum(s * (new - base))`` per output.

    A blank matrix cell contributes nothing and is reported with a warning.

    Raises:
        ColumnNotFound: If an input or output alias is not in the matrix.
    """
    predictions = {}
    for result in head.outcomes:
        total = result.base_value
        for alias, base, new in zip(head.inputs, head.base_values, head.new_values):
            s = matrix.sensitivity(alias, result.output_alias)
            if s is None:
                warnings.warn(
                    f"No sensitivity of '{result.output_alias}' to '{alias}'; treated as zero "
                    f"in combined scenario '{head.study_code}'",
                    stacklevel=2,
                )
                continue
            total += s * (new - base)
        result.predicted_by_sensitivity = total
        predictions[result.output_alias] = total
    return predictions


def predict_by_response_surface(head: CombinedRecord, surface: ResponseSurface) -> Dict[str, float]:
    """Evaluate the composite power law of *head* for every output that has one.

    Outputs without a composite fit keep ``None``.

    Raises:
        MissingBaseFit: If an input lacks a single-input fit.
    """
    predictions = {}
    for result in head.outcomes:
        fit = surface.get(head.inputs, result.output_alias)
        if fit is None or not fit.is_composite:
            continue
        x = composite_abscissa(surface, head.inputs, head.new_values, result.output_alias)
        result.predicted_by_response_surface = fit.predict(x)
        predictions[result.output_alias] = result.predicted_by_response_surface
    return predictions


def evaluate_combined(
    heads: Sequence[CombinedRecord],
    matrix: Optional[SensitivityMatrix] = None,
    surface: Optional[ResponseSurface] = None,
) -> List[CombinedRecord]:
    """Fill both predictions on every finalized head."""
    for head in heads:
        if head.state != FINALIZED:
            continue
        if matrix is not None and matrix.inputs:
            predict_by_sensitivity(head, matrix)
        if surface is not None:
            predict_by_response_surface(head, surface)
    return list(heads)
