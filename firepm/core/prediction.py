"""
Prediction from persisted model artifacts.

A ``Predictor`` holds a sensitivity matrix and a response surface (freshly
computed or re-loaded from ``SMT.csv`` and ``RSMRlt.csv``) and predicts
every output for a hypothetical set of input values. It also proposes
single-input corrective measures that would close the gap between a
predicted outcome and a required one.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from ..exceptions import ColumnNotFound
from .response_surface import ResponseSurface, composite_abscissa
from .sensitivity import SensitivityMatrix
from .variables import NEAR_ZERO, Geometry, Value, VariableRegistry

__all__ = []


@dataclass(frozen=True)
class Prediction:
    """Predicted value of one output under both models.

    Attributes:
        output_alias: Output alias.
        base_value: Baseline outcome.
        by_sensitivity: Linear-superposition prediction, or ``None`` when
            a changed input has no sensitivity row.
        by_response_surface: Power-law prediction, or ``None`` when no fit
            covers the changed inputs.
    """

    output_alias: str
    base_value: Optional[float]
    by_sensitivity: Optional[float]
    by_response_surface: Optional[float]


class Predictor:
    """Predicts outputs for hypothetical input values.

    Args:
        matrix: Sensitivity matrix.
        surface: Response surface with single-input and composite fits.
        input_base_values: Baseline value per input alias (float, or
            ``Geometry`` for geometric inputs).
        output_base_values: Baseline outcome per output alias. Values
            missing here are taken from the fits' output base values.
        tolerance: Near-zero threshold for geometry comparison and for
            ignoring unchanged inputs.
    """

    def __init__(
        self,
        matrix: SensitivityMatrix,
        surface: ResponseSurface,
        input_base_values: Mapping[str, Value],
        output_base_values: Optional[Mapping[str, float]] = None,
        tolerance: float = NEAR_ZERO,
    ):
        self.matrix = matrix
        self.surface = surface
        self.input_base_values = dict(input_base_values)
        self.output_base_values = {fit.output_alias: fit.output_base_value for fit in surface}
        self.output_base_values.update(output_base_values or {})
        self.tolerance = tolerance

    @classmethod
    def from_artifacts(
        cls,
        matrix_path: Union[str, Path],
        fits_path: Union[str, Path],
        registry: VariableRegistry,
        output_base_values: Optional[Mapping[str, float]] = None,
    ) -> "Predictor":
        """Re-load ``SMT.csv`` and ``RSMRlt.csv`` written by a previous analysis."""
        from ..utils.reports import read_power_curve_fits, read_sensitivity_matrix

        bases = {}
        for spec in registry.inputs:
            bases.setdefault(spec.alias, spec.base_value)
        return cls(
            read_sensitivity_matrix(matrix_path),
            ResponseSurface(read_power_curve_fits(fits_path)),
            bases,
            output_base_values,
        )

    @property
    def outputs(self):
        names = list(self.matrix.outputs)
        for fit in self.surface:
            if fit.output_alias not in names:
                names.append(fit.output_alias)
        return names

    def reduce(self, input_alias: str, value: Value):
        """Return ``(base, new)`` scalars for one hypothetical input value.

        A geometric value is reduced to its dimension along the first axis
        where it differs from the base geometry.
        """
        if input_alias not in self.input_base_values:
            raise ColumnNotFound(input_alias, input_alias=input_alias, source="input base values")
        base = self.input_base_values[input_alias]
        if not isinstance(base, Geometry):
            if isinstance(value, Geometry):
                raise ValueError(f"Input '{input_alias}' is scalar but got geometry {value}")
            return float(base), float(value)

        if not isinstance(value, Geometry):
            value = Geometry.parse(value) if isinstance(value, str) else None
            if value is None:
                raise ValueError(f"Input '{input_alias}' is geometric and needs an a|b|c|d|e|f value")
        axes = base.differing_axes(value, self.tolerance)
        if not axes:
            return 0.0, 0.0
        return base.dimension(axes[0]), value.dimension(axes[0])

    def predict(self, values: Mapping[str, Value]) -> Dict[str, Prediction]:
        """Predict every output for the given input values.

        Args:
            values: Input alias -> hypothetical value. Inputs not listed, or
                listed at their base value, are unchanged.

        Returns:
            Output alias -> ``Prediction``.
        """
        changed = {}
        for alias, value in values.items():
            base, new = self.reduce(alias, value)
            if abs(new - base) > self.tolerance:
                changed[alias] = (base, new)

        predictions = {}
        for output in self.outputs:
            base_out = self.output_base_values.get(output)
            predictions[output] = Prediction(
                output_alias=output,
                base_value=base_out,
                by_sensitivity=self._by_sensitivity(changed, output, base_out),
                by_response_surface=self._by_response_surface(changed, output, base_out),
            )
        return predictions

    def _by_sensitivity(self, changed, output: str, base_out: Optional[float]) -> Optional[float]:
        if base_out is None or output not in self.matrix.outputs:
            return None
        total = base_out
        for alias, (base, new) in changed.items():
            if alias not in self.matrix.inputs:
                return None
            s = self.matrix.sensitivity(alias, output)
            if s is not None:
                total += s * (new - base)
        return total

    def _by_response_surface(self, changed, output: str, base_out: Optional[float]) -> Optional[float]:
        if not changed:
            return base_out
        aliases = tuple(changed)
        fit = self.surface.get(aliases, output)
        if fit is None:
            return None
        if not fit.is_composite:
            return fit.predict(changed[aliases[0]][1])
        x = composite_abscissa(self.surface, aliases, [new for _, new in changed.values()], output)
        return fit.predict(x)

    def corrective_measures(self, output_alias: str, required: float, current: Optional[float] = None) -> Dict[str, float]:
        """Input changes that would each alone move *output_alias* to *required*.

        Args:
            output_alias: Output to correct.
            required: Required outcome (e.g. the available safe egress time).
            current: Current outcome; defaults to the baseline outcome.

        Returns:
            Input alias -> change of the input value, ``-(current - required) / s``,
            for every input with a populated sensitivity cell.
        """
        if current is None:
            current = self.output_base_values.get(output_alias)
            if current is None:
                raise ColumnNotFound(output_alias, output_alias=output_alias, source="output base values")
        gap = current - required
        measures = {}
        for alias in self.matrix.inputs:
            s = self.matrix.sensitivity(alias, output_alias)
            if s is None or abs(s) <= self.tolerance:
                continue
            measures[alias] = -gap / s
        return measures
