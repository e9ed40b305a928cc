"""
Validation utilities for FirePM.

This module provides validation functions for variable specifications,
configuration parameters and analysis readiness.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union

from ..core.variables import Geometry, VariableSpec

__all__ = []


@dataclass
class _ValidationResult:
    """Outcome of a validation check, carrying errors and warnings.

    Attributes:
        is_valid: ``True`` if no errors were found.
        errors: List of error messages (empty when valid).
        warnings: List of non-fatal warning messages.
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def raise_if_invalid(self):
        """Raise ``ValueError`` if the validation failed."""
        if not self.is_valid:
            error_msg = "Validation failed:\n" + "\n".join(f"• {err}" for err in self.errors)
            raise ValueError(error_msg)


class _Validator:
    """Static helpers for type and range checks used by all validators."""

    @staticmethod
    def _check_type(value: Any, expected_types: tuple, name: str) -> Optional[str]:
        """Check if value has expected type."""
        if isinstance(value, bool) or not isinstance(value, expected_types):
            actual_type = type(value).__name__
            expected = expected_types[0].__name__ if len(expected_types) == 1 else f"one of {[t.__name__ for t in expected_types]}"
            return f"{name} must be {expected}, got {actual_type}"
        return None

    @staticmethod
    def _check_range(
        value: Union[int, float],
        min_val: Optional[float],
        max_val: Optional[float],
        name: str,
    ) -> Optional[str]:
        """Check if value is within range."""
        if min_val is not None and value < min_val:
            return f"{name} must be >= {min_val}, got {value}"
        if max_val is not None and value > max_val:
            return f"{name} must be <= {max_val}, got {value}"
        return None


_validator = _Validator()


def _validate_numeric_parameter(
    value: Any,
    name: str,
    expected_types: tuple = (int, float),
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
) -> _ValidationResult:
    """Generic validation for numeric parameters."""
    errors: List[str] = []

    type_error = _validator._check_type(value, expected_types, name)
    if type_error:
        return _ValidationResult(False, [type_error], [])

    range_error = _validator._check_range(value, min_val, max_val, name)
    if range_error:
        errors.append(range_error)

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_tolerance(tolerance: Any) -> _ValidationResult:
    """Validate the near-zero tolerance (strictly positive, below 1)."""
    result = _validate_numeric_parameter(tolerance, "Tolerance", min_val=0, max_val=1)
    if result.is_valid and tolerance == 0:
        result.is_valid = False
        result.errors.append("Tolerance must be > 0")
    if result.is_valid and tolerance > 1e-2:
        result.warnings.append(f"Large tolerance ({tolerance}) may hide real sensitivities")
    return result


def _validate_capacity(value: Any, name: str) -> _ValidationResult:
    """Validate a capacity limit (integer >= 1)."""
    return _validate_numeric_parameter(value, name, expected_types=(int,), min_val=1)


def _validate_spec(spec: VariableSpec) -> _ValidationResult:
    """Check one variable specification for completeness and consistency.

    Inputs need a base value and, for the sensitivity and response-surface
    studies, both limits. Outputs need a critical value, a crossing
    direction and a target column. Geometric values must move exactly one
    of their six coordinates.
    """
    errors: List[str] = []
    warnings: List[str] = []
    label = f"'{spec.alias}' ({spec.code})"

    if not spec.alias:
        errors.append(f"Variable of type {spec.code} has no alias")
    if not spec.column:
        errors.append(f"{label} has no column name")

    if spec.is_output:
        if spec.critical_value is None:
            errors.append(f"{label} needs a critical value")
        if spec.direction not in ("increasing", "decreasing"):
            errors.append(f"{label} needs a crossing direction (Divisions 1 or -1), got {spec.direction!r}")
        if not spec.target_column:
            errors.append(f"{label} needs a target column")
        return _ValidationResult(len(errors) == 0, errors, warnings)

    if spec.base_value is None:
        errors.append(f"{label} needs a base value")
    if spec.study in ("sensitivity", "response_surface") and (spec.lower_limit is None or spec.upper_limit is None):
        errors.append(f"{label} needs lower and upper limits")
    if spec.study is None:
        warnings.append(f"{label} belongs to no study and is not analysed")

    values = [v for v in (spec.base_value, spec.lower_limit, spec.upper_limit) if v is not None]
    kinds = {isinstance(v, Geometry) for v in values}
    if len(kinds) > 1:
        errors.append(f"{label} mixes scalar and geometric values")
    elif spec.is_geometric and kinds == {True}:
        errors.extend(_check_single_axis(spec, label))
    elif spec.code[2] == "G":
        errors.append(f"{label} is geometric but its values are not a|b|c|d|e|f geometries")

    return _ValidationResult(len(errors) == 0, errors, warnings)


def _check_single_axis(spec: VariableSpec, label: str) -> List[str]:
    errors = []
    if spec.lower_limit is not None and spec.upper_limit is not None:
        axes = spec.lower_limit.differing_axes(spec.upper_limit)
        if len(axes) != 1 and spec.study != "combined":
            errors.append(f"{label} limits must differ in exactly one coordinate, differ in {len(axes)}")
    for name, limit in (("lower", spec.lower_limit), ("upper", spec.upper_limit)):
        if limit is None:
            continue
        if len(spec.base_value.differing_axes(limit)) > 1:
            errors.append(f"{label} {name} limit moves more than one coordinate of the base geometry")
    return errors


def _validate_specs(specs) -> _ValidationResult:
    """Validate every spec and the input/output mix of the table."""
    errors: List[str] = []
    warnings: List[str] = []
    n_inputs = n_outputs = 0
    for spec in specs:
        result = _validate_spec(spec)
        errors.extend(result.errors)
        warnings.extend(result.warnings)
        n_inputs += spec.is_input
        n_outputs += spec.is_output

    if n_inputs == 0:
        errors.append("At least one input variable is required")
    if n_outputs == 0:
        errors.append("At least one output variable is required")
    return _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_model_ready(model) -> _ValidationResult:
    """
    Validate that a model is ready for analysis.

    Args:
        model: ``FirePM`` instance to validate

    Returns:
        _ValidationResult with any errors or warnings
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not model.runs:
        errors.append("No simulation runs added. Use add_run() or add_run_file() first")
    if model.baseline_directory is None and not model.output_base_values:
        errors.append("Baseline not set. Use set_baseline() or set_baseline_values() first")
    elif model.baseline_directory is None:
        missing = [a for a in model.registry.output_aliases if a not in model.output_base_values]
        if missing:
            errors.append(f"Missing baseline values for outputs: {', '.join(missing)}")

    return _ValidationResult(len(errors) == 0, errors, warnings)
