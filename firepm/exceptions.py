"""
Errors and warning categories raised by FirePM.

Every error derives from ``FirePMError``, itself a ``ValueError``, so code
that already guards analysis calls with ``except ValueError`` keeps working.
Each error carries the identity of the offending record (input alias,
output alias, run or file) both as attributes and in its message.
"""

from typing import Optional

__all__ = [
    "FirePMError",
    "ColumnNotFound",
    "RunIdentityError",
    "MissingBaselineValue",
    "SensitivityOverflow",
    "MissingBaseFit",
    "NonPositiveDomain",
    "InsufficientSamples",
    "CapacityExceeded",
    "UnresolvedThreshold",
    "SensitivityTruncated",
    "IncompleteSensitivity",
]


def _identity(**parts) -> str:
    shown = [f"{key}={value!r}" for key, value in parts.items() if value is not None]
    return f" [{', '.join(shown)}]" if shown else ""


class FirePMError(ValueError):
    """Base class for all FirePM analysis errors.

    Attributes:
        input_alias: Alias of the input variable involved, if any.
        output_alias: Alias of the output variable involved, if any.
        source: Run name or file path involved, if any.
    """

    def __init__(
        self,
        message: str,
        input_alias: Optional[str] = None,
        output_alias: Optional[str] = None,
        source: Optional[str] = None,
    ):
        self.input_alias = input_alias
        self.output_alias = output_alias
        self.source = source
        super().__init__(message + _identity(input=input_alias, output=output_alias, source=source))


class ColumnNotFound(FirePMError):
    """A required column or alias is absent from a table, directory or matrix."""

    def __init__(self, column: str, **identity):
        self.column = column
        super().__init__(f"Column '{column}' not found", **identity)


class RunIdentityError(FirePMError):
    """The new value of an input cannot be resolved from a run's identity."""


class MissingBaselineValue(FirePMError):
    """The baseline value of an output is unavailable."""


class SensitivityOverflow(FirePMError):
    """More than two perturbations were recorded for one input."""


class MissingBaseFit(FirePMError):
    """A composite fit needs a single-input fit that does not exist."""


class NonPositiveDomain(FirePMError):
    """A value passed to the power-law log transform is not strictly positive."""


class InsufficientSamples(FirePMError):
    """A regression was requested with too few or degenerate samples."""


class CapacityExceeded(FirePMError):
    """A bounded collection reached its configured maximum."""


class UnresolvedThreshold(UserWarning):
    """The critical value of an output was never crossed within a table."""


class SensitivityTruncated(UserWarning):
    """A sensitivity-matrix row stopped at a near-zero cell.

    Cells after the first blank one are left unknown even when the
    underlying sensitivity is non-zero.
    """


class IncompleteSensitivity(UserWarning):
    """An input lacks its left or right perturbation."""
