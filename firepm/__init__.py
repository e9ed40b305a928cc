"""FirePM - Fire Performance Model.

Sensitivity and response-surface analysis of perturbed building-fire
simulations: threshold-crossing outcome extraction, averaging of repeated
runs, a central-difference sensitivity matrix, single-input and composite
power-law fits, and comparison of both models on combined scenarios.

Example:
    >>> from firepm import FirePM
    >>>
    >>> study = FirePM(variable_records)
    >>> study.set_baseline("results/base")
    >>> study.add_run_directory("results/ISP")
    >>> study.analyze()
    >>> study.write_reports("reports")
"""

from importlib.metadata import version as _get_version

from .exceptions import (
    CapacityExceeded,
    ColumnNotFound,
    FirePMError,
    InsufficientSamples,
    MissingBaseFit,
    MissingBaselineValue,
    NonPositiveDomain,
    RunIdentityError,
    SensitivityOverflow,
    UnresolvedThreshold,
)
from .model import FirePM
from .progress import AnalysisCancelled, PrintReporter, ProgressReporter, TqdmReporter

__version__ = _get_version("FirePM")

__all__ = [
    "FirePM",
    "AnalysisCancelled",
    "ProgressReporter",
    "PrintReporter",
    "TqdmReporter",
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
]
