"""Core components for the FirePM framework.

Re-exports the pipeline building blocks, in data-flow order:

- ``VariableRegistry``, ``VariableSpec``, ``Geometry``: variable table.
- ``extract_outcome``, ``baseline_value``, ``baseline_values``: threshold
  crossing.
- ``SimulationRun``, ``RecordBuilder``, ``AnalysisRecord``: analysis records.
- ``aggregate_runs``: averaging of repeated runs.
- ``build_sensitivity_rows``, ``build_sensitivity_matrix``,
  ``SensitivityMatrix``: central-difference sensitivities.
- ``fit_single_input``, ``fit_composite``, ``ResponseSurface``,
  ``PowerCurveFit``: power-law response surfaces.
- ``merge_combined``, ``evaluate_combined``, ``CombinedRecord``: combined
  scenarios.
- ``Predictor``: prediction from persisted artifacts.
- ``StudyResults``: state of one analysis pass.
"""

from .aggregation import aggregate_runs
from .combined import CombinedOutcome, CombinedRecord, evaluate_combined, merge_combined
from .extraction import Outcome, baseline_value, baseline_values, extract_outcome, find_crossing
from .prediction import Prediction, Predictor
from .records import AnalysisRecord, OutcomeResult, RecordBuilder, SimulationRun, build_records
from .response_surface import PowerCurveFit, ResponseSurface, fit_composite, fit_response_surface, fit_single_input
from .results import StudyResults
from .sensitivity import SensitivityMatrix, SensitivityRow, build_sensitivity_matrix, build_sensitivity_rows
from .variables import Geometry, VariableRegistry, VariableSpec

__all__ = [
    # Variables
    "VariableRegistry",
    "VariableSpec",
    "Geometry",
    # Extraction
    "Outcome",
    "extract_outcome",
    "find_crossing",
    "baseline_value",
    "baseline_values",
    # Records
    "SimulationRun",
    "RecordBuilder",
    "AnalysisRecord",
    "OutcomeResult",
    "build_records",
    "aggregate_runs",
    # Sensitivity
    "SensitivityRow",
    "SensitivityMatrix",
    "build_sensitivity_rows",
    "build_sensitivity_matrix",
    # Response surface
    "PowerCurveFit",
    "ResponseSurface",
    "fit_single_input",
    "fit_composite",
    "fit_response_surface",
    # Combined
    "CombinedRecord",
    "CombinedOutcome",
    "merge_combined",
    "evaluate_combined",
    # Prediction
    "Predictor",
    "Prediction",
    "StudyResults",
]
