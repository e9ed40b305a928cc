"""
Results of one FirePM analysis pass.

``StudyResults`` carries the state produced by each pipeline phase so that
the next phase, the report writers and the predictor read it explicitly.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .aggregation import unresolved_records
from .combined import CombinedRecord
from .records import AnalysisRecord
from .response_surface import ResponseSurface
from .sensitivity import SensitivityMatrix, SensitivityRow


@dataclass
class StudyResults:
    """Everything computed by ``FirePM.analyze``.

    Attributes:
        records: Analysis records of every run, resolved or not.
        aggregated: Study name -> records averaged over repeated runs.
        sensitivity_rows: Left/right perturbations of sensitivity inputs.
        matrix: Sensitivity matrix assembled from complete rows.
        surface: Single-input and composite power-curve fits.
        combined: Finalized combined-scenario heads with predictions.
        output_base_values: Baseline outcome per output alias.
    """

    records: List[AnalysisRecord] = field(default_factory=list)
    aggregated: Dict[str, List[AnalysisRecord]] = field(default_factory=dict)
    sensitivity_rows: List[SensitivityRow] = field(default_factory=list)
    matrix: SensitivityMatrix = field(default_factory=SensitivityMatrix)
    surface: ResponseSurface = field(default_factory=ResponseSurface)
    combined: List[CombinedRecord] = field(default_factory=list)
    output_base_values: Dict[str, float] = field(default_factory=dict)

    @property
    def unresolved(self) -> List[AnalysisRecord]:
        return unresolved_records(self.records)

    @property
    def sensitivity_records(self) -> List[AnalysisRecord]:
        return self.aggregated.get("sensitivity", [])

    @property
    def response_surface_records(self) -> List[AnalysisRecord]:
        return self.aggregated.get("response_surface", [])

    @property
    def combined_records(self) -> List[AnalysisRecord]:
        return self.aggregated.get("combined", [])

    def summary(self) -> str:
        """One line per phase, as printed after an analysis."""
        lines = [
            f"Records: {len(self.records)} ({len(self.unresolved)} unresolved)",
            f"Sensitivity matrix: {len(self.matrix.inputs)} inputs x {len(self.matrix.outputs)} outputs, "
            f"{len(self.matrix)} cells",
            f"Power curves: {len(self.surface.single_fits)} single-input, "
            f"{len(self.surface.composite_fits)} composite",
            f"Combined scenarios: {len(self.combined)}",
        ]
        return "\n".join(lines)
