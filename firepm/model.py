"""
FirePM - Fire Performance Model.

This module provides the main FirePM class that runs the sensitivity and
response-surface analysis of a set of perturbed fire simulations.
"""

import re
import warnings
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .core import (
    Predictor,
    RecordBuilder,
    SimulationRun,
    StudyResults,
    VariableRegistry,
    VariableSpec,
    aggregate_runs,
    baseline_values,
    build_records,
    build_sensitivity_matrix,
    build_sensitivity_rows,
    evaluate_combined,
    fit_response_surface,
    merge_combined,
)
from .core.records import records_by_study
from .core.response_surface import DEFAULT_MAX_SAMPLES
from .core.variables import NEAR_ZERO
from .utils.tables import RESULT_FILE_PATTERNS, as_time_series, list_result_files
from .utils.validators import _validate_capacity, _validate_model_ready, _validate_specs, _validate_tolerance
from .utils.visualization import _create_combined_plot, _create_response_plot

STUDIES = ("sensitivity", "response_surface", "combined")

_RESULT_SUFFIX = re.compile(r"_(devc|evac)$")


class FirePM:
    """Sensitivity and response-surface analysis of fire simulations.

    Takes the variable table of a study, the baseline results and the
    results of every perturbed run, and produces the analysis records, the
    sensitivity matrix, the power-curve fits and the combined-scenario
    comparison.

    Configuration methods (``set_*``) validate their arguments immediately
    and return ``self`` for method chaining.

    Attributes:
        tolerance: Near-zero threshold for perturbation sides, geometry
            comparison and matrix cells (default: 1e-6).
        max_inputs: Maximum number of distinct input aliases (default: 64).
        max_outputs: Maximum number of distinct output aliases (default: 64).
        max_samples: Sample buffer per single-input fit (default: 128).
        baseline_directory: Results directory of the unperturbed run.
        output_base_values: Explicit baseline outcome per output alias.
        runs: Simulation runs added so far.
        results: ``StudyResults`` of the last ``analyze`` call.

    Example:
        >>> study = FirePM(records)
        >>> study.set_baseline("results/base")
        >>> study.add_run_directory("results/ISP")
        >>> results = study.analyze()
        >>> study.write_reports("reports")
    """

    def __init__(self, variables: Iterable[Union[VariableSpec, Mapping[str, Any]]]):
        """Validate the variable table and initialise the analysis.

        Args:
            variables: ``VariableSpec`` objects or configuration records
                (mappings with ``VarType``, ``Alias``, ``FDS_VarName``, ...).

        Raises:
            ValueError: If a specification is incomplete or inconsistent.
            CapacityExceeded: If the table exceeds the default capacity.
        """
        self.tolerance = NEAR_ZERO
        self.max_inputs = 64
        self.max_outputs = 64
        self.max_samples = DEFAULT_MAX_SAMPLES

        specs = [v if isinstance(v, VariableSpec) else VariableSpec.from_record(v) for v in variables]
        result = _validate_specs(specs)
        for warning in result.warnings:
            print(f"Warning: {warning}")
        result.raise_if_invalid()
        self.registry = VariableRegistry(specs, self.max_inputs, self.max_outputs)

        self.baseline_directory: Optional[Path] = None
        self.output_base_values: Dict[str, float] = {}
        self.runs: List[SimulationRun] = []
        self.results: Optional[StudyResults] = None

        counts = self.registry.summary()
        studies = ", ".join(f"{counts[s]} {s.replace('_', '-')}" for s in STUDIES if s in counts)
        print(f"Inputs: {', '.join(self.registry.input_aliases)} ({studies or 'no study'})")
        print(f"Outputs: {', '.join(self.registry.output_aliases)}")

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_tolerance(self, tolerance: float):
        """Set the near-zero tolerance.

        Args:
            tolerance: Strictly positive threshold below which differences
                and sensitivities count as zero. Default is 1e-6.

        Returns:
            self: For method chaining.

        Raises:
            ValueError: If *tolerance* is not in (0, 1].
        """
        result = _validate_tolerance(tolerance)
        for warning in result.warnings:
            print(f"Warning: {warning}")
        result.raise_if_invalid()
        self.tolerance = float(tolerance)
        return self

    def set_capacity(
        self,
        max_inputs: Optional[int] = None,
        max_outputs: Optional[int] = None,
        max_samples: Optional[int] = None,
    ):
        """Set capacity limits.

        Args:
            max_inputs: Maximum number of distinct input aliases.
            max_outputs: Maximum number of distinct output aliases.
            max_samples: Samples kept per single-input fit; extra samples
                are discarded with a warning.

        Returns:
            self: For method chaining.

        Raises:
            ValueError: If a limit is not a positive integer.
            CapacityExceeded: If the current table exceeds a new limit.
        """
        for value, name in ((max_inputs, "max_inputs"), (max_outputs, "max_outputs"), (max_samples, "max_samples")):
            if value is not None:
                _validate_capacity(value, name).raise_if_invalid()

        new_inputs = self.max_inputs if max_inputs is None else max_inputs
        new_outputs = self.max_outputs if max_outputs is None else max_outputs
        self.registry = VariableRegistry(list(self.registry), new_inputs, new_outputs)
        self.max_inputs, self.max_outputs = new_inputs, new_outputs
        if max_samples is not None:
            self.max_samples = max_samples
        return self

    def set_baseline(self, directory: Union[str, Path]):
        """Set the results directory of the unperturbed baseline run.

        Output base values are extracted from its ``*devc*.csv`` and
        ``*evac*.csv`` files when ``analyze`` runs. Values given with
        ``set_baseline_values`` take precedence.

        Returns:
            self: For method chaining.

        Raises:
            ValueError: If *directory* does not exist.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ValueError(f"Baseline directory not found: {directory}")
        self.baseline_directory = directory
        return self

    def set_baseline_values(self, values: Mapping[str, float]):
        """Set output base values explicitly.

        Args:
            values: Output alias -> baseline outcome.

        Returns:
            self: For method chaining.

        Raises:
            ValueError: If an alias is not an output or a value is not numeric.
        """
        unknown = [alias for alias in values if alias not in self.registry.output_aliases]
        if unknown:
            raise ValueError(f"Unknown output aliases: {', '.join(unknown)}")
        for alias, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Base value of '{alias}' must be numeric, got {type(value).__name__}")
            self.output_base_values[alias] = float(value)
        return self

    # =========================================================================
    # Runs
    # =========================================================================

    def add_run(self, name: str, tables, study_code: Optional[str] = None):
        """Add one simulation run.

        Args:
            name: Run identity, e.g. ``"ISP_Sprinkler_0D06_1"``.
            tables: Result table(s) of the run: a DataFrame, dict, path, or
                a list of those.
            study_code: Type code of the study the run belongs to;
                looked up in the run name when omitted.

        Returns:
            self: For method chaining.
        """
        if not isinstance(tables, (list, tuple)):
            tables = [tables]
        frames = tuple(as_time_series(t, source=name) for t in tables)
        self.runs.append(SimulationRun(name=name, tables=frames, study_code=study_code))
        return self

    def add_run_file(self, *paths: Union[str, Path], name: Optional[str] = None, study_code: Optional[str] = None):
        """Add one run from its result files.

        Args:
            *paths: Result CSV files of one run.
            name: Run identity; defaults to the first file name without
                its ``_devc``/``_evac`` suffix.
            study_code: Defaults to the parent directory name when that is
                a type code of the variable table.

        Returns:
            self: For method chaining.
        """
        if not paths:
            raise ValueError("At least one result file is required")
        first = Path(paths[0])
        name = name or _RESULT_SUFFIX.sub("", first.stem)
        study_code = study_code or self._code_of_directory(first.parent)
        return self.add_run(name, [Path(p) for p in paths], study_code=study_code)

    def add_run_directory(
        self,
        directory: Union[str, Path],
        study_code: Optional[str] = None,
        patterns: Sequence[str] = RESULT_FILE_PATTERNS,
    ):
        """Add every run found in one study directory.

        Result files sharing a name up to their ``_devc``/``_evac`` suffix
        belong to one run.

        Returns:
            self: For method chaining.
        """
        directory = Path(directory)
        grouped: Dict[str, List[Path]] = {}
        for path in list_result_files(directory, patterns):
            grouped.setdefault(_RESULT_SUFFIX.sub("", path.stem), []).append(path)
        if not grouped:
            warnings.warn(f"No result files found in {directory}", stacklevel=2)
        study_code = study_code or self._code_of_directory(directory)
        for name, paths in grouped.items():
            self.add_run(name, paths, study_code=study_code)
        print(f"Added {len(grouped)} runs from {directory}")
        return self

    def _code_of_directory(self, directory: Path) -> Optional[str]:
        codes = {spec.code for spec in self.registry.inputs}
        return directory.name if directory.name in codes else None

    # =========================================================================
    # Analysis
    # =========================================================================

    def analyze(self, progress_callback=None, cancel_check=None, print_results: bool = True) -> StudyResults:
        """Run the whole analysis pipeline.

        Phases, in order: baseline outcomes, analysis records per run,
        averaging per study, sensitivity matrix, combined-scenario merge,
        single-input and composite power-curve fits, combined predictions.

        Args:
            progress_callback: Progress reporting control:
                - ``None`` (default): auto-use ``PrintReporter`` when
                  *print_results* is ``True``.
                - ``False``: explicitly disable progress.
                - callable ``(current, total)``: custom callback.
            cancel_check: Optional callable returning ``True`` to abort.
            print_results: Print a summary when done.

        Returns:
            The ``StudyResults`` (also kept on ``self.results``).

        Raises:
            ValueError: If runs or baseline values are missing, or any
                ``FirePMError`` raised by a phase.
            AnalysisCancelled: If *cancel_check* returned ``True``.
        """
        _validate_model_ready(self).raise_if_invalid()

        from .progress import PrintReporter, ProgressReporter

        if progress_callback is None:
            effective_cb = PrintReporter() if print_results else None
        elif progress_callback is False:
            effective_cb = None
        else:
            effective_cb = progress_callback

        bases: Dict[str, float] = {}
        if self.baseline_directory is not None:
            missing = [s for s in self.registry.outputs if s.alias not in self.output_base_values]
            bases.update(baseline_values(self.baseline_directory, missing))
        bases.update(self.output_base_values)

        builder = RecordBuilder(self.registry, bases, tolerance=self.tolerance)
        reporter = None
        if effective_cb is not None or cancel_check is not None:
            reporter = ProgressReporter(len(self.runs), effective_cb or (lambda current, total: None), cancel_check=cancel_check)
            reporter.start()

        on_run = (lambda _: reporter.advance()) if reporter is not None else None
        records = build_records(builder, self.runs, on_run=on_run)
        if reporter is not None:
            reporter.finish()

        grouped = records_by_study(records)
        aggregated = {study: aggregate_runs(grouped.get(study, [])) for study in STUDIES}

        rows = build_sensitivity_rows(aggregated["sensitivity"], self.tolerance)
        matrix = build_sensitivity_matrix(rows, self.tolerance)

        heads = merge_combined(aggregated["combined"])
        surface = fit_response_surface(aggregated["response_surface"], heads, max_samples=self.max_samples)
        evaluate_combined(heads, matrix, surface)

        self.results = StudyResults(
            records=records,
            aggregated=aggregated,
            sensitivity_rows=rows,
            matrix=matrix,
            surface=surface,
            combined=heads,
            output_base_values=bases,
        )
        if print_results:
            print(f"\n{'=' * 60}")
            print("FIRE PERFORMANCE MODEL RESULTS")
            print(f"{'=' * 60}")
            print(self.results.summary())
        return self.results

    def _require_results(self) -> StudyResults:
        if self.results is None:
            raise ValueError("No results yet. Run analyze() first")
        return self.results

    def write_reports(self, directory: Union[str, Path]) -> Dict[str, Path]:
        """Write DoA, RSM, SMT, SMT_detail, RSMRlt and CMB reports into *directory*.

        Returns:
            Report name -> written path.
        """
        from .utils.reports import write_reports

        written = write_reports(self._require_results(), directory)
        print(f"Reports written to {Path(directory)}: {', '.join(p.name for p in written.values())}")
        return written

    def predictor(self) -> Predictor:
        """A ``Predictor`` over the last results."""
        results = self._require_results()
        bases = {}
        for spec in self.registry.inputs:
            bases.setdefault(spec.alias, spec.base_value)
        return Predictor(results.matrix, results.surface, bases, results.output_base_values, tolerance=self.tolerance)

    # =========================================================================
    # Plots
    # =========================================================================

    def plot_response_surface(self, output_alias: str):
        """Plot aggregated samples and single-input fits of one output.

        Raises:
            ValueError: If no response-surface sample exists for the output.
            ImportError: If ``matplotlib`` is not installed.
        """
        results = self._require_results()
        samples: Dict[str, list] = {}
        base = None
        for record in results.response_surface_records:
            outcome = record.outcome(output_alias)
            if outcome is None:
                continue
            samples.setdefault(record.input_alias, []).append((record.input_new_value, outcome.new_value))
            base = outcome.base_value
        if not samples:
            raise ValueError(f"No response-surface samples for output '{output_alias}'")

        curves = {}
        for alias in samples:
            fit = results.surface.get((alias,), output_alias)
            if fit is not None:
                curves[alias] = (fit.a, fit.b)
        _create_response_plot(samples, curves, output_alias, base, f"Response surface: {output_alias}")

    def plot_combined(self):
        """Plot measured vs. predicted outcomes of every combined scenario.

        Raises:
            ValueError: If there is no combined scenario.
            ImportError: If ``matplotlib`` is not installed.
        """
        heads = self._require_results().combined
        if not heads:
            raise ValueError("No combined scenarios to plot")
        labels, measured, by_smt, by_rsm = [], [], [], []
        for head in heads:
            for result in head.outcomes:
                labels.append(f"{head.input_key} / {result.output_alias}")
                measured.append(result.measured)
                by_smt.append(result.predicted_by_sensitivity)
                by_rsm.append(result.predicted_by_response_surface)
        _create_combined_plot(labels, measured, by_smt, by_rsm, "Combined scenarios")

    def __repr__(self):
        return f"FirePM(inputs={self.registry.input_aliases}, outputs={self.registry.output_aliases}, runs={len(self.runs)})"
