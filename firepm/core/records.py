"""
Analysis records: one per (run, matched input).

A ``RecordBuilder`` pairs the identity and new value of each perturbed input
of a run with the outcomes extracted for every compatible output. Run names
follow the generator's convention ``<prefix>_<alias>_<value>_<repeat>``,
where ``<value>`` uses ``D`` for the decimal point (``0D06`` is ``0.06``).
"""

import re
import warnings
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ..exceptions import ColumnNotFound, MissingBaselineValue, RunIdentityError
from .extraction import extract_outcome
from .variables import NEAR_ZERO, Geometry, VariableRegistry, VariableSpec, paired_axis

__all__ = []


@dataclass
class SimulationRun:
    """One executed simulation and its result tables.

    Attributes:
        name: Run identity, e.g. ``"ISP_Sprinkler_0D06_1"``.
        tables: Result tables of the run (device and evacuation output).
        study_code: Type code of the study the run belongs to. When
            ``None`` the code is looked up among the run name's tokens.
        source: File or directory reference used in diagnostics.
    """

    name: str
    tables: Tuple[pd.DataFrame, ...]
    study_code: Optional[str] = None
    source: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.tables, pd.DataFrame):
            self.tables = (self.tables,)
        self.tables = tuple(self.tables)
        if self.source is None and self.tables:
            self.source = self.tables[0].attrs.get("source")

    @property
    def tokens(self) -> List[str]:
        return self.name.split("_")

    @staticmethod
    def _alias_pattern(alias: str) -> str:
        return rf"(^|_){re.escape(alias)}(_|$)"

    def mentions(self, alias: str) -> bool:
        """Whether *alias* appears as a whole ``_``-delimited part of the run name.

        The alias may itself contain ``_`` (``Door_W`` in ``ISP_Door_W_1D2_1``).
        """
        return re.search(self._alias_pattern(alias), self.name) is not None

    def value_after(self, alias: str) -> Optional[str]:
        """Token following *alias* in the run name, if any."""
        match = re.search(self._alias_pattern(alias) + r"([^_]+)", self.name)
        if match is None:
            return None
        return match.group(3)

    def table_with(self, column: str) -> Optional[pd.DataFrame]:
        for table in self.tables:
            if column in table.columns:
                return table
        return None


@dataclass(frozen=True)
class OutcomeResult:
    """Extracted outcome of one output for one run (or averaged group).

    Attributes:
        output_alias: Output alias.
        output_code: Type code of the output spec.
        output_column: Critical column of the output.
        target_column: Column reported at the crossing.
        base_value: Outcome of the baseline run.
        new_value: Outcome of the perturbed run (``nan`` when unresolved).
        unresolved: ``True`` when the threshold was never crossed.
    """

    output_alias: str
    output_code: str
    output_column: str
    target_column: Optional[str]
    base_value: float
    new_value: float
    unresolved: bool = False


@dataclass(frozen=True)
class AnalysisRecord:
    """One perturbed input of one run and its outcomes.

    Attributes:
        study_code: Type code of the input spec (identifies the study).
        input_alias: Input alias.
        input_column: Input column name in the simulation input file.
        input_base_value: Baseline input value (dimension for geometry).
        input_new_value: Perturbed input value.
        outcomes: Outcomes of all compatible outputs.
        run: Run name (or ``"+"``-joined names after aggregation).
        n_runs: Number of repeated runs averaged into this record.
    """

    study_code: str
    input_alias: str
    input_column: str
    input_base_value: float
    input_new_value: float
    outcomes: Tuple[OutcomeResult, ...] = field(default_factory=tuple)
    run: str = ""
    n_runs: int = 1

    @property
    def study(self) -> Optional[str]:
        if self.study_code[2] == "C":
            return "combined"
        return {"S": "sensitivity", "R": "response_surface"}.get(self.study_code[1])

    @property
    def resolved(self) -> bool:
        return not any(o.unresolved for o in self.outcomes)

    @property
    def key(self) -> Tuple[str, str, str, float, float]:
        """Aggregation key: identical keys denote repeats of one configuration."""
        return (self.study_code, self.input_alias, self.input_column, self.input_base_value, self.input_new_value)

    @property
    def output_aliases(self) -> List[str]:
        return [o.output_alias for o in self.outcomes]

    def outcome(self, output_alias: str) -> Optional[OutcomeResult]:
        for result in self.outcomes:
            if result.output_alias == output_alias:
                return result
        return None


def parse_run_value(token: str) -> float:
    """Parse a run-name value token, reading ``D`` as the decimal point."""
    return float(token.replace("D", ".").replace("d", "."))


class RecordBuilder:
    """Builds ``AnalysisRecord`` objects from simulation runs.

    Args:
        registry: Variable specifications.
        output_base_values: Baseline outcome per output alias.
        tolerance: Near-zero threshold for geometric coordinate differences.
    """

    def __init__(
        self,
        registry: VariableRegistry,
        output_base_values: Mapping[str, float],
        tolerance: float = NEAR_ZERO,
    ):
        self.registry = registry
        self.output_base_values = dict(output_base_values)
        self.tolerance = tolerance

    def matching_inputs(self, run: SimulationRun) -> List[VariableSpec]:
        """Input specs perturbed by *run*."""
        matched = []
        for spec in self.registry.inputs:
            if run.study_code is not None:
                if spec.code != run.study_code:
                    continue
            elif spec.code not in run.tokens:
                continue
            if run.mentions(spec.alias):
                matched.append(spec)
        return matched

    def build(self, run: SimulationRun) -> List[AnalysisRecord]:
        """Build one record per input spec matched by *run*.

        Returns:
            The records, in configuration order. A run matching no input is
            skipped with a warning and yields an empty list.

        Raises:
            RunIdentityError: If an input's new value cannot be resolved.
            MissingBaselineValue: If an output has no baseline value.
            ColumnNotFound: If a compatible output is missing from the run.
        """
        specs = self.matching_inputs(run)
        if not specs:
            warnings.warn(f"Run '{run.name}' matches no input variable; skipped", stacklevel=2)
            return []

        records = []
        for spec in specs:
            base, new = self.input_values(spec, run)
            records.append(
                AnalysisRecord(
                    study_code=spec.code,
                    input_alias=spec.alias,
                    input_column=spec.column,
                    input_base_value=base,
                    input_new_value=new,
                    outcomes=self.outcomes(spec, run),
                    run=run.name,
                )
            )
        return records

    def input_values(self, spec: VariableSpec, run: SimulationRun) -> Tuple[float, float]:
        """Base and new value of input *spec* in *run*."""
        if spec.study == "combined":
            limit = spec.lower_limit if spec.divisions == -1 else spec.upper_limit
            if limit is None:
                raise RunIdentityError("Combined input has no limit value", input_alias=spec.alias, source=run.name)
            if spec.is_geometric:
                return self._combined_geometry(spec, limit, run)
            return float(spec.base_value), float(limit)

        token = run.value_after(spec.alias)
        if token is None:
            raise RunIdentityError("Run name carries no value after the alias", input_alias=spec.alias, source=run.name)
        try:
            value = parse_run_value(token)
        except ValueError:
            raise RunIdentityError(f"Cannot read '{token}' as an input value", input_alias=spec.alias, source=run.name) from None

        if not spec.is_geometric:
            return float(spec.base_value), value

        axis = spec.perturbed_axis
        if axis is None or not isinstance(spec.lower_limit, Geometry):
            raise RunIdentityError("Geometric input has no perturbed axis", input_alias=spec.alias, source=run.name)
        moved = abs(value - spec.lower_limit[paired_axis(axis)])
        return spec.base_value.dimension(axis), moved

    def _combined_geometry(self, spec: VariableSpec, limit: Geometry, run: SimulationRun) -> Tuple[float, float]:
        axes = spec.base_value.differing_axes(limit, self.tolerance)
        if not axes:
            axis = spec.perturbed_axis
            if axis is None:
                raise RunIdentityError("Combined geometry equals its base value", input_alias=spec.alias, source=run.name)
            dimension = spec.base_value.dimension(axis)
            return dimension, dimension
        return spec.base_value.dimension(axes[0]), limit.dimension(axes[0])

    def outcomes(self, spec: VariableSpec, run: SimulationRun) -> Tuple[OutcomeResult, ...]:
        """Outcomes of every output compatible with the study of *spec*."""
        results = []
        seen = set()
        for output in self.registry.outputs_for(spec.study):
            if output.alias in seen:
                continue
            seen.add(output.alias)
            if output.alias not in self.output_base_values:
                raise MissingBaselineValue(
                    "No baseline value for output", input_alias=spec.alias, output_alias=output.alias, source=run.name
                )
            table = run.table_with(output.column)
            if table is None:
                raise ColumnNotFound(output.column, input_alias=spec.alias, output_alias=output.alias, source=run.name)
            outcome = extract_outcome(table, output, source=run.source or run.name)
            results.append(
                OutcomeResult(
                    output_alias=output.alias,
                    output_code=output.code,
                    output_column=output.column,
                    target_column=output.target_column,
                    base_value=self.output_base_values[output.alias],
                    new_value=outcome.value,
                    unresolved=not outcome.resolved,
                )
            )
        return tuple(results)


def build_records(
    builder: RecordBuilder,
    runs: Sequence[SimulationRun],
    on_run: Optional[Callable[[SimulationRun], None]] = None,
) -> List[AnalysisRecord]:
    """Build the records of every run in order.

    Errors raised for one run propagate; records already built for earlier
    runs are left untouched in the caller's hands.
    """
    records: List[AnalysisRecord] = []
    for run in runs:
        records.extend(builder.build(run))
        if on_run is not None:
            on_run(run)
    return records


def records_by_study(records: Sequence[AnalysisRecord]) -> Dict[str, List[AnalysisRecord]]:
    grouped: Dict[str, List[AnalysisRecord]] = {}
    for record in records:
        grouped.setdefault(record.study or "other", []).append(record)
    return grouped
