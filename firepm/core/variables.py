"""
Variable specification registry for the FirePM framework.

This module turns the rows of the variable configuration table into typed
``VariableSpec`` objects and keeps them in a single ordered registry that
every analysis phase reads from. Geometric values (``a|b|c|d|e|f``) are
parsed once into ``Geometry`` objects and never re-split downstream.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..exceptions import CapacityExceeded

__all__ = []

NEAR_ZERO = 1e-6
AXIS_NAMES = ("x1", "x2", "y1", "y2", "z1", "z2")

_STUDY_BY_LETTER = {"S": "sensitivity", "R": "response_surface"}


@dataclass(frozen=True)
class Geometry:
    """Six ordered obstruction coordinates ``x1, x2, y1, y2, z1, z2``.

    Attributes:
        components: The six coordinates in file order.
    """

    components: Tuple[float, ...]

    def __post_init__(self):
        if len(self.components) != 6:
            raise ValueError(f"Geometry needs 6 components, got {len(self.components)}")

    @classmethod
    def parse(cls, text: str) -> "Geometry":
        """Parse the ``a|b|c|d|e|f`` encoding."""
        parts = [p.strip() for p in str(text).split("|")]
        if len(parts) != 6:
            raise ValueError(f"Geometry '{text}' must have 6 '|'-separated components")
        try:
            return cls(tuple(float(p) for p in parts))
        except ValueError:
            raise ValueError(f"Geometry '{text}' has non-numeric components") from None

    def __getitem__(self, index: int) -> float:
        return self.components[index]

    def __str__(self):
        return "|".join(f"{c:g}" for c in self.components)

    def differing_axes(self, other: "Geometry", tolerance: float = NEAR_ZERO) -> List[int]:
        """Indices of the components that differ from *other* beyond *tolerance*."""
        return [i for i in range(6) if abs(self.components[i] - other.components[i]) > tolerance]

    def dimension(self, axis: int) -> float:
        """Extent along the axis of component *axis* (e.g. ``|x1 - x2|`` for 0 or 1)."""
        return abs(self.components[axis] - self.components[paired_axis(axis)])


def paired_axis(axis: int) -> int:
    """Return the opposite coordinate on the same axis (0<->1, 2<->3, 4<->5)."""
    return axis + 1 if axis % 2 == 0 else axis - 1


Value = Union[float, Geometry]


def parse_value(raw: Any) -> Optional[Value]:
    """Parse a scalar or geometric configuration value (``None``/blank stays ``None``)."""
    if raw is None or isinstance(raw, (float, int, Geometry)):
        return float(raw) if isinstance(raw, int) else raw
    text = str(raw).strip()
    if not text:
        return None
    if "|" in text:
        return Geometry.parse(text)
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"'{raw}' is neither a number nor an a|b|c|d|e|f geometry") from None


@dataclass
class VariableSpec:
    """One row of the variable configuration table.

    Attributes:
        code: Three-character type code. ``code[0]`` is ``I``/``O``
            (input/output), ``code[1]`` selects the study (``S``
            sensitivity, ``R`` response surface, anything else none) and
            ``code[2]`` the value kind (``P`` scalar, ``G`` geometric,
            ``C`` combined study). The full code of a combined input also
            identifies its combined scenario.
        alias: Short identifying name used in run names and reports.
        column: Column name of the variable in time-series tables (the
            critical variable for outputs).
        base_value: Baseline value (float or ``Geometry``).
        lower_limit: Lower perturbation limit.
        upper_limit: Upper perturbation limit.
        critical_value: Threshold of the critical variable (outputs only).
        direction: ``"increasing"`` or ``"decreasing"`` crossing (outputs only).
        target_column: Column reported when the threshold is crossed
            (outputs only).
        divisions: Raw ``Divisions`` field. For combined inputs ``-1``
            selects the lower limit, anything else the upper one.
    """

    code: str
    alias: str
    column: str
    base_value: Optional[Value] = None
    lower_limit: Optional[Value] = None
    upper_limit: Optional[Value] = None
    critical_value: Optional[float] = None
    direction: Optional[str] = None
    target_column: Optional[str] = None
    divisions: Optional[int] = None

    def __post_init__(self):
        self.code = str(self.code).strip()
        if len(self.code) != 3 or self.code[0] not in "IO":
            raise ValueError(f"Invalid variable type code '{self.code}' for '{self.alias}'")
        self.base_value = parse_value(self.base_value)
        self.lower_limit = parse_value(self.lower_limit)
        self.upper_limit = parse_value(self.upper_limit)
        if self.direction in (1, -1, "1", "-1"):
            self.direction = "increasing" if int(self.direction) == 1 else "decreasing"

    @property
    def role(self) -> str:
        return "input" if self.code[0] == "I" else "output"

    @property
    def is_input(self) -> bool:
        return self.role == "input"

    @property
    def is_output(self) -> bool:
        return self.role == "output"

    @property
    def study(self) -> Optional[str]:
        """``"sensitivity"``, ``"response_surface"``, ``"combined"`` or ``None``."""
        if self.code[2] == "C":
            return "combined"
        return _STUDY_BY_LETTER.get(self.code[1])

    @property
    def value_kind(self) -> str:
        if self.code[2] == "G" or isinstance(self.base_value, Geometry):
            return "geometric"
        return "scalar"

    @property
    def is_geometric(self) -> bool:
        return self.value_kind == "geometric"

    @property
    def perturbed_axis(self) -> Optional[int]:
        """Axis index moved between the limits (first one, geometric specs only)."""
        if not isinstance(self.base_value, Geometry):
            return None
        pairs = []
        if isinstance(self.lower_limit, Geometry) and isinstance(self.upper_limit, Geometry):
            pairs.append((self.lower_limit, self.upper_limit))
        for limit in (self.lower_limit, self.upper_limit):
            if isinstance(limit, Geometry):
                pairs.append((self.base_value, limit))
        for first, second in pairs:
            axes = first.differing_axes(second)
            if axes:
                return axes[0]
        return None

    @property
    def input_base_value(self) -> Optional[float]:
        """Scalar base value, or the base dimension along the perturbed axis."""
        if not self.is_geometric:
            return self.base_value
        axis = self.perturbed_axis
        return None if axis is None else self.base_value.dimension(axis)

    def compatible_with(self, study: Optional[str]) -> bool:
        """Whether this output is extracted for inputs of *study*."""
        if not self.is_output:
            return False
        own = _STUDY_BY_LETTER.get(self.code[1])
        return own is None or study is None or own == study

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "VariableSpec":
        """Build a spec from a configuration record using the configuration table field names.

        Args:
            record: Mapping with ``VarType``, ``Alias``, ``FDS_VarName`` (or
                ``FileVarName``), ``TargetName``, ``BaseValue``,
                ``LowerLimit``, ``UpperLimit``, ``CriticalValue`` and
                ``Divisions``. Missing fields default to blank.

        Returns:
            A ``VariableSpec``. For outputs ``Divisions`` carries the
            crossing direction (``1`` increasing, ``-1`` decreasing).
        """
        code = str(record.get("VarType", "")).strip()
        column = record.get("FDS_VarName", record.get("FileVarName", ""))
        divisions = _parse_int(record.get("Divisions"))
        critical = record.get("CriticalValue")
        is_output = code[:1] == "O"

        return cls(
            code=code,
            alias=str(record.get("Alias", "")).strip(),
            column=str(column).strip(),
            base_value=record.get("BaseValue"),
            lower_limit=record.get("LowerLimit"),
            upper_limit=record.get("UpperLimit"),
            critical_value=float(critical) if is_output and _present(critical) else None,
            direction=divisions if is_output and divisions in (1, -1) else None,
            target_column=(str(record.get("TargetName", "")).strip() or None) if is_output else None,
            divisions=divisions,
        )


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def _parse_int(value: Any) -> Optional[int]:
    if not _present(value):
        return None
    try:
        return int(float(str(value).strip()))
    except ValueError:
        return None


class VariableRegistry:
    """Ordered, capacity-checked table of ``VariableSpec`` objects.

    Inputs and outputs keep their configuration order. The same alias may
    appear in several studies (for example a sprinkler setting perturbed
    in both a sensitivity and a combined study); ``input_aliases`` and
    ``output_aliases`` list each alias once, in first-seen order.
    """

    def __init__(
        self,
        specs: Iterable[Union[VariableSpec, Mapping[str, Any]]] = (),
        max_inputs: int = 64,
        max_outputs: int = 64,
    ):
        self.max_inputs = max_inputs
        self.max_outputs = max_outputs
        self._specs: List[VariableSpec] = []
        for spec in specs:
            self.add(spec)

    def add(self, spec: Union[VariableSpec, Mapping[str, Any]]) -> VariableSpec:
        """Append a spec (or a raw configuration record) to the registry.

        Raises:
            CapacityExceeded: If the number of distinct input or output
                aliases would exceed the configured maximum.
        """
        if not isinstance(spec, VariableSpec):
            spec = VariableSpec.from_record(spec)

        aliases = self.input_aliases if spec.is_input else self.output_aliases
        limit = self.max_inputs if spec.is_input else self.max_outputs
        if spec.alias not in aliases and len(aliases) >= limit:
            raise CapacityExceeded(
                f"Too many {spec.role} variables (maximum {limit})",
                input_alias=spec.alias if spec.is_input else None,
                output_alias=spec.alias if spec.is_output else None,
            )
        self._specs.append(spec)
        return spec

    def __len__(self):
        return len(self._specs)

    def __iter__(self):
        return iter(self._specs)

    @property
    def inputs(self) -> List[VariableSpec]:
        return [s for s in self._specs if s.is_input]

    @property
    def outputs(self) -> List[VariableSpec]:
        return [s for s in self._specs if s.is_output]

    @property
    def input_aliases(self) -> List[str]:
        return list(dict.fromkeys(s.alias for s in self._specs if s.is_input))

    @property
    def output_aliases(self) -> List[str]:
        return list(dict.fromkeys(s.alias for s in self._specs if s.is_output))

    def inputs_for(self, study: str) -> List[VariableSpec]:
        """Input specs belonging to *study*."""
        return [s for s in self.inputs if s.study == study]

    def outputs_for(self, study: Optional[str]) -> List[VariableSpec]:
        """Output specs extracted for runs of *study*."""
        return [s for s in self.outputs if s.compatible_with(study)]

    def input(self, alias: str, study: Optional[str] = None) -> VariableSpec:
        """Return the first input spec named *alias* (optionally in *study*)."""
        for spec in self.inputs:
            if spec.alias == alias and (study is None or spec.study == study):
                return spec
        raise KeyError(f"Unknown input '{alias}'")

    def output(self, alias: str) -> VariableSpec:
        """Return the first output spec named *alias*."""
        for spec in self.outputs:
            if spec.alias == alias:
                return spec
        raise KeyError(f"Unknown output '{alias}'")

    def study_codes(self, study: str) -> List[str]:
        """Distinct input type codes of *study*, in first-seen order."""
        return list(dict.fromkeys(s.code for s in self.inputs_for(study)))

    def summary(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for spec in self.inputs:
            counts[spec.study or "other"] = counts.get(spec.study or "other", 0) + 1
        counts["outputs"] = len(self.outputs)
        return counts
