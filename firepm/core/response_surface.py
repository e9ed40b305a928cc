"""
Power-law response surfaces.

Level 1 fits ``Y = a * X**b`` between one response-surface input and one
output. Level 2 calibrates combined scenarios: for each combined head the
composite abscissa ``X = prod(x_i ** b_i)`` is built from the level-1
exponents of its inputs, and ``Y = A * X**B`` is fitted against the
measured output across all heads varying the same set of inputs.
"""

import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import InsufficientSamples, MissingBaseFit, NonPositiveDomain
from ..stats.regression import evaluate_power, power_fit
from .records import AnalysisRecord

__all__ = []

DEFAULT_MAX_SAMPLES = 128
KEY_SEPARATOR = "+"


@dataclass(frozen=True)
class PowerCurveFit:
    """One fitted power curve ``Y = a * X**b``.

    Attributes:
        output_alias: Output the curve predicts.
        inputs: Input alias for a single-input fit, or all input aliases
            of a combined group for a composite fit.
        a: Coefficient.
        b: Exponent.
        r_squared: Coefficient of determination on the log-log scale.
        s_squared: Residual variance on the log-log scale (``None`` with
            two samples).
        output_base_value: Baseline outcome of the output.
        n_samples: Number of samples fitted.
    """

    output_alias: str
    inputs: Tuple[str, ...]
    a: float
    b: float
    r_squared: float
    s_squared: Optional[float]
    output_base_value: float
    n_samples: int = 0

    @property
    def input_key(self) -> str:
        return KEY_SEPARATOR.join(self.inputs)

    @property
    def is_composite(self) -> bool:
        return len(self.inputs) > 1

    def predict(self, x: float) -> float:
        return evaluate_power(self.a, self.b, x)


def split_key(key: str) -> Tuple[str, ...]:
    """Split a ``"+"``-joined input key into its aliases."""
    return tuple(part.strip() for part in str(key).split(KEY_SEPARATOR) if part.strip())


class ResponseSurface:
    """Collection of single-input and composite power-curve fits.

    Composite fits are looked up by input set, so ``("Sprinkler", "Door")``
    finds a fit stored as ``Door+Sprinkler``.
    """

    def __init__(self, fits: Iterable[PowerCurveFit] = ()):
        self._fits: Dict[Tuple[frozenset, str], PowerCurveFit] = {}
        for fit in fits:
            self.add(fit)

    def add(self, fit: PowerCurveFit):
        self._fits[(frozenset(fit.inputs), fit.output_alias)] = fit

    def __iter__(self):
        return iter(self._fits.values())

    def __len__(self):
        return len(self._fits)

    def __repr__(self):
        return f"ResponseSurface(single={len(self.single_fits)}, composite={len(self.composite_fits)})"

    @property
    def single_fits(self) -> List[PowerCurveFit]:
        return [f for f in self if not f.is_composite]

    @property
    def composite_fits(self) -> List[PowerCurveFit]:
        return [f for f in self if f.is_composite]

    def get(self, inputs, output_alias: str) -> Optional[PowerCurveFit]:
        """Fit for *inputs* (alias, key string or sequence) and *output_alias*."""
        if isinstance(inputs, str):
            inputs = split_key(inputs)
        return self._fits.get((frozenset(inputs), output_alias))

    def exponent(self, input_alias: str, output_alias: str) -> float:
        """Level-1 exponent ``b`` of *input_alias* against *output_alias*.

        Raises:
            MissingBaseFit: If no single-input fit exists for the pair.
        """
        fit = self.get((input_alias,), output_alias)
        if fit is None:
            raise MissingBaseFit(
                "No single-input response surface for this pair",
                input_alias=input_alias,
                output_alias=output_alias,
            )
        return fit.b


def composite_abscissa(
    surface: ResponseSurface,
    inputs: Sequence[str],
    values: Sequence[float],
    output_alias: str,
) -> float:
    """``prod(x_i ** b_i)`` over the inputs of a combined scenario.

    Raises:
        MissingBaseFit: If an input has no level-1 fit against the output.
        NonPositiveDomain: If an input value is not strictly positive.
    """
    x = 1.0
    for alias, value in zip(inputs, values):
        b = surface.exponent(alias, output_alias)
        if value <= 0:
            raise NonPositiveDomain(
                f"Input value {value} is not strictly positive", input_alias=alias, output_alias=output_alias
            )
        x *= float(np.power(value, b))
    return x


def _fit(x, y, inputs: Tuple[str, ...], output_alias: str, base: float) -> PowerCurveFit:
    try:
        result = power_fit(x, y)
    except (NonPositiveDomain, InsufficientSamples) as exc:
        raise type(exc)(str(exc), input_alias=KEY_SEPARATOR.join(inputs), output_alias=output_alias) from None
    return PowerCurveFit(
        output_alias=output_alias,
        inputs=inputs,
        a=result.a,
        b=result.b,
        r_squared=result.r_squared,
        s_squared=result.s_squared,
        output_base_value=base,
        n_samples=result.n_samples,
    )


def fit_single_input(
    records: Sequence[AnalysisRecord],
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> List[PowerCurveFit]:
    """Fit one power curve per (input, output) pair of the response-surface study.

    Args:
        records: Aggregated records; only response-surface records are used.
        max_samples: Sample buffer size per pair. Samples beyond it are
            discarded with a warning.

    Returns:
        Fits in first-seen (input, output) order.

    Raises:
        NonPositiveDomain: If a sample is not strictly positive.
        InsufficientSamples: If a pair has fewer than two distinct inputs.
    """
    samples: Dict[Tuple[str, str], List[Tuple[float, float]]] = {}
    bases: Dict[Tuple[str, str], float] = {}
    for record in records:
        if record.study != "response_surface":
            continue
        for result in record.outcomes:
            pair = (record.input_alias, result.output_alias)
            samples.setdefault(pair, []).append((record.input_new_value, result.new_value))
            bases.setdefault(pair, result.base_value)

    fits = []
    for (input_alias, output_alias), pairs in samples.items():
        if len(pairs) > max_samples:
            warnings.warn(
                f"{len(pairs)} samples for '{input_alias}' -> '{output_alias}'; "
                f"only the first {max_samples} are fitted",
                stacklevel=2,
            )
            pairs = pairs[:max_samples]
        x, y = zip(*pairs)
        fits.append(_fit(x, y, (input_alias,), output_alias, bases[(input_alias, output_alias)]))
    return fits


def fit_composite(heads: Sequence, surface: ResponseSurface) -> List[PowerCurveFit]:
    """Fit ``Y = A * X**B`` for every combined input set and output.

    Heads are grouped by their set of inputs and each group is fitted on
    its own, rather than pooling every combined head of an output into one
    curve, so scenarios varying different inputs never share a fit.

    Args:
        heads: Finalized ``CombinedRecord`` heads.
        surface: Response surface holding the level-1 fits.

    Returns:
        Composite fits keyed by the inputs of the first head of each group.
        Groups with fewer than two heads cannot be fitted and are skipped
        with a warning.

    Raises:
        MissingBaseFit: If an input of a head has no level-1 fit.
        NonPositiveDomain: If a value is not strictly positive.
    """
    groups: Dict[frozenset, list] = {}
    for head in heads:
        groups.setdefault(frozenset(head.inputs), []).append(head)

    fits = []
    for members in groups.values():
        inputs = members[0].inputs
        if len(inputs) < 2:
            warnings.warn(f"Combined scenario varies only {inputs}; no composite fit", stacklevel=2)
            continue
        for output in members[0].outcomes:
            alias = output.output_alias
            points = [
                (composite_abscissa(surface, head.inputs, head.new_values, alias), head.outcome(alias).measured)
                for head in members
                if head.outcome(alias) is not None
            ]
            if len(points) < 2:
                warnings.warn(
                    f"Only {len(points)} combined scenario(s) vary {KEY_SEPARATOR.join(inputs)}; "
                    f"no composite fit for '{alias}'",
                    stacklevel=2,
                )
                continue
            x, y = zip(*points)
            try:
                fits.append(_fit(x, y, inputs, alias, output.base_value))
            except InsufficientSamples as exc:
                warnings.warn(f"Composite fit skipped: {exc}", stacklevel=2)
    return fits


def fit_response_surface(
    records: Sequence[AnalysisRecord],
    heads: Sequence = (),
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> ResponseSurface:
    """Run both fitting levels and return the populated ``ResponseSurface``.

    Level 2 runs only when level 1 produced at least one fit.
    """
    surface = ResponseSurface(fit_single_input(records, max_samples=max_samples))
    if heads and surface.single_fits:
        for fit in fit_composite(heads, surface):
            surface.add(fit)
    return surface
