"""Uncertainty budget construction and combination.

Stated bounds are converted to ppm, reduced to standard uncertainties by
their distribution, and combined by root-sum-of-squares with
Welch–Satterthwaite effective degrees of freedom.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from mua_engine.models import (
    ComponentKind, Distribution, InstrumentSpec, ManualComponent,
    NominalContext, UncertaintyComponent,
)
from mua_engine.units import as_float, convert_to_ppm

logger = logging.getLogger(__name__)

UUT_ID = "uut"
TMDE_ID = "tmde"
UUT_NAME = "UUT"
TMDE_NAME = "Standard Instrument (TMDE)"
DEFAULT_MANUAL_NAME = "Custom"

_SQRT3 = math.sqrt(3.0)
_SQRT6 = math.sqrt(6.0)


# ---------------------------------------------------------------------------
# Distribution reduction
# ---------------------------------------------------------------------------

def standard_uncertainty(
    distribution: Distribution,
    bound: float,
    coverage_factor: float = 2.0,
) -> float:
    """Reduce a stated ± bound to a standard uncertainty.

    Uniform divides by √3, triangular by √6, and normal (an expanded
    uncertainty) by its coverage factor.

    Returns:
        The standard uncertainty, or NaN if the bound is not a positive
        finite number or a normal bound has no usable coverage factor.
    """
    bound = as_float(bound)
    if not math.isfinite(bound) or bound <= 0:
        return math.nan
    if distribution == Distribution.UNIFORM:
        return bound / _SQRT3
    if distribution == Distribution.TRIANGULAR:
        return bound / _SQRT6
    if distribution == Distribution.NORMAL:
        k = as_float(coverage_factor)
        if not math.isfinite(k) or k <= 0:
            return math.nan
        return bound / k
    raise ValueError(f"Unknown distribution: {distribution}")


def bound_ppm(spec: InstrumentSpec, nominal: NominalContext) -> float:
    """The spec's ± bound expressed in ppm of the nominal."""
    return convert_to_ppm(spec.bound, spec.unit, nominal.value, nominal.unit)


def _positive(u: float) -> bool:
    return math.isfinite(u) and u > 0


def _core_component(
    spec: Optional[InstrumentSpec],
    nominal: NominalContext,
    component_id: str,
    name: str,
) -> Optional[UncertaintyComponent]:
    if spec is None:
        return None
    u = standard_uncertainty(spec.distribution, bound_ppm(spec, nominal), spec.coverage_factor)
    if not _positive(u):
        logger.debug("%s excluded from budget: no valid standard uncertainty from %r",
                     name, spec)
        return None
    return UncertaintyComponent(
        id=component_id,
        name=name,
        kind=ComponentKind.B,
        standard_uncertainty_ppm=u,
        degrees_of_freedom=math.inf,
        locked=True,
    )


def uut_component(
    spec: Optional[InstrumentSpec], nominal: NominalContext,
) -> Optional[UncertaintyComponent]:
    """Type B component from the UUT tolerance, None if it yields no value."""
    return _core_component(spec, nominal, UUT_ID, UUT_NAME)


def tmde_component(
    spec: Optional[InstrumentSpec], nominal: NominalContext,
) -> Optional[UncertaintyComponent]:
    """Type B component from the reference standard, None if it yields no value."""
    return _core_component(spec, nominal, TMDE_ID, TMDE_NAME)


def manual_component(
    entry: ManualComponent,
    nominal: NominalContext,
    component_id: str,
) -> Optional[UncertaintyComponent]:
    """Reduce a user-entered contributor to a budget component.

    Type A entries use their standard uncertainty directly and keep their
    degrees of freedom. Type B entries are reduced like an instrument spec
    and carry infinite degrees of freedom.

    Returns:
        The component, or None when the entry is incomplete or degenerate.
    """
    name = entry.name or DEFAULT_MANUAL_NAME

    if entry.kind == ComponentKind.A:
        dof = as_float(entry.degrees_of_freedom)
        if math.isnan(dof) or dof <= 0:
            logger.debug("%s excluded from budget: invalid degrees of freedom %r",
                         name, entry.degrees_of_freedom)
            return None
        u = convert_to_ppm(entry.standard_uncertainty, entry.unit, nominal.value, nominal.unit)
    else:
        dof = math.inf
        u = standard_uncertainty(
            entry.distribution,
            convert_to_ppm(entry.bound, entry.unit, nominal.value, nominal.unit),
            entry.coverage_factor,
        )

    if not _positive(u):
        logger.debug("%s excluded from budget: no valid standard uncertainty", name)
        return None

    return UncertaintyComponent(
        id=component_id,
        name=name,
        kind=entry.kind,
        standard_uncertainty_ppm=u,
        degrees_of_freedom=dof,
    )


# ---------------------------------------------------------------------------
# Budget collection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Budget:
    """Ordered, immutable collection of uncertainty components.

    Order only matters for display. Every update returns a new Budget.
    """
    components: tuple[UncertaintyComponent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", tuple(self.components))

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self):
        return iter(self.components)

    @property
    def core(self) -> tuple[UncertaintyComponent, ...]:
        return tuple(c for c in self.components if c.locked)

    @property
    def manual(self) -> tuple[UncertaintyComponent, ...]:
        return tuple(c for c in self.components if not c.locked)

    def get(self, component_id: str) -> Optional[UncertaintyComponent]:
        return next((c for c in self.components if c.id == component_id), None)

    def with_component(self, component: UncertaintyComponent) -> Budget:
        """Return a new budget with ``component`` appended."""
        if self.get(component.id) is not None:
            raise ValueError(f"Duplicate component id: {component.id!r}")
        return Budget(self.components + (component,))

    def without(self, component_id: str) -> Budget:
        """Return a new budget with the component removed.

        Locked core components are kept; they go away only when their
        defining spec stops yielding a value (see ``with_core``).
        """
        return Budget(tuple(c for c in self.components
                            if c.id != component_id or c.locked))

    def with_core(self, *core: Optional[UncertaintyComponent]) -> Budget:
        """Replace the core components, keeping manual ones in order.

        Absent (None) core components are simply left out.
        """
        new_core = tuple(c for c in core if c is not None)
        return Budget(new_core + self.manual)

    @classmethod
    def from_specs(
        cls,
        nominal: NominalContext,
        uut: Optional[InstrumentSpec] = None,
        tmde: Optional[InstrumentSpec] = None,
        manual: Iterable[ManualComponent] = (),
    ) -> Budget:
        """Build the budget for a UUT/TMDE pair plus manual entries."""
        components = []
        for c in (uut_component(uut, nominal), tmde_component(tmde, nominal)):
            if c is not None:
                components.append(c)
        for i, entry in enumerate(manual, start=1):
            c = manual_component(entry, nominal, f"manual-{i}")
            if c is not None:
                components.append(c)
        return cls(tuple(components))


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------

def combined_standard_uncertainty(components: Iterable[UncertaintyComponent]) -> float:
    """Root-sum-of-squares of the component standard uncertainties."""
    u = np.array([c.standard_uncertainty_ppm for c in components], dtype=float)
    return float(np.sqrt(np.sum(u ** 2)))


def effective_degrees_of_freedom(
    components: Iterable[UncertaintyComponent],
    uc: Optional[float] = None,
) -> float:
    """Welch–Satterthwaite effective degrees of freedom.

    veff = uc^4 / sum(u_i^4 / v_i), summed over finite v_i only.

    Returns:
        inf when no component has finite degrees of freedom, NaN when
        uc is zero (empty or all-zero budget).
    """
    components = list(components)
    if uc is None:
        uc = combined_standard_uncertainty(components)
    if uc == 0:
        return math.nan

    finite = [c for c in components if math.isfinite(c.degrees_of_freedom)]
    if not finite:
        return math.inf
    u = np.array([c.standard_uncertainty_ppm for c in finite], dtype=float)
    v = np.array([c.degrees_of_freedom for c in finite], dtype=float)
    denom = float(np.sum(u ** 4 / v))
    if denom == 0:
        return math.inf
    return uc ** 4 / denom


def combine(components: Iterable[UncertaintyComponent]) -> tuple[float, float]:
    """Combine a budget into (uc, veff)."""
    components = list(components)
    uc = combined_standard_uncertainty(components)
    return uc, effective_degrees_of_freedom(components, uc)
