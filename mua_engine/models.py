"""Data models for measurement uncertainty and decision-risk analysis."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from mua_engine.units import PhysicalUnit, as_float

DEFAULT_CONSUMER_RISK = 0.02
MIN_CONSUMER_RISK = 1e-6
MAX_CONSUMER_RISK = 0.5


class Distribution(Enum):
    """Probability distribution a stated bound is assumed to follow."""
    UNIFORM = "uniform"
    TRIANGULAR = "triangular"
    NORMAL = "normal"


class ComponentKind(Enum):
    """GUM evaluation type of an uncertainty component."""
    A = "A"   # statistical analysis of observations
    B = "B"   # specifications, certificates, judgment


def _dof_to_json(v: float) -> Union[float, str, None]:
    if math.isnan(v):
        return None
    return "inf" if math.isinf(v) else v


def _num_to_json(v: float) -> Optional[float]:
    return None if math.isnan(v) else v


@dataclass(frozen=True)
class NominalContext:
    """Nominal value absolute-unit tolerances are made relative to.

    ``value`` is a magnitude in the base unit of ``unit``'s family (V, A,
    Hz, Ohm); ``unit`` identifies the family tolerances must belong to.
    """
    value: float
    unit: PhysicalUnit = PhysicalUnit.V

    def to_dict(self) -> dict:
        return {"value": _num_to_json(as_float(self.value)), "unit": self.unit.value}

    @classmethod
    def from_dict(cls, d: dict) -> NominalContext:
        return cls(value=as_float(d.get("value")), unit=PhysicalUnit(d.get("unit", "V")))


@dataclass(frozen=True)
class InstrumentSpec:
    """Accuracy specification of a UUT or of the reference standard (TMDE).

    Attributes:
        distribution: Distribution the bound is assumed to follow.
        bound: ± tolerance (uniform / triangular) or ± expanded
            uncertainty (normal).
        unit: Unit of ``bound``.
        coverage_factor: k the expanded uncertainty was stated at
            (normal only).
    """
    distribution: Distribution
    bound: float
    unit: PhysicalUnit = PhysicalUnit.PPM
    coverage_factor: float = 2.0

    def to_dict(self) -> dict:
        return {
            "distribution": self.distribution.value,
            "bound": _num_to_json(as_float(self.bound)),
            "unit": self.unit.value,
            "coverage_factor": _num_to_json(as_float(self.coverage_factor)),
        }

    @classmethod
    def from_dict(cls, d: dict) -> InstrumentSpec:
        return cls(
            distribution=Distribution(d.get("distribution", "uniform")),
            bound=as_float(d.get("bound")),
            unit=PhysicalUnit(d.get("unit", "ppm")),
            coverage_factor=as_float(d.get("coverage_factor", 2.0)),
        )


@dataclass(frozen=True)
class ManualComponent:
    """A user-entered uncertainty contributor before reduction to ppm.

    Type A entries carry a standard uncertainty and degrees of freedom.
    Type B entries carry a bound and distribution like an InstrumentSpec
    and always have infinite degrees of freedom.
    """
    name: str = ""
    kind: ComponentKind = ComponentKind.B
    distribution: Distribution = Distribution.UNIFORM
    bound: float = math.nan
    unit: PhysicalUnit = PhysicalUnit.PPM
    coverage_factor: float = 2.0
    standard_uncertainty: float = math.nan
    degrees_of_freedom: float = math.inf

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "distribution": self.distribution.value,
            "bound": _num_to_json(as_float(self.bound)),
            "unit": self.unit.value,
            "coverage_factor": _num_to_json(as_float(self.coverage_factor)),
            "standard_uncertainty": _num_to_json(as_float(self.standard_uncertainty)),
            "degrees_of_freedom": _dof_to_json(as_float(self.degrees_of_freedom)),
        }

    @classmethod
    def from_dict(cls, d: dict) -> ManualComponent:
        return cls(
            name=d.get("name", ""),
            kind=ComponentKind(d.get("kind", "B")),
            distribution=Distribution(d.get("distribution", "uniform")),
            bound=as_float(d.get("bound")),
            unit=PhysicalUnit(d.get("unit", "ppm")),
            coverage_factor=as_float(d.get("coverage_factor", 2.0)),
            standard_uncertainty=as_float(d.get("standard_uncertainty")),
            degrees_of_freedom=as_float(d.get("degrees_of_freedom", "inf")),
        )


@dataclass(frozen=True)
class UncertaintyComponent:
    """One row of an uncertainty budget, already reduced to ppm.

    Attributes:
        id: Stable identifier ("uut", "tmde", or a generated id).
        name: Display name.
        kind: Type A or Type B.
        standard_uncertainty_ppm: Standard uncertainty in ppm (>= 0).
        degrees_of_freedom: Degrees of freedom (> 0, or inf).
        locked: Core components derived from the UUT/TMDE definitions
            cannot be removed individually.
    """
    id: str
    name: str
    kind: ComponentKind
    standard_uncertainty_ppm: float
    degrees_of_freedom: float = math.inf
    locked: bool = False

    def __post_init__(self) -> None:
        u = self.standard_uncertainty_ppm
        if not (math.isfinite(u) and u >= 0):
            raise ValueError(f"standard uncertainty must be finite and >= 0, got {u}")
        v = self.degrees_of_freedom
        if math.isnan(v) or v <= 0:
            raise ValueError(f"degrees of freedom must be > 0 or inf, got {v}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "standard_uncertainty_ppm": self.standard_uncertainty_ppm,
            "degrees_of_freedom": _dof_to_json(self.degrees_of_freedom),
            "locked": self.locked,
        }


@dataclass(frozen=True)
class RiskAssumptions:
    """Decision-risk target driving the guard band.

    Attributes:
        target_consumer_risk: Two-sided false-accept probability target.
    """
    target_consumer_risk: float = DEFAULT_CONSUMER_RISK

    @property
    def effective_risk(self) -> float:
        """Target clamped into (0, 0.5]; NaN falls back to the default."""
        return clamp_consumer_risk(self.target_consumer_risk)


def clamp_consumer_risk(risk: float) -> float:
    risk = as_float(risk)
    if math.isnan(risk):
        return DEFAULT_CONSUMER_RISK
    return min(MAX_CONSUMER_RISK, max(MIN_CONSUMER_RISK, risk))


@dataclass
class MeasurementAnalysis:
    """A complete measurement uncertainty analysis definition.

    This is the caller-held "current analysis": the engine reads it but
    never mutates it. Use ``dataclasses.replace`` to derive updated copies.

    Attributes:
        name: Descriptive name for the analysis.
        nominal: Nominal value and unit of the measurement point.
        uut: Specification of the unit under test.
        tmde: Specification of the reference standard.
        manual_components: Additional user-entered contributors.
        use_student_t: Resolve k from the Student-t table instead of k=2.
        risk: Consumer-risk target for guard banding.
        description: Optional longer description.
    """
    name: str
    nominal: NominalContext
    uut: Optional[InstrumentSpec] = None
    tmde: Optional[InstrumentSpec] = None
    manual_components: list[ManualComponent] = field(default_factory=list)
    use_student_t: bool = False
    risk: RiskAssumptions = field(default_factory=RiskAssumptions)
    description: str = ""

    def budget(self):
        """Build the uncertainty budget for this analysis."""
        from mua_engine.budget import Budget
        return Budget.from_specs(self.nominal, self.uut, self.tmde, self.manual_components)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "nominal": self.nominal.to_dict(),
            "uut": self.uut.to_dict() if self.uut else None,
            "tmde": self.tmde.to_dict() if self.tmde else None,
            "manual_components": [m.to_dict() for m in self.manual_components],
            "use_student_t": self.use_student_t,
            "target_consumer_risk": self.risk.target_consumer_risk,
        }

    @classmethod
    def from_dict(cls, d: dict) -> MeasurementAnalysis:
        return cls(
            name=d["name"],
            description=d.get("description", ""),
            nominal=NominalContext.from_dict(d["nominal"]),
            uut=InstrumentSpec.from_dict(d["uut"]) if d.get("uut") else None,
            tmde=InstrumentSpec.from_dict(d["tmde"]) if d.get("tmde") else None,
            manual_components=[ManualComponent.from_dict(m)
                               for m in d.get("manual_components", [])],
            use_student_t=bool(d.get("use_student_t", False)),
            risk=RiskAssumptions(as_float(d.get("target_consumer_risk", DEFAULT_CONSUMER_RISK))),
        )

    def save(self, path: str) -> None:
        """Save the analysis definition to a JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> MeasurementAnalysis:
        """Load an analysis definition from a JSON file."""
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)
