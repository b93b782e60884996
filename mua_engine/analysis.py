"""Budget evaluation: expanded uncertainty, TUR/TAR, guard band and risk.

Risk model
----------
PFA and PFR are evaluated with the measurement centered on the acceptance
boundary and no process (a priori) distribution:

    pfa = 2 * (1 - Φ(A / uc))
    pfr = max(0, 2 * (Φ((T - A) / uc) - 0.5))

where T is the UUT tolerance and A the guard-banded acceptance limit. These
are boundary approximations, not integrals over a prior; they are kept in
this form so results stay comparable with existing analyses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from mua_engine.budget import Budget, bound_ppm, combine
from mua_engine.models import (
    InstrumentSpec, MeasurementAnalysis, NominalContext, RiskAssumptions,
    UncertaintyComponent, clamp_consumer_risk,
)
from mua_engine.statistics import coverage_factor, norm_cdf, norm_ppf, percent_contribution

_FLOAT_FIELDS = (
    "uc", "veff", "k", "expanded_uncertainty", "tur", "tar", "z",
    "guard_band", "tolerance_ppm", "acceptance_limit", "pfa", "pfr",
)


def _fmt(value: float, spec: str = ".4f") -> str:
    if math.isnan(value):
        return "—"
    if math.isinf(value):
        return "∞"
    return format(value, spec)


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------

def tolerance_span(bound_in_ppm: float) -> float:
    """Full width of a ± bound (2 × bound); NaN stays NaN."""
    return 2.0 * bound_in_ppm


def compute_tur(uut_span: float, expanded_uncertainty: float) -> float:
    """TUR = UUT tolerance span / U, NaN unless U > 0 and the span is finite."""
    if not math.isfinite(uut_span) or not (math.isfinite(expanded_uncertainty)
                                           and expanded_uncertainty > 0):
        return math.nan
    return uut_span / expanded_uncertainty


def compute_tar(uut_span: float, tmde_span: float) -> float:
    """TAR = UUT tolerance span / TMDE tolerance span."""
    if not (math.isfinite(uut_span) and math.isfinite(tmde_span)) or tmde_span <= 0:
        return math.nan
    return uut_span / tmde_span


# ---------------------------------------------------------------------------
# Guard banding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GuardBand:
    """Guard band and decision risks for a symmetric ± tolerance.

    Attributes:
        target_consumer_risk: Risk target actually used (after clamping).
        z: Standard normal quantile for the one-sided risk.
        guard_band: g = z × uc, in ppm.
        acceptance_limit: ± acceptance limit max(0, T - g), in ppm.
        pfa: Probability of false accept (centered boundary model).
        pfr: Probability of false reject (centered boundary model).
    """
    target_consumer_risk: float
    z: float
    guard_band: float
    acceptance_limit: float
    pfa: float
    pfr: float


def guard_band(tolerance_ppm: float, uc: float, target_consumer_risk: float) -> GuardBand:
    """Derive guard-banded acceptance limits from a consumer-risk target.

    The two-sided risk target is split equally between both tails.

    Args:
        tolerance_ppm: UUT ± tolerance in ppm.
        uc: Combined standard uncertainty in ppm.
        target_consumer_risk: Two-sided false-accept target; clamped into
            (0, 0.5].

    Returns:
        GuardBand with NaN for any figure its inputs cannot support.
    """
    risk = clamp_consumer_risk(target_consumer_risk)
    z = norm_ppf(1.0 - risk / 2.0)
    g = z * uc

    if math.isfinite(tolerance_ppm) and math.isfinite(g):
        acc = max(0.0, tolerance_ppm - g)
    else:
        acc = math.nan

    if math.isfinite(acc) and uc > 0:
        pfa = 2.0 * (1.0 - norm_cdf(acc / uc))
        pfr = max(0.0, 2.0 * (norm_cdf((tolerance_ppm - acc) / uc) - 0.5))
    else:
        pfa = math.nan
        pfr = math.nan

    return GuardBand(
        target_consumer_risk=risk,
        z=z,
        guard_band=g,
        acceptance_limit=acc,
        pfa=pfa,
        pfr=pfr,
    )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetResult:
    """Everything derived from one budget evaluation.

    All values are in ppm except the ratios, k, z and the probabilities.
    NaN marks a value that the inputs do not define.

    Attributes:
        uc: Combined standard uncertainty.
        veff: Effective degrees of freedom (inf if all Type B).
        k: Coverage factor.
        expanded_uncertainty: U = k × uc.
        tur: Test uncertainty ratio.
        tar: Test acceptance ratio.
        z: Normal quantile used for the guard band.
        guard_band: g = z × uc.
        tolerance_ppm: UUT ± tolerance.
        acceptance_limit: Guard-banded ± acceptance limit.
        pfa: Probability of false accept.
        pfr: Probability of false reject.
        use_student_t: Whether k came from the Student-t table.
        target_consumer_risk: Risk target used (after clamping).
        components: The budget the result was computed from.
    """
    uc: float
    veff: float
    k: float
    expanded_uncertainty: float
    tur: float = math.nan
    tar: float = math.nan
    z: float = math.nan
    guard_band: float = math.nan
    tolerance_ppm: float = math.nan
    acceptance_limit: float = math.nan
    pfa: float = math.nan
    pfr: float = math.nan
    use_student_t: bool = False
    target_consumer_risk: float = math.nan
    components: tuple[UncertaintyComponent, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.components

    def is_available(self, name: str) -> bool:
        """True if the named value is defined (not NaN)."""
        if name not in _FLOAT_FIELDS:
            raise KeyError(name)
        return not math.isnan(getattr(self, name))

    @property
    def contributions(self) -> list[tuple[str, float]]:
        """Percent of uc² contributed by each component, largest first."""
        return percent_contribution(
            [(c.name, c.standard_uncertainty_ppm) for c in self.components])

    def summary(self) -> str:
        lines = [
            "=== Uncertainty Budget ===",
        ]
        for c in self.components:
            lines.append(f"  {c.name:30s}  Type {c.kind.value}  "
                         f"u = {c.standard_uncertainty_ppm:10.4f} ppm  "
                         f"v = {_fmt(c.degrees_of_freedom, 'g')}")
        if not self.components:
            lines.append("  (no components)")
        lines += [
            f"  Combined (uc):    {_fmt(self.uc)} ppm",
            f"  Effective DoF:    {_fmt(self.veff, '.2f')}",
            f"  Coverage k:       {_fmt(self.k, '.3f')}"
            f"{' (Student-t)' if self.use_student_t else ''}",
            f"  Expanded U:       ±{_fmt(self.expanded_uncertainty, '.3f')} ppm",
            "=== Ratios ===",
            f"  TUR:              {_fmt(self.tur, '.2f')} : 1",
            f"  TAR:              {_fmt(self.tar, '.2f')} : 1",
            "=== Guard Band & Risk ===",
            f"  Target risk:      {_fmt(self.target_consumer_risk, '.4g')}",
            f"  z:                {_fmt(self.z, '.4f')}",
            f"  Guard band (g):   {_fmt(self.guard_band, '.2f')} ppm",
            f"  UUT tolerance:    ±{_fmt(self.tolerance_ppm, '.2f')} ppm",
            f"  Acceptance limit: ±{_fmt(self.acceptance_limit, '.2f')} ppm",
            f"  PFA:              {_fmt(self.pfa * 100.0, '.2f')}%",
            f"  PFR:              {_fmt(self.pfr * 100.0, '.2f')}%",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """JSON-friendly view: NaN becomes None, inf becomes "inf"."""
        d = {}
        for name in _FLOAT_FIELDS:
            v = getattr(self, name)
            d[name] = None if math.isnan(v) else ("inf" if math.isinf(v) else v)
        d["use_student_t"] = self.use_student_t
        d["target_consumer_risk"] = self.target_consumer_risk
        d["components"] = [c.to_dict() for c in self.components]
        return d


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _tolerance_ppm(spec: Optional[InstrumentSpec], nominal: NominalContext) -> float:
    """A spec's ± bound in ppm, NaN unless it is a positive finite number."""
    if spec is None:
        return math.nan
    tol = bound_ppm(spec, nominal)
    if not (math.isfinite(tol) and tol > 0):
        return math.nan
    return tol


def compute_budget_result(
    budget: Budget,
    risk: RiskAssumptions,
    use_student_t: bool,
    nominal: NominalContext,
    uut: Optional[InstrumentSpec] = None,
    tmde: Optional[InstrumentSpec] = None,
) -> BudgetResult:
    """Evaluate an uncertainty budget.

    Pure function of its inputs: call it again after any change to the
    budget, the risk target, the coverage-factor mode or the specs.

    Args:
        budget: Components in effect.
        risk: Consumer-risk target for the guard band.
        use_student_t: Take k from the Student-t table instead of k=2.
        nominal: Nominal context for converting the spec bounds to ppm.
        uut: UUT specification (tolerance span for TUR/TAR and guard band).
        tmde: Reference standard specification (span for TAR).

    Returns:
        BudgetResult; fields the inputs cannot define are NaN.
    """
    components = tuple(budget)
    uc, veff = combine(components)
    k = coverage_factor(veff, use_student_t)
    expanded = k * uc

    uut_tol = _tolerance_ppm(uut, nominal)
    tmde_tol = _tolerance_ppm(tmde, nominal)
    uut_span = tolerance_span(uut_tol)
    tmde_span = tolerance_span(tmde_tol)

    gb = guard_band(uut_tol, uc, risk.target_consumer_risk)

    return BudgetResult(
        uc=uc,
        veff=veff,
        k=k,
        expanded_uncertainty=expanded,
        tur=compute_tur(uut_span, expanded),
        tar=compute_tar(uut_span, tmde_span),
        z=gb.z,
        guard_band=gb.guard_band,
        tolerance_ppm=uut_tol,
        acceptance_limit=gb.acceptance_limit,
        pfa=gb.pfa,
        pfr=gb.pfr,
        use_student_t=use_student_t,
        target_consumer_risk=gb.target_consumer_risk,
        components=components,
    )


def analyze(
    analysis: MeasurementAnalysis,
    use_student_t: Optional[bool] = None,
    target_consumer_risk: Optional[float] = None,
) -> BudgetResult:
    """Build the budget for an analysis definition and evaluate it.

    Args:
        analysis: The analysis definition.
        use_student_t: Override the definition's coverage-factor mode.
        target_consumer_risk: Override the definition's risk target.
    """
    risk = analysis.risk
    if target_consumer_risk is not None:
        risk = RiskAssumptions(target_consumer_risk)
    if use_student_t is None:
        use_student_t = analysis.use_student_t

    return compute_budget_result(
        analysis.budget(),
        risk,
        use_student_t,
        analysis.nominal,
        uut=analysis.uut,
        tmde=analysis.tmde,
    )
