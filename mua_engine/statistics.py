"""Normal-distribution primitives, coverage factors and contribution analysis.

The normal CDF and quantile use closed-form rational approximations
(Abramowitz & Stegun 7.1.26, Acklam) so results are reproducible without a
numerical library in the loop.
"""

from __future__ import annotations

import math

import numpy as np

_SQRT2 = math.sqrt(2.0)

# Abramowitz & Stegun 7.1.26, |error| <= 1.5e-7
_AS_P = 0.3275911
_AS_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)

# Acklam's inverse normal coefficients
_ACKLAM_A = (-3.969683028665376e+01, 2.209460984245205e+02, -2.759285104469687e+02,
             1.383577518672690e+02, -3.066479806614716e+01, 2.506628277459239e+00)
_ACKLAM_B = (-5.447609879822406e+01, 1.615858368580409e+02, -1.556989798598866e+02,
             6.680131188771972e+01, -1.328068155288572e+01)
_ACKLAM_C = (-7.784894002430293e-03, -3.223964580411365e-01, -2.400758277161838e+00,
             -2.549732539343734e+00, 4.374664141464968e+00, 2.938163982698783e+00)
_ACKLAM_D = (7.784695709041462e-03, 3.224671290700398e-01, 2.445134137142996e+00,
             3.754408661907416e+00)
_P_LOW = 0.02425
_P_HIGH = 1.0 - _P_LOW

# Two-sided 95 % Student-t critical values, sorted by degrees of freedom.
T_TABLE_95: tuple[tuple[int, float], ...] = (
    (1, 12.71), (2, 4.30), (3, 3.18), (4, 2.78), (5, 2.57),
    (6, 2.45), (7, 2.36), (8, 2.31), (9, 2.26), (10, 2.23),
    (15, 2.13), (20, 2.09), (25, 2.06), (30, 2.04), (40, 2.02),
    (50, 2.01), (60, 2.00), (100, 1.98), (120, 1.98),
)
_T_DOF = np.array([v for v, _ in T_TABLE_95], dtype=float)
_T_K = np.array([k for _, k in T_TABLE_95], dtype=float)

K_NORMAL_95 = 1.96
K_FIXED = 2.0


def erf(x: float) -> float:
    """Error function, Abramowitz & Stegun 5-term rational approximation."""
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _AS_P * x)
    a1, a2, a3, a4, a5 = _AS_A
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def norm_cdf(x: float) -> float:
    """Standard normal cumulative distribution function."""
    return 0.5 * (1.0 + erf(x / _SQRT2))


def norm_ppf(p: float) -> float:
    """Standard normal quantile (inverse CDF).

    Acklam's rational approximation refined with one Halley step.

    Returns:
        z such that norm_cdf(z) == p, or NaN when p is outside (0, 1).
    """
    if not (0.0 < p < 1.0):
        return math.nan

    a, b, c, d = _ACKLAM_A, _ACKLAM_B, _ACKLAM_C, _ACKLAM_D
    if p < _P_LOW:
        q = math.sqrt(-2.0 * math.log(p))
        x = (((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) / \
            ((((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0)
    elif p > _P_HIGH:
        q = math.sqrt(-2.0 * math.log(1.0 - p))
        x = -(((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) / \
            ((((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0)
    else:
        q = p - 0.5
        r = q * q
        x = (((((a[0] * r + a[1]) * r + a[2]) * r + a[3]) * r + a[4]) * r + a[5]) * q / \
            (((((b[0] * r + b[1]) * r + b[2]) * r + b[3]) * r + b[4]) * r + 1.0)

    # Halley refinement
    e = norm_cdf(x) - p
    u = e * math.sqrt(2.0 * math.pi) * math.exp(x * x / 2.0)
    return x - u / (1.0 + x * u / 2.0)


def coverage_factor(veff: float, use_student_t: bool) -> float:
    """Resolve the coverage factor k for a 95 % coverage interval.

    Args:
        veff: Effective degrees of freedom (may be inf or NaN).
        use_student_t: If False, k is fixed at 2.

    Returns:
        k from the Student-t table, linearly interpolated between
        bracketing entries. Non-finite veff or veff beyond the table
        falls back to the normal limit 1.96.
    """
    if not use_student_t:
        return K_FIXED
    if not math.isfinite(veff) or veff > _T_DOF[-1]:
        return K_NORMAL_95
    # round half up, then pin to the first table row
    dof = max(math.floor(veff + 0.5), _T_DOF[0])
    return float(np.interp(dof, _T_DOF, _T_K))


def percent_contribution(
    uncertainties: list[tuple[str, float]],
) -> list[tuple[str, float]]:
    """Compute each component's share of the combined variance.

    contribution_i = u_i^2 / sum(u^2) * 100.

    Args:
        uncertainties: List of (name, standard_uncertainty) tuples.

    Returns:
        List of (name, percent_contribution) sorted by contribution descending.
    """
    variances = [(name, u ** 2) for name, u in uncertainties]

    total_var = sum(v for _, v in variances)
    if total_var < 1e-30:
        return [(name, 0.0) for name, _ in variances]

    pcts = [(name, (v / total_var) * 100.0) for name, v in variances]
    return sorted(pcts, key=lambda x: x[1], reverse=True)
