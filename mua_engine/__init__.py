"""Measurement Uncertainty & Decision Risk Engine.

Builds a calibration uncertainty budget from a unit-under-test
specification, a reference standard (TMDE) and manual contributors, then
computes:
- Combined standard uncertainty (RSS) and Welch–Satterthwaite veff
- Coverage factor (Student-t 95 % table or k=2) and expanded uncertainty
- Test uncertainty ratio (TUR) and test acceptance ratio (TAR)
- Guard-banded acceptance limits from a consumer-risk target, with
  PFA/PFR estimates

Also provides JSON analysis files, text/HTML reports, matplotlib charts
and the ``mua`` command line tool.
"""

from mua_engine.units import PhysicalUnit, UnitFamily, convert_to_ppm
from mua_engine.models import (
    ComponentKind, Distribution, InstrumentSpec, ManualComponent,
    MeasurementAnalysis, NominalContext, RiskAssumptions, UncertaintyComponent,
)
from mua_engine.statistics import (
    coverage_factor, erf, norm_cdf, norm_ppf, percent_contribution,
)
from mua_engine.budget import (
    Budget, combine, manual_component, standard_uncertainty,
    tmde_component, uut_component,
)
from mua_engine.analysis import (
    BudgetResult, GuardBand, analyze, compute_budget_result,
    compute_tar, compute_tur, guard_band, tolerance_span,
)
from mua_engine.reporting import (
    ReportConfig, generate_html_report, generate_text_report, save_report,
)

__all__ = [
    # Units
    "PhysicalUnit", "UnitFamily", "convert_to_ppm",
    # Models
    "ComponentKind", "Distribution", "InstrumentSpec", "ManualComponent",
    "MeasurementAnalysis", "NominalContext", "RiskAssumptions",
    "UncertaintyComponent",
    # Statistics
    "coverage_factor", "erf", "norm_cdf", "norm_ppf", "percent_contribution",
    # Budget
    "Budget", "combine", "manual_component", "standard_uncertainty",
    "tmde_component", "uut_component",
    # Evaluation
    "BudgetResult", "GuardBand", "analyze", "compute_budget_result",
    "compute_tar", "compute_tur", "guard_band", "tolerance_span",
    # Reporting
    "ReportConfig", "generate_html_report", "generate_text_report", "save_report",
]
__version__ = "0.1.0"
