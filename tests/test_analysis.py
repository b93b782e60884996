"""Tests for budget evaluation: ratios, guard banding and end-to-end results."""

import math

import pytest
from scipy import stats

from mua_engine.analysis import (
    BudgetResult,
    analyze,
    compute_budget_result,
    compute_tar,
    compute_tur,
    guard_band,
    tolerance_span,
)
from mua_engine.budget import Budget
from mua_engine.examples import create_dc_voltage_example, create_frequency_example
from mua_engine.models import (
    ComponentKind, Distribution, InstrumentSpec, ManualComponent,
    NominalContext, RiskAssumptions, UncertaintyComponent,
)
from mua_engine.units import PhysicalUnit

NOMINAL_10V = NominalContext(10.0, PhysicalUnit.V)
UUT_100 = InstrumentSpec(Distribution.UNIFORM, 100.0, PhysicalUnit.PPM)
TMDE_50 = InstrumentSpec(Distribution.NORMAL, 50.0, PhysicalUnit.PPM, 2.0)


def _evaluate(budget, use_student_t=False, risk=0.02, uut=UUT_100, tmde=TMDE_50):
    return compute_budget_result(budget, RiskAssumptions(risk), use_student_t,
                                 NOMINAL_10V, uut=uut, tmde=tmde)


class TestRatios:
    def test_tolerance_span(self):
        assert tolerance_span(100.0) == 200.0
        assert math.isnan(tolerance_span(math.nan))

    def test_tur(self):
        assert compute_tur(200.0, 50.0) == pytest.approx(4.0)

    def test_tur_undefined(self):
        assert math.isnan(compute_tur(200.0, 0.0))
        assert math.isnan(compute_tur(math.nan, 50.0))
        assert math.isnan(compute_tur(200.0, math.nan))

    def test_tar(self):
        assert compute_tar(200.0, 100.0) == pytest.approx(2.0)

    def test_tar_undefined(self):
        assert math.isnan(compute_tar(200.0, 0.0))
        assert math.isnan(compute_tar(math.nan, 100.0))
        assert math.isnan(compute_tar(200.0, math.inf))


class TestGuardBand:
    def test_basic(self):
        gb = guard_band(100.0, 10.0, 0.02)
        z = stats.norm.ppf(0.99)
        assert gb.z == pytest.approx(z, abs=1e-5)
        assert gb.guard_band == pytest.approx(10.0 * z, abs=1e-4)
        assert gb.acceptance_limit == pytest.approx(100.0 - 10.0 * z, abs=1e-4)

    def test_pfa_pfr_against_reference(self):
        gb = guard_band(100.0, 10.0, 0.02)
        acc = gb.acceptance_limit
        assert gb.pfa == pytest.approx(2 * stats.norm.sf(acc / 10.0), abs=1e-6)
        assert gb.pfr == pytest.approx(2 * (stats.norm.cdf((100.0 - acc) / 10.0) - 0.5), abs=1e-6)

    def test_pfr_matches_confidence_when_unclamped(self):
        # pfr = 2Φ(z) - 1 = 1 - risk when the acceptance limit is positive
        gb = guard_band(100.0, 10.0, 0.05)
        assert gb.pfr == pytest.approx(0.95, abs=1e-6)

    def test_acceptance_clamped_at_zero(self):
        gb = guard_band(10.0, 50.0, 0.02)
        assert gb.acceptance_limit == 0.0
        assert gb.pfa == pytest.approx(1.0, abs=1e-6)

    def test_monotone_in_risk(self):
        risks = [0.005, 0.01, 0.02, 0.05, 0.1, 0.3]
        bands = [guard_band(30.0, 10.0, r) for r in risks]
        for lo, hi in zip(bands, bands[1:]):
            assert hi.z < lo.z
            assert hi.guard_band < lo.guard_band
            assert hi.acceptance_limit > lo.acceptance_limit
            assert hi.pfa < lo.pfa

    @pytest.mark.parametrize("risk,expected", [(0.0, 1e-6), (-0.5, 1e-6), (0.9, 0.5), (math.nan, 0.02)])
    def test_risk_clamped(self, risk, expected):
        gb = guard_band(100.0, 10.0, risk)
        assert gb.target_consumer_risk == pytest.approx(expected)
        assert math.isfinite(gb.z)

    def test_zero_uc(self):
        gb = guard_band(100.0, 0.0, 0.02)
        assert gb.guard_band == 0.0
        assert gb.acceptance_limit == 100.0
        assert math.isnan(gb.pfa)
        assert math.isnan(gb.pfr)

    def test_unknown_tolerance(self):
        gb = guard_band(math.nan, 10.0, 0.02)
        assert math.isnan(gb.acceptance_limit)
        assert math.isnan(gb.pfa)
        assert math.isfinite(gb.guard_band)


class TestComputeBudgetResult:
    def test_end_to_end_scenario(self):
        budget = Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50)
        r = _evaluate(budget)
        u_uut, u_tmde = (c.standard_uncertainty_ppm for c in r.components)
        assert u_uut == pytest.approx(100 / math.sqrt(3))
        assert u_tmde == pytest.approx(25.0)
        assert r.uc == pytest.approx(62.9153, abs=1e-3)
        assert math.isinf(r.veff)
        assert r.k == 2.0
        assert r.expanded_uncertainty == pytest.approx(125.8306, abs=1e-3)
        assert r.tur == pytest.approx(1.589, abs=1e-3)
        assert r.tar == pytest.approx(2.0)
        assert r.tolerance_ppm == 100.0

    def test_end_to_end_guard_band(self):
        r = _evaluate(Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50))
        # g = 2.326 * 62.9 exceeds the 100 ppm tolerance
        assert r.guard_band == pytest.approx(stats.norm.ppf(0.99) * r.uc, abs=1e-3)
        assert r.acceptance_limit == 0.0
        assert r.pfa == pytest.approx(1.0, abs=1e-6)
        assert r.pfr == pytest.approx(2 * stats.norm.cdf(100.0 / r.uc) - 1, abs=1e-6)

    def test_student_t_with_infinite_dof(self):
        r = _evaluate(Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50), use_student_t=True)
        assert math.isinf(r.veff)
        assert r.k == 1.96

    def test_single_component_dof_10(self):
        comp = UncertaintyComponent(id="a", name="Repeatability", kind=ComponentKind.A,
                                    standard_uncertainty_ppm=4.0, degrees_of_freedom=10)
        r = _evaluate(Budget((comp,)), use_student_t=True)
        assert r.veff == pytest.approx(10.0)
        assert r.k == pytest.approx(2.23)

    def test_single_component_dof_12(self):
        comp = UncertaintyComponent(id="a", name="Repeatability", kind=ComponentKind.A,
                                    standard_uncertainty_ppm=4.0, degrees_of_freedom=12)
        r = _evaluate(Budget((comp,)), use_student_t=True)
        assert 2.13 < r.k < 2.23

    def test_fixed_k_ignores_veff(self):
        comp = UncertaintyComponent(id="a", name="Repeatability", kind=ComponentKind.A,
                                    standard_uncertainty_ppm=4.0, degrees_of_freedom=3)
        r = _evaluate(Budget((comp,)), use_student_t=False)
        assert r.veff == pytest.approx(3.0)
        assert r.k == 2.0

    def test_empty_budget(self):
        r = _evaluate(Budget(), use_student_t=True)
        assert r.is_empty
        assert r.uc == 0.0
        assert math.isnan(r.veff)
        assert r.k == 1.96
        assert r.expanded_uncertainty == 0.0
        assert math.isnan(r.tur)
        assert math.isnan(r.pfa)

    def test_empty_budget_fixed_k(self):
        r = _evaluate(Budget(), use_student_t=False)
        assert r.k == 2.0

    def test_unit_mismatch_scenario(self):
        uut = InstrumentSpec(Distribution.UNIFORM, 5.0, PhysicalUnit.HZ)
        budget = Budget.from_specs(NOMINAL_10V, uut, TMDE_50)
        r = _evaluate(budget, uut=uut)
        assert [c.id for c in r.components] == ["tmde"]
        assert r.uc == pytest.approx(25.0)
        assert math.isnan(r.tolerance_ppm)
        assert math.isnan(r.tur)
        assert math.isnan(r.tar)
        assert math.isnan(r.acceptance_limit)
        # the rest of the result is still computed
        assert r.expanded_uncertainty == pytest.approx(50.0)
        assert math.isfinite(r.guard_band)

    @pytest.mark.parametrize("bound", [0.0, -100.0])
    def test_invalid_uut_bound(self, bound):
        uut = InstrumentSpec(Distribution.UNIFORM, bound, PhysicalUnit.PPM)
        r = _evaluate(Budget.from_specs(NOMINAL_10V, uut, TMDE_50), uut=uut)
        assert [c.id for c in r.components] == ["tmde"]
        assert math.isnan(r.tolerance_ppm)
        assert math.isnan(r.tur)
        assert math.isnan(r.tar)
        assert math.isnan(r.acceptance_limit)
        assert math.isnan(r.pfa)
        assert math.isnan(r.pfr)

    @pytest.mark.parametrize("bound", [0.0, -100.0])
    def test_invalid_tmde_bound(self, bound):
        tmde = InstrumentSpec(Distribution.NORMAL, bound, PhysicalUnit.PPM, 2.0)
        r = _evaluate(Budget.from_specs(NOMINAL_10V, UUT_100, tmde), tmde=tmde)
        assert math.isnan(r.tar)
        assert r.tolerance_ppm == 100.0
        assert math.isfinite(r.tur)

    def test_empty_budget_with_uut(self):
        r = _evaluate(Budget())
        assert r.guard_band == 0.0
        assert r.acceptance_limit == 100.0
        assert math.isnan(r.pfa)
        assert math.isnan(r.pfr)

    def test_without_specs(self):
        comp = UncertaintyComponent(id="a", name="a", kind=ComponentKind.B,
                                    standard_uncertainty_ppm=4.0)
        r = compute_budget_result(Budget((comp,)), RiskAssumptions(), False, NOMINAL_10V)
        assert r.uc == pytest.approx(4.0)
        assert math.isnan(r.tur)
        assert math.isnan(r.tar)

    def test_monotone_in_component(self):
        base = Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50)
        previous = _evaluate(base)
        for u in (1.0, 5.0, 20.0, 80.0):
            comp = UncertaintyComponent(id="extra", name="extra", kind=ComponentKind.B,
                                        standard_uncertainty_ppm=u)
            r = _evaluate(base.with_component(comp))
            assert r.uc > previous.uc
            assert r.tur <= previous.tur
            previous = r

    def test_budget_not_mutated(self):
        budget = Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50)
        before = budget.components
        _evaluate(budget)
        assert budget.components is before

    def test_deterministic(self):
        budget = Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50)
        assert _evaluate(budget).to_dict() == _evaluate(budget).to_dict()


class TestBudgetResult:
    def _result(self) -> BudgetResult:
        return _evaluate(Budget.from_specs(NOMINAL_10V, UUT_100, TMDE_50))

    def test_summary(self):
        s = self._result().summary()
        assert "UUT" in s
        assert "Standard Instrument (TMDE)" in s
        assert "TUR:" in s
        assert "PFA:" in s
        assert "∞" in s

    def test_summary_unavailable_values(self):
        s = _evaluate(Budget(), uut=None, tmde=None).summary()
        assert "(no components)" in s
        assert "—" in s

    def test_is_available(self):
        r = _evaluate(Budget.from_specs(NOMINAL_10V, UUT_100, None), tmde=None)
        assert r.is_available("tur")
        assert not r.is_available("tar")
        with pytest.raises(KeyError):
            r.is_available("bogus")

    def test_contributions(self):
        pcts = dict(self._result().contributions)
        assert pcts["UUT"] == pytest.approx(84.21, abs=0.01)
        assert pcts["Standard Instrument (TMDE)"] == pytest.approx(15.79, abs=0.01)

    def test_to_dict(self):
        d = self._result().to_dict()
        assert d["veff"] == "inf"
        assert d["k"] == 2.0
        assert len(d["components"]) == 2
        d_empty = _evaluate(Budget(), uut=None, tmde=None).to_dict()
        assert d_empty["veff"] is None
        assert d_empty["tur"] is None


class TestAnalyze:
    def test_dc_voltage_example(self):
        r = analyze(create_dc_voltage_example())
        assert r.uc == pytest.approx(62.9153, abs=1e-3)
        assert r.tar == pytest.approx(2.0)

    def test_frequency_example(self):
        r = analyze(create_frequency_example())
        assert len(r.components) == 4
        assert r.veff == pytest.approx(38.05, abs=0.01)
        assert r.k == pytest.approx(2.024)
        assert r.tar == pytest.approx(50.0)
        assert r.tur == pytest.approx(10.0 / (2.024 * r.uc))

    def test_overrides(self):
        analysis = create_frequency_example()
        r = analyze(analysis, use_student_t=False, target_consumer_risk=0.1)
        assert r.k == 2.0
        assert r.target_consumer_risk == 0.1
        assert analysis.use_student_t is True

    def test_manual_component_excluded_when_invalid(self):
        analysis = create_dc_voltage_example()
        analysis.manual_components.append(
            ManualComponent(name="Broken", kind=ComponentKind.A,
                            standard_uncertainty=-2.0, degrees_of_freedom=5))
        r = analyze(analysis)
        assert [c.name for c in r.components] == ["UUT", "Standard Instrument (TMDE)"]
