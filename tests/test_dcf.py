"""Tests for finance/dcf.py and the NPV / IRR / Payback modules.

Covers:
  - NPV with the first flow at t = 0
  - IRR: known roots, no sign change, root outside range, 85- and 100-year series
  - Scenario C payback and the no-crossing / already-positive cases
  - Cash-flow resolution order: bridge, then Financing, then fallback sampling
"""

from __future__ import annotations

import pytest

from lep_simulator.config import FinancingSettings, ProjectSettings, build_context
from lep_simulator.engine.state import IterationState
from lep_simulator.finance.dcf import compute_irr, compute_npv, compute_payback_period
from lep_simulator.models.results import BridgeData, ModuleResult
from lep_simulator.modules.cash_flows import fallback_cash_flows
from lep_simulator.modules.irr import IRRModule
from lep_simulator.modules.npv import NPVModule
from lep_simulator.modules.payback import PaybackModule


def _bridged_context(series, life=3, rate=0.08):
    context = build_context(
        project=ProjectSettings(life=life),
        financing=FinancingSettings(capex=100, devex=0, discount_rate=rate),
    )
    bridge = BridgeData(initial_investment=series[0], series={"primary": list(series)})
    return context.model_copy(update={"bridge": bridge})


def _run(module, context, state, rng):
    return module.process_iteration(module.prepare_input_data(context), state, state.iteration, rng)


# ═══════════════════════════════════════════════════════════════════════════
# NPV
# ═══════════════════════════════════════════════════════════════════════════

class TestComputeNPV:
    def test_zero_rate(self):
        """At 0% discount, NPV = sum of cash flows."""
        assert compute_npv([-100.0, 60.0, 60.0], 0.0) == pytest.approx(20.0)

    def test_first_flow_undiscounted(self):
        assert compute_npv([-100.0, 110.0], 0.10) == pytest.approx(0.0)

    def test_empty(self):
        assert compute_npv([], 0.08) == 0.0


# ═══════════════════════════════════════════════════════════════════════════
# IRR
# ═══════════════════════════════════════════════════════════════════════════

class TestComputeIRR:
    def test_single_period(self):
        assert compute_irr([-100.0, 110.0]) == pytest.approx(0.10, abs=1e-6)

    def test_annuity_root(self):
        flows = [-100.0, 40.0, 40.0, 40.0]
        irr = compute_irr(flows)
        assert irr is not None
        assert compute_npv(flows, irr) == pytest.approx(0.0, abs=1e-4)

    def test_negative_irr(self):
        flows = [-100.0, 30.0, 30.0, 30.0]
        irr = compute_irr(flows)
        assert irr is not None and irr < 0
        assert compute_npv(flows, irr) == pytest.approx(0.0, abs=1e-4)

    def test_no_sign_change(self):
        assert compute_irr([100.0, 50.0]) is None
        assert compute_irr([-100.0, -50.0]) is None

    def test_root_above_range(self):
        # exact IRR is 200 %
        assert compute_irr([-100.0, 300.0]) is None

    def test_too_short(self):
        assert compute_irr([-100.0]) is None

    def test_long_life_root_above_range(self):
        # 85 operating years; the root is far above 100 % so bisection runs
        assert compute_irr([-1.0] + [10.0] * 85) is None

    def test_long_life_root(self):
        flows = [-100.0] + [10.0] * 85
        irr = compute_irr(flows)
        assert irr is not None and 0.09 < irr < 0.10
        assert compute_npv(flows, irr) == pytest.approx(0.0, abs=1e-4)

    def test_hundred_year_life_near_total_loss(self):
        flows = [-100.0] + [0.01] * 100
        irr = compute_irr(flows)
        assert irr is not None and irr < 0
        assert compute_npv(flows, irr) == pytest.approx(0.0, abs=1e-4)


# ═══════════════════════════════════════════════════════════════════════════
# Payback
# ═══════════════════════════════════════════════════════════════════════════

class TestPayback:
    def test_scenario_c(self):
        assert compute_payback_period([-100, 40, 40, 40]) == pytest.approx(2.5)

    def test_exact_crossing(self):
        assert compute_payback_period([-100, 50, 50]) == pytest.approx(2.0)

    def test_never_crosses_returns_life(self):
        assert compute_payback_period([-100, 10, 10], project_life=20) == 20.0

    def test_never_crosses_defaults_to_series_length(self):
        assert compute_payback_period([-100, 10, 10]) == 2.0

    def test_first_flow_non_negative(self):
        assert compute_payback_period([0, 10, 10]) == 0.0


# ═══════════════════════════════════════════════════════════════════════════
# Modules & cash-flow resolution
# ═══════════════════════════════════════════════════════════════════════════

class TestModules:
    def test_npv_from_bridge(self, rng, empty_state):
        context = _bridged_context([-100, 40, 40, 40], rate=0.08)
        result = _run(NPVModule(), context, empty_state, rng)
        assert result.metrics["npv"] == pytest.approx(compute_npv([-100, 40, 40, 40], 0.08))

    def test_payback_from_bridge(self, rng, empty_state):
        result = _run(PaybackModule(), _bridged_context([-100, 40, 40, 40]), empty_state, rng)
        assert result.metrics["payback_period"] == pytest.approx(2.5)

    def test_irr_in_percent(self, rng, empty_state):
        result = _run(IRRModule(), _bridged_context([-100, 110], life=1), empty_state, rng)
        assert result.metrics["irr"] == pytest.approx(10.0, abs=1e-4)

    def test_irr_omitted_when_undefined(self, rng, empty_state):
        result = _run(IRRModule(), _bridged_context([-100, -10, -10, -10]), empty_state, rng)
        assert result.metrics == {}

    def test_irr_omitted_for_long_life_without_root_in_range(self, rng, empty_state):
        context = _bridged_context([-1.0] + [10.0] * 85, life=85)
        result = _run(IRRModule(), context, empty_state, rng)
        assert result.metrics == {}

    def test_financing_series_used_without_bridge(self, rng):
        context = build_context(project=ProjectSettings(life=3))
        state = IterationState(iteration=0).with_result(
            "financing", ModuleResult(cash_flows=(-100.0, 40.0, 40.0, 40.0))
        )
        result = _run(PaybackModule(), context, state, rng)
        assert result.cash_flows == (-100.0, 40.0, 40.0, 40.0)

    def test_bridge_beats_financing(self, rng):
        context = _bridged_context([-100, 100, 0, 0])
        state = IterationState(iteration=0).with_result(
            "financing", ModuleResult(cash_flows=(-100.0, 40.0, 40.0, 40.0))
        )
        result = _run(PaybackModule(), context, state, rng)
        assert result.metrics["payback_period"] == pytest.approx(1.0)

    def test_fallback_sampling(self, rng, empty_state):
        context = build_context(
            project=ProjectSettings(life=4),
            financing=FinancingSettings(capex=1_000_000),
        )
        result = _run(NPVModule(), context, empty_state, rng)
        assert len(result.cash_flows) == 5
        assert result.cash_flows[0] == -1_000_000


class TestFallbackCashFlows:
    def test_shape_and_noise_band(self, rng):
        flows = fallback_cash_flows(1_000_000, 4, rng)
        assert flows[0] == -1_000_000
        # base flows 200k, 150k, 100k, 50k scaled by U(0.8, 1.2)
        for base, flow in zip([200_000, 150_000, 100_000, 50_000], flows[1:]):
            assert 0.8 * base <= flow <= 1.2 * base
