"""Tests for engine/orchestrator.py — the Monte-Carlo loop.

Covers:
  - Determinism: same seed → identical summaries and per-trial states
  - Trial isolation: every trial starts from an empty state
  - Registration rules (unnamed modules, replacement, not while running)
  - Per-trial, prepare and result-shape failures become error markers;
    reducer failures become SummaryError
  - Configuration errors abort before any trial; unsupported kinds are fatal
  - Scenario A: one-year, no-escalation cost run
"""

from __future__ import annotations

import pytest

from lep_simulator.config import (
    CostSettings,
    ProjectSettings,
    SimulationSettings,
    build_context,
)
from lep_simulator.engine.distributions import create_sampler
from lep_simulator.engine.errors import (
    ConfigurationError,
    EngineStateError,
    SummaryError,
    UnsupportedDistributionError,
)
from lep_simulator.engine.orchestrator import EngineState, SimulationEngine
from lep_simulator.models.results import ModuleResult, ModuleSummary
from lep_simulator.modules import CostModule, RevenueModule, RiskModule
from lep_simulator.modules.base import SimulationModule


# ═══════════════════════════════════════════════════════════════════════════
# Test modules
# ═══════════════════════════════════════════════════════════════════════════

class StateCounter(SimulationModule):
    """Reports how many results were already in the state when it ran."""

    def __init__(self, name: str = "counter") -> None:
        self.name = name

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        return ModuleResult(metrics={"seen": float(len(state.results)), "iteration": float(iteration)})


class FlakyModule(SimulationModule):
    """Fails on even-numbered trials."""

    name = "flaky"

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        if iteration % 2 == 0:
            raise RuntimeError("boom")
        return ModuleResult(metrics={"value": 1.0})


class DependentModule(SimulationModule):
    """Records whether the flaky module's result was visible."""

    name = "dependent"

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        visible = state.get("flaky") is not None
        failed = state.error("flaky") is not None
        return ModuleResult(metrics={"visible": float(visible), "failed": float(failed)})


class BadPrepare(SimulationModule):
    name = "bad_prepare"

    def prepare_input_data(self, context):
        raise RuntimeError("prepare failed")

    def process_iteration(self, inputs, state, iteration, rng):
        return ModuleResult(metrics={"x": 1.0})


class WrongShape(SimulationModule):
    """Returns a plain dict instead of a ModuleResult."""

    name = "wrong_shape"

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        return {"metrics": {"x": 1.0}}


class SentinelWriter(SimulationModule):
    """Leaves its trial index behind as a result."""

    name = "sentinel"

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        return ModuleResult(metrics={"written_in": float(iteration)})


class SentinelChecker(SimulationModule):
    """Registered first: any sentinel it sees leaked from an earlier trial."""

    name = "checker"

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        leaked = state.get("sentinel") is not None
        return ModuleResult(metrics={"leaked": float(leaked), "seen": float(len(state.results))})


class BadReducer(StateCounter):
    def format_results(self, trial_results, percentile_spec):
        raise ValueError("cannot reduce")


class UnsupportedInTrial(SimulationModule):
    name = "unsupported"

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        return ModuleResult(metrics={"x": create_sampler("gamma", {}, rng)()})


class Registrar(SimulationModule):
    """Tries to register a module mid-run."""

    name = "registrar"

    def __init__(self, engine: SimulationEngine) -> None:
        self.engine = engine

    def prepare_input_data(self, context):
        return None

    def process_iteration(self, inputs, state, iteration, rng):
        try:
            self.engine.register_module(StateCounter("late"))
        except EngineStateError:
            return ModuleResult(metrics={"rejected": 1.0})
        return ModuleResult(metrics={"rejected": 0.0})


# ═══════════════════════════════════════════════════════════════════════════
# Tests
# ═══════════════════════════════════════════════════════════════════════════

def _input_engine(seed: int = 7, iterations: int = 100) -> SimulationEngine:
    engine = SimulationEngine(iterations=iterations, seed=seed)
    engine.register_module(CostModule())
    engine.register_module(RevenueModule())
    engine.register_module(RiskModule())
    return engine


class TestDeterminism:
    def test_same_seed_same_summary(self, small_context):
        first = _input_engine().run(small_context)
        second = _input_engine().run(small_context)
        assert first.summary == second.summary

    def test_different_seed_differs(self, small_context):
        first = _input_engine(seed=1).run(small_context)
        second = _input_engine(seed=2).run(small_context)
        assert first.summary["revenue"] != second.summary["revenue"]

    def test_rerun_on_same_engine_is_reproducible(self, small_context):
        engine = _input_engine()
        assert engine.run(small_context).summary == engine.run(small_context).summary

    def test_same_seed_same_trials(self, small_context):
        first = _input_engine(iterations=20).run(small_context)
        second = _input_engine(iterations=20).run(small_context)
        assert len(first.iterations) == 20
        assert first.iterations == second.iterations

    def test_trials_kept_in_order(self, small_context):
        run = _input_engine(iterations=5).run(small_context)
        assert [s.iteration for s in run.iterations] == [0, 1, 2, 3, 4]
        assert set(run.iterations[0].results) == {"cost", "revenue", "risk"}
        assert len(run.trial_results("cost")) == 5


class TestTrialIsolation:
    def test_each_trial_starts_empty(self, small_context):
        engine = SimulationEngine(iterations=50, seed=1)
        engine.register_module(StateCounter("first"))
        engine.register_module(StateCounter("second"))
        run = engine.run(small_context)
        first = run.summary["first"]
        second = run.summary["second"]
        assert first.metrics["seen"].extreme_lower == first.metrics["seen"].extreme_upper == 0.0
        assert second.metrics["seen"].extreme_lower == second.metrics["seen"].extreme_upper == 1.0

    def test_iteration_index_passed(self, small_context):
        engine = SimulationEngine(iterations=10, seed=1)
        engine.register_module(StateCounter())
        run = engine.run(small_context)
        band = run.summary["counter"].metrics["iteration"]
        assert band.extreme_lower == 1.0
        assert band.extreme_upper == 9.0

    def test_earlier_trial_result_not_visible(self, small_context):
        engine = SimulationEngine(iterations=20, seed=1)
        engine.register_module(SentinelChecker())
        engine.register_module(SentinelWriter())
        run = engine.run(small_context)
        checker = run.summary["checker"]
        assert checker.metrics["leaked"].extreme_upper == 0.0
        assert checker.metrics["seen"].extreme_upper == 0.0
        for state in run.iterations:
            assert state.get("sentinel").metrics["written_in"] == state.iteration
            assert state.get("checker").metrics == {"leaked": 0.0, "seen": 0.0}


class TestRegistration:
    def test_unnamed_module_rejected(self):
        with pytest.raises(ValueError):
            SimulationEngine(iterations=1).register_module(StateCounter(name=""))

    def test_same_name_replaces(self):
        engine = SimulationEngine(iterations=1)
        engine.register_module(StateCounter("a"))
        engine.register_module(StateCounter("b"))
        engine.register_module(StateCounter("a"))
        assert engine.modules == ["a", "b"]

    def test_register_while_running_rejected(self, small_context):
        engine = SimulationEngine(iterations=3, seed=1)
        engine.register_module(Registrar(engine))
        run = engine.run(small_context)
        assert run.summary["registrar"].metrics["rejected"].primary == 1.0
        assert engine.modules == ["registrar"]

    def test_iterations_must_be_positive(self):
        with pytest.raises(ValueError):
            SimulationEngine(iterations=0)

    def test_from_context(self, small_context):
        engine = SimulationEngine.from_context(small_context)
        assert engine.iterations == 200
        assert engine.seed == 7


class TestFailures:
    def test_failed_trials_excluded_and_counted(self, small_context):
        engine = SimulationEngine(iterations=10, seed=1)
        engine.register_module(FlakyModule())
        engine.register_module(DependentModule())
        run = engine.run(small_context)

        flaky = run.summary["flaky"]
        assert flaky.trials == 5
        assert flaky.failed_trials == 5
        assert run.metadata.failed_trials == {"flaky": 5, "dependent": 0}

        dependent = run.summary["dependent"]
        assert dependent.trials == 10
        # visible on odd trials only; error marker on even ones
        assert dependent.metrics["visible"].extreme_lower == 0.0
        assert dependent.metrics["visible"].extreme_upper == 1.0
        assert dependent.metrics["failed"].extreme_upper == 1.0

    def test_failures_are_logged(self, small_context, caplog):
        engine = SimulationEngine(iterations=2, seed=1)
        engine.register_module(FlakyModule())
        with caplog.at_level("WARNING", logger="lep_simulator.engine.orchestrator"):
            engine.run(small_context)
        assert any("flaky" in rec.getMessage() for rec in caplog.records)

    def test_reducer_failure_becomes_summary_error(self, small_context):
        engine = SimulationEngine(iterations=3, seed=1)
        engine.register_module(BadReducer("bad"))
        engine.register_module(StateCounter("good"))
        run = engine.run(small_context)
        assert isinstance(run.summary["bad"], SummaryError)
        assert run.summary["bad"].error_type == "ValueError"
        assert isinstance(run.summary["good"], ModuleSummary)
        assert run.module("bad") is None

    def test_unsupported_in_trial_is_fatal(self, small_context):
        engine = SimulationEngine(iterations=3, seed=1)
        engine.register_module(UnsupportedInTrial())
        with pytest.raises(UnsupportedDistributionError):
            engine.run(small_context)
        assert engine.state is EngineState.FAILED
        engine.reset()
        assert engine.state is EngineState.IDLE

    def test_configuration_error_lists_every_problem(self, small_context):
        cost = small_context.cost.model_copy(update={"escalation_distribution": "beta"})
        revenue = small_context.revenue.model_copy(update={
            "downtime_per_event": small_context.revenue.downtime_per_event.model_copy(
                update={"distribution": "gamma"}
            ),
        })
        context = small_context.model_copy(update={"cost": cost, "revenue": revenue})
        with pytest.raises(ConfigurationError) as info:
            _input_engine().run(context)
        errors = " ".join(info.value.errors)
        assert "beta" in errors
        assert "gamma" in errors

    def test_prepare_failure_marks_every_trial(self, small_context, caplog):
        engine = SimulationEngine(iterations=4, seed=1)
        engine.register_module(BadPrepare())
        engine.register_module(StateCounter("good"))
        with caplog.at_level("WARNING", logger="lep_simulator.engine.orchestrator"):
            run = engine.run(small_context)

        assert engine.state is EngineState.IDLE
        assert run.summary["bad_prepare"].trials == 0
        assert run.summary["bad_prepare"].failed_trials == 4
        assert run.summary["good"].trials == 4
        for state in run.iterations:
            marker = state.error("bad_prepare")
            assert marker.error_type == "RuntimeError"
            assert marker.message == "prepare failed"
        assert any("bad_prepare" in rec.getMessage() for rec in caplog.records)

    def test_wrong_result_shape_becomes_marker(self, small_context, caplog):
        engine = SimulationEngine(iterations=3, seed=1)
        engine.register_module(WrongShape())
        engine.register_module(StateCounter("after"))
        with caplog.at_level("WARNING", logger="lep_simulator.engine.orchestrator"):
            run = engine.run(small_context)

        assert run.metadata.failed_trials == {"wrong_shape": 3, "after": 0}
        assert run.iterations[0].error("wrong_shape").error_type == "InvalidResult"
        assert run.iterations[0].get("wrong_shape") is None
        assert any("instead of a ModuleResult" in rec.getMessage() for rec in caplog.records)

    def test_idle_after_success(self, small_context):
        engine = _input_engine(iterations=5)
        engine.run(small_context)
        assert engine.state is EngineState.IDLE


class TestMetadata:
    def test_metadata_fields(self, small_context):
        run = _input_engine(iterations=20).run(small_context)
        meta = run.metadata
        assert meta.iterations == 20
        assert meta.seed == 7
        assert meta.modules == ["cost", "revenue", "risk"]
        assert meta.percentiles == {
            "extreme_lower": 10, "lower_bound": 25, "primary": 50,
            "upper_bound": 75, "extreme_upper": 90,
        }
        assert len(run.iterations) == 20


class TestScenarioA:
    def test_one_year_flat_cost(self):
        context = build_context(
            project=ProjectSettings(life=1),
            cost=CostSettings(
                annual_base_om=1_000_000,
                escalation_rate=0.0,
                oem_term=0,
                failure_event_probability=0.0,
                contingency_cost=0.0,
            ),
            simulation=SimulationSettings(iterations=1),
        )
        engine = SimulationEngine.from_context(context)
        engine.register_module(CostModule())
        run = engine.run(context)
        cost = run.summary["cost"]
        assert cost.annual["total_cost"].primary == [1_000_000.0]
        assert cost.metrics["total_cost"].primary == 1_000_000.0
