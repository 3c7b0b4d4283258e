"""FastAPI server — HTTP access to the Monte-Carlo simulator.

Run with:
    uvicorn lep_simulator.api.server:app --reload --port 8000

Or:
    python -m lep_simulator.api.server

Endpoints:
    GET  /health             — liveness probe
    GET  /                   — welcome + pointers
    GET  /schema             — JSON Schema for SimulationContext inputs
    GET  /scenario/defaults  — complete default context as JSON
    POST /simulate           — two-stage run (operations → bridge → financials)
    POST /simulate/input     — input stage only (Cost, Revenue, Risk + bridge)
"""

from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from lep_simulator.config.context import SimulationContext, expand_adjustments
from lep_simulator.config.contracts import Adjustment
from lep_simulator.engine.errors import ConfigurationError, ModuleErrorMarker
from lep_simulator.engine.orchestrator import SimulationRunResult
from lep_simulator.engine.pipeline import run_input_stage, run_two_stage
from lep_simulator.engine.state import IterationState
from lep_simulator.models.results import ModuleSummary


# ═══════════════════════════════════════════════════════════════════════════
# App setup
# ═══════════════════════════════════════════════════════════════════════════

app = FastAPI(
    title="Wind Farm Lifecycle Economics Simulator API",
    version="1.0",
    description=(
        "Monte-Carlo simulation of wind farm O&M cost, revenue, risk and "
        "financing.  Send a partial context; missing fields use defaults. "
        "Results are percentile bands under the labels Pextreme_lower, "
        "Plower_bound, Pprimary, Pupper_bound and Pextreme_upper."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": exc.errors})


# ═══════════════════════════════════════════════════════════════════════════
# Request / response models
# ═══════════════════════════════════════════════════════════════════════════

class SimulateRequest(BaseModel):
    """Request body for /simulate and /simulate/input.  All fields optional."""

    scenario: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial or full SimulationContext JSON. Missing fields use defaults. "
                    "Example: {'project': {'life': 25}, 'simulation': {'iterations': 1000}}",
    )
    cost_adjustments: list[Adjustment] = Field(
        default_factory=list,
        description="Sparse O&M adjustments, e.g. [{'amount': 50000, 'years': [3, 4]}]",
    )
    revenue_adjustments: list[Adjustment] = Field(default_factory=list)
    include_iterations: bool = Field(
        default=False,
        description="Also return every trial's per-module results (large for many iterations)",
    )


class SimulateResponse(BaseModel):
    """Response from /simulate."""

    input_stage: dict[str, Any]
    cashflow: dict[str, Any]
    bridge: dict[str, Any]
    output_stage: dict[str, Any]
    output: dict[str, Any]


class InputStageResponse(BaseModel):
    """Response from /simulate/input."""

    input_stage: dict[str, Any]
    cashflow: dict[str, Any]
    bridge: dict[str, Any]


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

def get_default_scenario() -> dict[str, Any]:
    return SimulationContext().model_dump(mode="json", exclude={"bridge"})


def _deep_merge(base: dict, overrides: dict) -> dict:
    """Recursively merge overrides into base dict."""
    for key, val in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(val, dict):
            _deep_merge(base[key], val)
        else:
            base[key] = val
    return base


def _build_context(req: SimulateRequest) -> SimulationContext:
    """Defaults ← request overrides, adjustments expanded per project year."""
    data = _deep_merge(get_default_scenario(), req.scenario)
    try:
        context = SimulationContext.model_validate(data)
        if req.cost_adjustments or req.revenue_adjustments:
            context = context.model_copy(update={
                "annual_adjustments": expand_adjustments(
                    context.project.life, req.cost_adjustments, req.revenue_adjustments,
                ),
            })
    except ValidationError as exc:
        detail = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
        raise HTTPException(status_code=422, detail=detail) from exc
    return context


def _json_safe(value: Any) -> Any:
    """Non-finite floats become None so the payload is valid JSON."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def _trial_payload(state: IterationState) -> dict[str, Any]:
    results: dict[str, Any] = {}
    for name, outcome in state.results.items():
        if isinstance(outcome, ModuleErrorMarker):
            results[name] = {"error": asdict(outcome)}
        else:
            results[name] = _json_safe(asdict(outcome))
    return {"iteration": state.iteration, "results": results}


def _run_payload(run: SimulationRunResult, include_iterations: bool = False) -> dict[str, Any]:
    modules: dict[str, Any] = {}
    for name, summary in run.summary.items():
        if isinstance(summary, ModuleSummary):
            modules[name] = summary.model_dump(by_alias=True)
        else:
            modules[name] = {"error": asdict(summary)}
    payload = {
        "metadata": run.metadata.model_dump() if run.metadata else None,
        "modules": modules,
    }
    if include_iterations:
        payload["iterations"] = [_trial_payload(state) for state in run.iterations]
    return payload


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health")
def health_check():
    """Health check for deployment platforms."""
    return {"status": "ok"}


@app.get("/")
def root():
    """API root — returns a welcome message and pointers."""
    return {
        "name": "Wind Farm Lifecycle Economics Simulator API",
        "version": "1.0",
        "start_here": "GET /scenario/defaults",
        "docs": "GET /docs (interactive Swagger UI)",
    }


@app.get("/schema")
def get_schema():
    """Full JSON Schema for SimulationContext — every input with types, defaults, constraints."""
    return SimulationContext.model_json_schema()


@app.get("/scenario/defaults")
def get_defaults():
    """Complete default context as JSON.  Use as a starting point for modifications."""
    return get_default_scenario()


@app.post("/simulate", response_model=SimulateResponse)
def simulate(req: SimulateRequest):
    """Run both stages: Cost/Revenue/Risk, bridge, then Financing/NPV/IRR/Payback.

    Example minimal request:
    ```json
    {"scenario": {"simulation": {"iterations": 1000, "seed": 7}}}
    ```
    """
    context = _build_context(req)
    result = run_two_stage(context)
    return SimulateResponse(
        input_stage=_run_payload(result.input_run, req.include_iterations),
        cashflow=result.cashflow.model_dump(by_alias=True),
        bridge=result.bridge.model_dump(by_alias=True),
        output_stage=_run_payload(result.output_run, req.include_iterations),
        output=result.output.model_dump(by_alias=True),
    )


@app.post("/simulate/input", response_model=InputStageResponse)
def simulate_input(req: SimulateRequest):
    """Run the input stage only and return its percentiles plus the bridge."""
    context = _build_context(req)
    result = run_input_stage(context)
    return InputStageResponse(
        input_stage=_run_payload(result.run, req.include_iterations),
        cashflow=result.cashflow.model_dump(by_alias=True),
        bridge=result.bridge.model_dump(by_alias=True),
    )


# ═══════════════════════════════════════════════════════════════════════════
# CLI entry point
# ═══════════════════════════════════════════════════════════════════════════

def main():
    """Run the API server."""
    import uvicorn
    uvicorn.run(
        "lep_simulator.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
