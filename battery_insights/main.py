"""
Main application module for the Battery Insights service.

This module defines the FastAPI application, routes, and middleware.
"""
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from battery_insights.auth import RequestIdMiddleware, SecurityHeadersMiddleware, require_api_key
from battery_insights.config import Settings, get_settings
from battery_insights.logging_config import setup_logging
from battery_insights.schemas.responses import (
    HealthResponse,
    ScenarioListResponse,
    SimulationResponse,
    TelemetryIngestResponse,
    VehicleInsightsResponse,
)
from battery_insights.schemas.simulation import SimulationRequest
from battery_insights.schemas.telemetry import TelemetryPayload
from battery_insights.services.db_operations import TelemetryStore
from battery_insights.services.error_handler import register_error_handlers
from battery_insights.services.insights import get_vehicle_insights
from battery_insights.services.rules_config import RuleParameters, load_rules
from battery_insights.services.simulation import load_scenarios, simulate_drive
from battery_insights.services.telemetry_recorder import record_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the telemetry store for the lifetime of the application."""
    settings: Settings = app.state.settings
    store = TelemetryStore(settings.database_url)
    await store.create_tables()
    app.state.store = store
    try:
        yield
    finally:
        await store.dispose()


def get_store(request: Request) -> TelemetryStore:
    return request.app.state.store


def get_rules(request: Request) -> RuleParameters:
    return request.app.state.rules


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


public_router = APIRouter()
api_router = APIRouter(dependencies=[Depends(require_api_key)])


@public_router.get("/ping")
@public_router.head("/ping")
async def ping() -> Dict[str, str]:
    """Liveness check. Supports both GET and HEAD."""
    return {"status": "ok"}


@public_router.get("/health", response_model=HealthResponse)
async def health(response: Response, store: TelemetryStore = Depends(get_store)):
    """Readiness check including database connectivity."""
    database = await store.check_health()
    if not database["connected"]:
        response.status_code = 503
    return HealthResponse.model_validate({
        "status": "ok" if database["connected"] else "degraded",
        "database": database,
    })


@api_router.post("/telemetry", status_code=201, response_model=TelemetryIngestResponse)
async def ingest_telemetry(
    payload: TelemetryPayload,
    store: TelemetryStore = Depends(get_store),
    rules: RuleParameters = Depends(get_rules),
    settings: Settings = Depends(get_app_settings),
):
    """
    Record a telemetry sample and return its battery health evaluation.

    Args:
        payload: Validated telemetry reading

    Returns:
        TelemetryIngestResponse with score, status, alerts, tips and rule impacts
    """
    result = await record_telemetry(
        store, payload.to_sample(), rules, settings.history_snapshot_limit
    )
    return TelemetryIngestResponse.model_validate({"data": result.to_dict()})


@api_router.get("/vehicles/{vehicle_id}/insights", response_model=VehicleInsightsResponse)
async def vehicle_insights(
    vehicle_id: str,
    store: TelemetryStore = Depends(get_store),
    rules: RuleParameters = Depends(get_rules),
    settings: Settings = Depends(get_app_settings),
):
    """Current battery health insights and recent history for a vehicle."""
    insights = await get_vehicle_insights(
        store,
        vehicle_id,
        rules,
        history_limit=settings.history_snapshot_limit,
        insight_limit=settings.insight_history_limit,
    )
    return VehicleInsightsResponse.model_validate({"data": insights})


@api_router.get("/simulation/scenarios", response_model=ScenarioListResponse)
async def simulation_scenarios(request: Request):
    """List the canned drive scenarios."""
    scenarios = request.app.state.scenarios
    return ScenarioListResponse.model_validate(
        {"data": [scenario.to_dict() for scenario in scenarios.values()]}
    )


@api_router.post("/simulation/drive", status_code=201, response_model=SimulationResponse)
async def simulation_drive(
    body: SimulationRequest,
    request: Request,
    store: TelemetryStore = Depends(get_store),
    rules: RuleParameters = Depends(get_rules),
    settings: Settings = Depends(get_app_settings),
):
    """
    Run a simulated drive.

    With persist=false the scenario is evaluated in memory; otherwise every
    sample is recorded as if it had been posted to /telemetry.
    """
    result = await simulate_drive(
        request.app.state.scenarios,
        body.scenario,
        rules,
        store=store,
        vehicle_id=body.vehicle_id,
        persist=body.persist,
        base_timestamp=body.base_timestamp,
        default_vehicle_id=settings.simulation_default_vehicle_id,
        history_limit=settings.history_snapshot_limit,
    )
    return SimulationResponse.model_validate({"data": result})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Battery Insights",
        description="Battery health scoring, alerts and driver tips from vehicle telemetry",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rules = load_rules(settings.rules_config_path)
    app.state.scenarios = load_scenarios()

    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        headers_enabled=True,
    )

    # Last added runs first: request id, then security headers, then the rate limit
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)
    register_error_handlers(app)

    app.include_router(public_router)
    app.include_router(api_router)

    logger.info("Loaded rule parameters version %s", app.state.rules.version)
    return app


app = create_app()
