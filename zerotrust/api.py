"""
ZeroTrust Oracle - FastAPI Application
======================================

Thin HTTP adapter over ConsensusEngine. No scoring logic lives here.

Run with: uvicorn zerotrust.api:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import MODEL_VERSION, SCORER_IDS, EngineSettings
from .logger_config import configure_logging
from .orchestrator import ConsensusEngine
from .schemas import (
    Decision,
    HealthResponse,
    MetricsResponse,
    OutcomeRequest,
    OutcomeResponse,
    TransactionEvent,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build one engine per process; its memory lives as long as the app."""
    settings = EngineSettings.from_env()
    configure_logging(settings.log_level)
    logger.info("ZeroTrust Oracle v%s starting (weights=%s, memory=%d)",
                MODEL_VERSION, settings.weight_profile, settings.memory_capacity)
    app.state.engine = ConsensusEngine(settings=settings)
    yield
    app.state.engine.close()
    logger.info("ZeroTrust Oracle shutting down")


app = FastAPI(
    title="ZeroTrust Oracle",
    description="Consensus threat scoring for DAO treasury transactions",
    version=MODEL_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "message": str(exc)},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "An unexpected error occurred."},
    )


def get_engine(request: Request) -> ConsensusEngine:
    return request.app.state.engine


@app.post("/api/v1/oracle/analyze", response_model=Decision, tags=["Threat Analysis"])
async def analyze_transaction(event: TransactionEvent, request: Request) -> Decision:
    """Score a transaction and return the consensus decision."""
    return await get_engine(request).analyze(event)


@app.post("/api/v1/oracle/outcome", response_model=OutcomeResponse, tags=["Threat Analysis"])
async def record_outcome(body: OutcomeRequest, request: Request) -> OutcomeResponse:
    """Report the ground truth for an earlier decision."""
    recorded = get_engine(request).record_outcome(body.decision_id, body.outcome)
    return OutcomeResponse(decision_id=body.decision_id, recorded=recorded)


@app.get("/api/v1/oracle/metrics", response_model=MetricsResponse, tags=["System"])
async def metrics(request: Request) -> MetricsResponse:
    return get_engine(request).get_metrics()


@app.get("/api/v1/oracle/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    engine = get_engine(request)
    return HealthResponse(
        status="healthy",
        version=engine.model_version,
        memory_size=len(engine.memory),
        scorers=list(SCORER_IDS),
    )


@app.get("/", tags=["System"])
async def root() -> Dict:
    """Root endpoint with API information."""
    return {
        "name": "ZeroTrust Oracle",
        "version": MODEL_VERSION,
        "documentation": "/docs",
        "health": "/api/v1/oracle/health",
        "analyze": "/api/v1/oracle/analyze",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("zerotrust.api:app", host="0.0.0.0", port=8000, reload=True)
