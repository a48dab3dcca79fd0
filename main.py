# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service Scheduling
==================
Batch service-duty rotation for an organisation: pick a service type, a set
of dates and an ordered roster, preview the round-robin assignment, then
commit it to the hosted backend in one bulk insert.

Workflow:
    configuring ─► previewing ─► committing ─► done
                       ▲              │
                       └── failure ───┘

Port: 8005
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.controllers import batch_controller, scheduling_controller, system_controller
from app.core.config import settings
from app.core.dependencies import get_engine, get_store
from app.core.logging import get_logger
from app.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    logger.info(
        "Starting %s v%s with %s backend",
        settings.SERVICE_NAME,
        settings.SERVICE_VERSION,
        get_store().backend_name,
    )
    yield
    engine = get_engine()
    if engine is not None:
        engine.dispose()
        logger.info("Shutting down: connection pool disposed")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Service Scheduling",
    description="Round-robin batch scheduling of service duties with preview and bulk commit.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(status_code=500, content={"error": "internal_server_error", "detail": str(exc)})


app.include_router(system_controller.router)
app.include_router(batch_controller.router)
app.include_router(scheduling_controller.router)


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
