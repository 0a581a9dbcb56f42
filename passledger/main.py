"""
Main FastAPI application for PassLedger API.
Serves health, passes, ledger administration, activity log, and metrics.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from passledger.api.errors import register_error_handlers
from passledger.api.routes import activity, health, ledger, passes
from passledger.core.config import settings
from passledger.core.logging import configure_logging
from passledger.db.session import SessionLocal, init_db
from passledger.services.ledger.service import bootstrap_ledger
from passledger.services.transfers.factory import get_transfer_gateway
from passledger.utils.metrics import router as metrics_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        bootstrap_ledger(db, get_transfer_gateway())
    finally:
        db.close()
    yield


app = FastAPI(
    title="PassLedger API",
    description="Time-bound access passes: purchase, access checks, owner administration",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(passes.router)
app.include_router(ledger.router)
app.include_router(activity.router)
app.include_router(metrics_router)
