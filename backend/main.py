"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api import acquisitions, batches, consumptions
from database import init_db
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing ledger tables on startup."""
    init_db()
    logger.info("Ledger service started")
    yield


app = FastAPI(
    title="Lot Ledger",
    description="Acquisition and consumption tracking with per-lot balances",
    version="0.1.0",
    lifespan=lifespan,
)

# Include API routers
app.include_router(acquisitions.router)
app.include_router(consumptions.router)
app.include_router(batches.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
