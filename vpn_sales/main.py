"""
VPN Sales Engine — FastAPI Application.

This is the entry point for the application.
All routers are registered here. When SWEEP_INTERVAL_SECONDS is
positive, the sweep scheduler runs for the lifetime of the app.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vpn_sales.config import get_settings
from vpn_sales.api.accounts import router as accounts_router
from vpn_sales.api.charges import router as charges_router
from vpn_sales.api.health import router as health_router
from vpn_sales.api.orders import router as orders_router
from vpn_sales.api.sweep import router as sweep_router
from vpn_sales.api.tickets import router as tickets_router
from vpn_sales.models.base import SessionLocal
from vpn_sales.scheduler import SweepScheduler

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.SWEEP_INTERVAL_SECONDS > 0:
        scheduler = SweepScheduler(
            interval=settings.SWEEP_INTERVAL_SECONDS,
            session_factory=SessionLocal,
        )
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()
            scheduler.join(timeout=5)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Order, wallet and service workflows for a VPN sales bot",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(orders_router)
app.include_router(charges_router)
app.include_router(sweep_router)
app.include_router(tickets_router)
