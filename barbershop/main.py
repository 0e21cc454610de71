# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from barbershop.config import settings, _ENV_FILE
from barbershop.db import init_db
from barbershop.routers import (
    appointments_routes,
    barbers_routes,
    calendar_routes,
    clients_routes,
    financial_routes,
    settings_routes,
    slots_routes,
    whatsapp_routes,
)

if settings.env != "production":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
else:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    init_db()
    if not settings.whatsapp_configured:
        logger.info("WhatsApp API not configured; messages are generated as text only")
    yield


app = FastAPI(
    title="Barbershop Scheduler API",
    description="Appointments, barbers, availability, payments and WhatsApp message texts",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(settings_routes.router)
app.include_router(slots_routes.router)
app.include_router(barbers_routes.router)
app.include_router(clients_routes.router)
app.include_router(appointments_routes.router)
app.include_router(calendar_routes.router)
app.include_router(financial_routes.router)
app.include_router(whatsapp_routes.router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"{type(exc).__name__}: {exc}"},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}
