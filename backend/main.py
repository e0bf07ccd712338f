"""
Game Insights — game analytics data-quality and alerting service
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import health, datasets, quality, templates, alerts
from config import settings
from core.alerting import AlertService
from core.errors import AppError, log_error, parse_error
from core.store import get_store

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("game_insights")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Game Insights starting up…")
    AlertService(get_store()).initialize_default_rules()
    yield
    logger.info("Game Insights shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Game Insights API",
    description="Data-quality scoring, column inference and metric alerting for game analytics exports.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    parsed = parse_error(exc)
    logger.warning("%s %s failed: [%s] %s", request.method, request.url.path, parsed.code, parsed.technical)
    return JSONResponse(status_code=exc.status_code, content=parsed.model_dump())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    parsed = log_error(exc, {"method": request.method, "path": request.url.path})
    return JSONResponse(status_code=500, content=parsed.model_dump())


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,    prefix="/api")
app.include_router(datasets.router,  prefix="/api")
app.include_router(quality.router,   prefix="/api")
app.include_router(templates.router, prefix="/api")
app.include_router(alerts.router,    prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
