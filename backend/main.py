"""
Fillmore — schema-driven test-data synthesis
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import health, schema, synthesize
from config import settings
from core.logging_config import setup_logging

# ── Logging ──────────────────────────────────────────────────────────────────
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("fillmore")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Fillmore starting up…")
    yield
    logger.info("Fillmore shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Fillmore — Test-Data Synthesis",
    description="Fills API test-data templates with values drawn from a live database schema.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,     prefix="/api")
app.include_router(schema.router,     prefix="/api")
app.include_router(synthesize.router, prefix="/api")
