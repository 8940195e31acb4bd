"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cli.logging_config import setup_logging
from web.deps import get_config
from web.routes import skills_gap

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    setup_logging(json_mode=True, level=config.logging.level, log_file=config.paths.log_file)
    logger.info("web.startup", database=str(config.paths.database))
    yield
    logger.info("web.shutdown")


app = FastAPI(
    title="Skills Gap",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow frontend origin
frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Using-Fallback-Data"],
)

app.include_router(skills_gap.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
