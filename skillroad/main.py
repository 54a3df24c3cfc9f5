"""
FastAPI application entry point.

- Configures logging
- Mounts all routers under /api
- Auto-creates database tables on startup
- Builds the job portal aggregator (and its shared HTTP client) on startup
- Turns every error into a {"message": ...} JSON body
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillroad.config import settings
from skillroad.database import Base, engine
from skillroad.routers import jobs, progress, roadmaps, users
from skillroad.services.job_portals import build_aggregator

logger = logging.getLogger("skillroad")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables and the job portal aggregator for the life of the process."""
    Base.metadata.create_all(bind=engine)
    async with httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS) as client:
        app.state.aggregator = build_aggregator(settings, client)
        logger.info("SkillRoad API started")
        yield


app = FastAPI(
    title="SkillRoad",
    description="AI learning roadmaps, progress tracking and job market analysis",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Error responses ─────────────────────────────────────────────────

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    # Details go to the log, never to the client
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Mount all routers under /api
app.include_router(users.router, prefix="/api", tags=["auth"])
app.include_router(jobs.router, prefix="/api", tags=["jobs"])
app.include_router(roadmaps.router, prefix="/api", tags=["roadmaps"])
app.include_router(progress.router, prefix="/api", tags=["progress"])


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "SkillRoad API is running"}
