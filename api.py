"""
Credentials FastAPI Application

Main entry point for the credentials API. Users are stored in Cloudflare
Workers KV (or in memory when KV_BACKEND=memory).

Run:
    uvicorn api:app --host 0.0.0.0 --port 8080
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.config import Settings
from common.utils import CredentialError, error_response
from credentials.dependencies import init_services, shutdown_services
from credentials.router import router as credentials_router

settings = Settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Validates configuration, builds the KV client and services, and closes
    the KV client on shutdown.
    """
    logger.info("Starting credentials API...")
    settings.validate_required()
    init_services(settings)
    logger.info(f"Services initialized (KV backend: {settings.KV_BACKEND})")

    yield

    logger.info("Shutting down credentials API...")
    await shutdown_services()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="Credentials API",
    description="Password registration, login and bearer tokens backed by Workers KV",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CredentialError)
async def credential_error_handler(request: Request, exc: CredentialError):
    """Render credential errors that escaped a route."""
    logger.error(f"Unhandled credential error: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, code=exc.code.value),
    )


app.include_router(credentials_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
