"""
FastAPI application entrypoint with Lambda support.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum

import app.api.v1 as v1
from app.api.deps import close_http_client
from app.core.aot_logger import AotLogger
from app.core.config import settings
from app.core.constants import SECRETS_NAME
from app.core.exceptions import (
    ConfigError,
    GuessValidationError,
    IdentityFetchError,
    StoreError,
    TokenExchangeError,
)
from app.core.security import set_bearer_cookie, sets_bearer_cookie
from app.db.init_db import init_db

# Logger
fastapi_logger = AotLogger.get_fastapi_logger()

# Track if AWS secrets have been loaded
_aws_secrets_loaded = False


def load_secrets_once():
    global _aws_secrets_loaded

    if os.environ.get("AWS_EXECUTION_ENV") and not _aws_secrets_loaded:
        fastapi_logger.info("Detected AWS Lambda environment, loading secrets...")
        settings.load_aws_secrets(SECRETS_NAME)
        _aws_secrets_loaded = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    fastapi_logger.info("Starting Advent of Time API...")
    load_secrets_once()
    fastapi_logger.info(f"User store backend: {settings.user_store_backend}")

    yield

    fastapi_logger.info("Shutting down Advent of Time API...")
    close_http_client()
    fastapi_logger.info("Shutdown complete")


# Initialize FastAPI
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Guess the time of day each advent picture was taken",
    lifespan=lifespan,
)

asgi_handler = Mangum(app, api_gateway_base_path="/")


# Exception handlers
@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "unknown_provider", "error_description": str(exc)},
    )


@app.exception_handler(TokenExchangeError)
@app.exception_handler(IdentityFetchError)
async def oauth_error_handler(request: Request, exc: Exception):
    fastapi_logger.warning(f"OAuth2 login failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "oauth_failed", "error_description": str(exc)},
    )


@app.exception_handler(GuessValidationError)
async def guess_error_handler(request: Request, exc: GuessValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": str(exc), "reason": exc.reason},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid request", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    fastapi_logger.error(f"Store failure: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Storage error",
            "detail": str(exc) if settings.debug else "Please try again later",
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    fastapi_logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# Re-issue the bearer cookie after a silent token refresh
@app.middleware("http")
async def refreshed_cookie_middleware(request: Request, call_next):
    response = await call_next(request)
    token = getattr(request.state, "refreshed_token", None)
    if token is not None and not sets_bearer_cookie(response):
        set_bearer_cookie(response, token)
    return response


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Routers
for router in [v1.auth_router, v1.game_router, v1.leaderboard_router]:
    app.include_router(router)


@app.get("/")
def root():
    return {
        "message": "Advent of Time API",
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
def health():
    return {"status": "ok", "version": settings.app_version}


def run_init_db():
    load_secrets_once()
    fastapi_logger.info("Initializing user store...")
    try:
        init_db(settings)
        fastapi_logger.info("User store initialized.")
        return {"status": "success", "message": "User store initialized."}
    except StoreError as e:
        fastapi_logger.exception("Initialization failed")
        return {"status": "error", "message": str(e)}


# Lambda handler
def handler(event, context):
    """
    Mangum Lambda entrypoint.
    If the payload contains {"action": "init_db"}, it creates the user storage.
    Otherwise, it serves the FastAPI API.
    """
    if isinstance(event, dict) and event.get("action") == "init_db":
        return run_init_db()

    return asgi_handler(event, context)
