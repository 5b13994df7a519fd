from contextlib import asynccontextmanager
import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from expenseflow.core.config import settings
from expenseflow.core.errors import (
    AlreadyProcessedError,
    ConflictError,
    ExpenseFlowError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from expenseflow.core.logging import setup_logging
from expenseflow.db.store import get_store

setup_logging()

logger = logging.getLogger(__name__)

# Initialize Sentry error monitoring
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.APP_ENV,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")

# Most specific first; ConflictError is a ValidationError.
ERROR_STATUS: list[tuple[type[ExpenseFlowError], int, str]] = [
    (ConflictError, 409, "Conflict"),
    (ValidationError, 400, "Validation Error"),
    (NotFoundError, 404, "Not Found"),
    (NotAuthorizedError, 403, "Access Denied"),
    (AlreadyProcessedError, 409, "Already Processed"),
    (InvalidStateError, 400, "Invalid State"),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: populate the in-memory store with demo data
    if settings.SEED_DEMO_DATA:
        from expenseflow.core.seed import seed_demo_data
        seed_demo_data(get_store())
    yield
    # Shutdown


app = FastAPI(
    title="ExpenseFlow",
    version="0.1.0",
    docs_url="/api/docs" if settings.APP_ENV != "production" else None,
    redoc_url="/api/redoc" if settings.APP_ENV != "production" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ExpenseFlowError)
async def domain_exception_handler(request: Request, exc: ExpenseFlowError):
    for error_type, status_code, title in ERROR_STATUS:
        if isinstance(exc, error_type):
            return JSONResponse(status_code=status_code, content={"error": title, "detail": exc.message})
    return JSONResponse(status_code=400, content={"error": "Bad Request", "detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV, "store": get_store().health_check()}
