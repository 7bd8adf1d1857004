# File: main.py

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# === Add 'src' directory to PYTHONPATH ===
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import sentry_sdk
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration

# Load environment variables before settings are read
load_dotenv()

from api.middleware.error_middleware import ErrorLoggingMiddleware
from api.routers.all_endpoints import all_routers
from common.config.settings import settings
from common.exceptions.exception_handlers import register_exception_handlers
from common.logging.logger import log_debug, log_info, log_error
from infrastructure.database.store_provider import init_document_store, close_document_store

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.ENVIRONMENT,
        send_default_pii=settings.SENTRY_SEND_PII
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup tasks
    try:
        await init_document_store()
        log_info("TravelShare API started", extra={"version": app.version, "store": settings.DOCUMENT_STORE_BACKEND})
    except Exception as e:
        log_error("Startup failed", extra={"error": str(e)})
        sentry_sdk.capture_exception(e)
        raise

    yield  # Application is running

    # Shutdown tasks
    await close_document_store()
    log_info("TravelShare API stopped")

# Create FastAPI app instance
app = FastAPI(
    title="TravelShare Social API",
    version="1.0.0",
    description="Profiles and follow relationships for the TravelShare community.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Request logger middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    log_debug("Incoming request", extra={"method": request.method, "url": str(request.url)})
    return await call_next(request)

# Register middlewares
app.add_middleware(ErrorLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Register routers
app.include_router(all_routers)
