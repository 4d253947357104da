"""
Sandbox Payments — FastAPI Application Entry Point

Aggregates the routers, configures middleware and error handling,
and initializes the database on startup.
"""
import logging
import time
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import SessionLocal, init_db
from app.exceptions import PaymentError
from app.logging_config import configure_logging
from app.routes import payment_router, admin_router
from app.schemas.schemas import ErrorResponse, HealthResponse
from app.services.payment_engine import PaymentSessionEngine, get_payment_engine

settings = get_settings()
logger = logging.getLogger(__name__)

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Simulated payment gateway for the storefront checkout. "
        "Card, UPI and NetBanking payments are authorized with a one-time code; "
        "wallet and cash-on-delivery payments settle instantly."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Configure logging, create tables and log boot info."""
    configure_logging()
    init_db()

    logger.info(
        "\n%s\n  %s v%s\n  TIME: %s\n  ENVIRONMENT: %s\n  DATABASE: %s\n  OTP HINT: %s\n%s",
        "=" * 60,
        settings.APP_NAME,
        settings.APP_VERSION,
        datetime.now().isoformat(),
        settings.ENVIRONMENT,
        settings.DATABASE_URL,
        "enabled" if settings.otp_hint_enabled else "disabled",
        "=" * 60,
    )


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

    return response


# ─── Error Handling ──────────────────────────────────────────────────
@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError):
    """Render engine and validation failures as ErrorResponse."""
    logger.info("Payment request rejected: %s (%s)", exc.error_code, request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, error_code=exc.error_code).model_dump(),
    )


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(payment_router)
app.include_router(admin_router)


@app.get("/health", tags=["Health"], response_model=HealthResponse)
def deep_health(engine: PaymentSessionEngine = Depends(get_payment_engine)):
    """Health check including database and session table status."""
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable")
    finally:
        db.close()

    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        database="connected" if db_ok else "disconnected",
        live_payment_sessions=engine.live_count,
        uptime_seconds=round(time.time() - BOOT_TIME, 1),
    )
