# main.py
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError

from app.routers import (
    user_router,
    auth_router,
    activity_router,
    customer_router,
    product_router,
    invoice_router,
    gateway_router,
    payment_router,
    pos_router,
    subscription_plan_router,
    report_router,
    company_router,
    portal_router,
    expense_router,
)

from app.core.config import (
    APP_ENV,
    APP_VERSION,
    CORS_ORIGINS,
    ENABLE_SCHEDULER,
    GATEWAY_HTTP_TIMEOUT,
    IS_PRODUCTION,
)
from app.core.db import init_models
from app.core.scheduler import scheduler
from app.core.exceptions import AppException
from app.core.logging import setup_logging
from app.middleware.request_logging import request_logging_middleware
from app.services.gateways.registry import build_gateway_registry
from app.core.error_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
)

APP_NAME = "BoliBooks - Billing & POS API"

# ------------------------------------------------------------------------------
# LOGGING
# ------------------------------------------------------------------------------
setup_logging()
logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# LIFESPAN
# ------------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application", extra={"environment": APP_ENV})

    # DB init ONLY in development
    if APP_ENV == "development":
        await init_models()
        logger.info("Database models initialized (development)")
    else:
        logger.info("init_models() skipped outside development")

    http_client = httpx.AsyncClient(timeout=GATEWAY_HTTP_TIMEOUT)
    app.state.gateways = build_gateway_registry(http_client)
    logger.info(
        "Payment gateways loaded",
        extra={"configured": [g.name for g in app.state.gateways if g.is_configured()]},
    )

    if ENABLE_SCHEDULER:
        scheduler.start()
        logger.info("Scheduler started")
    else:
        logger.info("Scheduler disabled")

    yield

    logger.info("Shutting down application")
    if scheduler.running:
        scheduler.shutdown()
    await http_client.aclose()

# ------------------------------------------------------------------------------
# APP INIT
# ------------------------------------------------------------------------------
app = FastAPI(
    title=APP_NAME,
    description="Invoicing, payment reconciliation, gateways and point of sale",
    version=APP_VERSION,
    docs_url=None if IS_PRODUCTION else "/docs",
    redoc_url=None,
    lifespan=lifespan,
)

# ------------------------------------------------------------------------------
# EXCEPTION HANDLERS
# ------------------------------------------------------------------------------
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# ------------------------------------------------------------------------------
# MIDDLEWARE
# ------------------------------------------------------------------------------
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------------------
# HEALTH CHECK
# ------------------------------------------------------------------------------
@app.get("/", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": "bolibooks-api",
        "environment": APP_ENV,
        "version": APP_VERSION,
    }

# ------------------------------------------------------------------------------
# ROUTERS
# ------------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(activity_router)
app.include_router(customer_router)
app.include_router(product_router)
app.include_router(invoice_router)
# before payment_router so /payments/{payment_id} does not shadow it
app.include_router(gateway_router)
app.include_router(payment_router)
app.include_router(pos_router)
app.include_router(subscription_plan_router)
app.include_router(report_router)
app.include_router(company_router)
app.include_router(portal_router)
app.include_router(expense_router)
