"""
NutriFlow FastAPI Application
Main entry point: configuration, middleware, adapters and routers
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uvicorn
from contextlib import asynccontextmanager
import anyio

from api.routes import (
    health,
    client_auth,
    clients,
    documents,
    meal_plans,
    appointments,
    invoices,
    payments,
    subscription,
    credits,
    gdpr,
    generate,
    profile,
    security,
)

# Import database and adapters
from domain.models import init_database
from adapters import groq_adapter, storage_adapter, stripe_adapter

from app import NutriFlowError, settings

from api.middleware import (
    RequestLoggingMiddleware,
    validation_exception_handler,
    http_exception_handler,
    nutriflow_exception_handler,
    general_exception_handler,
)
from api.rate_limit import setup_rate_limiting

# Setup logging with configured level and format
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()), format=settings.log_format
)
_logger = logging.getLogger("nutriflow.main")


def _connect_adapters():
    """Configure hosted services; a missing or broken one only disables its endpoints."""
    try:
        stripe_adapter.connect(settings.stripe_secret_key)
    except Exception as e:
        _logger.warning("Failed to initialize Stripe adapter; billing disabled: %s", e)

    try:
        groq_adapter.connect(
            settings.groq_api_key, settings.groq_model, settings.groq_timeout_sec
        )
    except Exception as e:
        _logger.warning("Failed to initialize Groq adapter; AI generation disabled: %s", e)

    try:
        storage_adapter.connect(
            settings.supabase_url,
            settings.supabase_service_role_key,
            settings.storage_bucket,
        )
    except Exception as e:
        _logger.warning("Failed to initialize storage adapter; uploads disabled: %s", e)


def _close_adapters():
    for name, adapter in (
        ("Stripe", stripe_adapter),
        ("Groq", groq_adapter),
        ("storage", storage_adapter),
    ):
        try:
            adapter.close()
        except Exception as e:
            _logger.exception("Error closing %s adapter during shutdown: %s", name, e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup and shutdown.
    Creates the schema (with retries) and configures the hosted service adapters.
    """
    _logger.info(f"Starting NutriFlow in {settings.environment.value} mode")

    for attempt in range(1, settings.db_init_attempts + 1):
        try:
            # Run blocking init in a thread to avoid blocking the event loop
            await anyio.to_thread.run_sync(init_database)
            _logger.info("Database initialization succeeded")
            break
        except Exception as exc:
            _logger.warning(
                "Database init attempt %d/%d failed: %s",
                attempt,
                settings.db_init_attempts,
                exc,
            )
            if attempt < settings.db_init_attempts:
                await anyio.sleep(settings.db_init_delay_sec)
            else:
                _logger.error(
                    "Database initialization failed after %d attempts", attempt
                )
                raise

    _connect_adapters()

    try:
        yield
    finally:
        _logger.info("Shutting down NutriFlow")
        _close_adapters()


app = FastAPI(
    title=settings.api_title,
    version=settings.app_version,
    description=settings.api_description,
    lifespan=lifespan,
    debug=settings.debug,
    openapi_url=(
        f"{settings.api_prefix}/openapi.json" if not settings.is_production() else None
    ),
    docs_url=f"{settings.api_prefix}/docs" if not settings.is_production() else None,
    redoc_url=f"{settings.api_prefix}/redoc" if not settings.is_production() else None,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Rate limiting (limiter state, 429 handler, default-limit middleware)
setup_rate_limiting(app)

# Register exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(NutriFlowError, nutriflow_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

for module in (
    health,
    client_auth,
    clients,
    documents,
    meal_plans,
    appointments,
    invoices,
    payments,
    subscription,
    credits,
    gdpr,
    generate,
    profile,
    security,
):
    app.include_router(module.router, prefix=settings.api_prefix)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )
