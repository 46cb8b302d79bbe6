"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import admin, bargains, health, notifications, orders
from src.config import settings
from src.domain.errors import (
    ForbiddenError,
    InvalidStateError,
    ListingUnavailableError,
    MarketplaceError,
    NotFoundError,
    SelfTransactionError,
)
from src.infrastructure.logging.config import configure_logging
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from src.infrastructure.notifications.connection_registry import connection_registry
from src.infrastructure.notifications.notifiers import RabbitMQNotifier, RealtimeNotifier
from src.infrastructure.scheduling.expiry_sweeper import ExpirySweeper

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR: list[tuple[type[MarketplaceError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ListingUnavailableError, status.HTTP_409_CONFLICT),
    (SelfTransactionError, status.HTTP_400_BAD_REQUEST),
]


def status_for(exc: MarketplaceError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=exc.kind,
        status_code=status_code,
        detail=str(exc),
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": exc.kind})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    logger.info("marketplace_starting")

    sweeper: ExpirySweeper | None = None
    if settings.expiry_sweeper_enabled:
        sweeper = ExpirySweeper(
            RabbitMQPublisher(),
            RealtimeNotifier(connection_registry, durable=RabbitMQNotifier()),
        )
        await sweeper.start()
    app.state.expiry_sweeper = sweeper

    yield

    if sweeper is not None:
        await sweeper.stop()
    logger.info("marketplace_stopping")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Campus Marketplace Transactions",
        description="Listing reservation, price negotiation and order lifecycle.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MarketplaceError, marketplace_error_handler)  # type: ignore[arg-type]

    app.include_router(health.router)
    app.include_router(orders.router)
    app.include_router(bargains.router)
    app.include_router(admin.router)
    app.include_router(notifications.router)

    return app


app = create_app()
