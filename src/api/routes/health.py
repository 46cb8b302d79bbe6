import asyncio

import pika
from fastapi import APIRouter, Request
from sqlalchemy import text

from src.config import settings
from src.infrastructure.database.connection import AsyncSessionLocal

router = APIRouter(tags=["health"])


def _check_rabbitmq() -> None:
    connection = pika.BlockingConnection(pika.URLParameters(settings.rabbitmq_url))
    connection.close()


@router.get("/health")
async def health_check(request: Request) -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    db_status = "connected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        db_status = f"error: {exc}"

    rabbitmq_status = "connected"
    try:
        await asyncio.get_running_loop().run_in_executor(None, _check_rabbitmq)
    except Exception as exc:
        rabbitmq_status = f"error: {exc}"

    sweeper = getattr(request.app.state, "expiry_sweeper", None)
    sweeper_status = "running" if sweeper is not None and sweeper.running else "disabled"

    overall = "healthy" if db_status == "connected" and rabbitmq_status == "connected" else "degraded"

    return {
        "status": overall,
        "database": db_status,
        "rabbitmq": rabbitmq_status,
        "expiry_sweeper": sweeper_status,
    }
