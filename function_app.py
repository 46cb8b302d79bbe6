"""Azure Functions entry point for the marketplace transaction core."""
import json

import azure.functions as func
import structlog
from sqlalchemy import text

from src.infrastructure.database.connection import AsyncSessionLocal
from src.infrastructure.logging.config import configure_logging
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from src.infrastructure.notifications.notifiers import RabbitMQNotifier
from src.infrastructure.scheduling.expiry_sweeper import run_expiry_sweep

configure_logging()
logger = structlog.get_logger(__name__)

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)


# ============================================================================
# Health Check
# ============================================================================

@app.route(route="health", methods=["GET"])
async def health(req: func.HttpRequest) -> func.HttpResponse:
    """Database reachability check for the function host."""
    db_status = "connected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        db_status = f"error: {exc}"

    return func.HttpResponse(
        json.dumps({
            "status": "healthy" if db_status == "connected" else "degraded",
            "database": db_status,
        }),
        mimetype="application/json",
    )


# ============================================================================
# Timer Trigger - Expire unpaid orders
# ============================================================================

@app.schedule(schedule="0 0 * * * *", arg_name="timer", run_on_startup=False)
async def expire_unpaid_orders(timer: func.TimerRequest) -> None:
    """
    Runs at the top of every hour.
    Cancels PENDING orders older than the payment timeout and relists their items.
    Sockets live in the API process, so notifications go over the event bus only.
    """
    if timer.past_due:
        logger.warning("expiry_timer_past_due")

    try:
        result = await run_expiry_sweep(RabbitMQPublisher(), RabbitMQNotifier())
    except Exception:
        logger.exception("expiry_sweep_failed")
        return

    logger.info(
        "expiry_timer_completed",
        examined=result.examined_count,
        cancelled=len(result.cancelled_order_ids),
        skipped=result.skipped_count,
    )
