from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import (
    Actor,
    get_actor,
    get_event_publisher,
    get_listing_repo,
    get_notifier,
    get_transition_order_use_case,
)
from src.api.routes.orders import order_to_response
from src.api.schemas.listing_schemas import ListingAvailabilityResponse
from src.api.schemas.order_schemas import OrderResponse, ResolveDisputeRequest, SweepResponse
from src.application.interfaces.collaborators import Notifier
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.use_cases.transition_order import TransitionOrder, TransitionOrderInput
from src.domain.enums.order_action import OrderAction
from src.domain.errors import ListingNotFoundError
from src.infrastructure.scheduling.expiry_sweeper import run_expiry_sweep

router = APIRouter(prefix="/admin", tags=["admin"])


def require_moderator(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_moderator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator role required.",
        )
    return actor


@router.get("/listings/{listing_id}", response_model=ListingAvailabilityResponse)
async def get_listing_availability(
    listing_id: UUID,
    _: Actor = Depends(require_moderator),
    repo: ListingRepository = Depends(get_listing_repo),
) -> ListingAvailabilityResponse:
    listing = await repo.get_by_id(listing_id)
    if listing is None:
        raise ListingNotFoundError(listing_id)
    return ListingAvailabilityResponse.model_validate(listing)


@router.post("/orders/{order_id}/dispute/review", response_model=OrderResponse)
async def review_dispute(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    """Take an APPLYING dispute into PROCESSING."""
    result = await use_case.execute(
        TransitionOrderInput(
            order_id=order_id,
            action=OrderAction.REVIEW_DISPUTE,
            actor_id=actor.user_id,
            is_moderator=actor.is_moderator,
        )
    )
    return order_to_response(result.order)


@router.post("/orders/{order_id}/dispute/resolve", response_model=OrderResponse)
async def resolve_dispute(
    order_id: UUID,
    body: ResolveDisputeRequest,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    """Close a dispute. REVERSE_SALE cancels the order and relists the item."""
    result = await use_case.execute(
        TransitionOrderInput(
            order_id=order_id,
            action=OrderAction.RESOLVE_DISPUTE,
            actor_id=actor.user_id,
            is_moderator=actor.is_moderator,
            resolution=body.resolution,
            note=body.note,
        )
    )
    return order_to_response(result.order)


@router.post("/orders/sweep-expired", response_model=SweepResponse)
async def sweep_expired_orders(
    timeout_hours: int | None = Query(default=None, ge=1),
    _: Actor = Depends(require_moderator),
    event_publisher: EventPublisher = Depends(get_event_publisher),
    notifier: Notifier = Depends(get_notifier),
) -> SweepResponse:
    """Run one expiry sweep now instead of waiting for the scheduler."""
    result = await run_expiry_sweep(
        event_publisher,
        notifier,
        timeout=timedelta(hours=timeout_hours) if timeout_hours else None,
    )
    return SweepResponse(
        examined=result.examined_count,
        cancelled=len(result.cancelled_order_ids),
        skipped=result.skipped_count,
        cancelled_order_ids=result.cancelled_order_ids,
    )
