from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    Actor,
    get_actor,
    get_list_orders_use_case,
    get_open_order_use_case,
    get_order_history_use_case,
    get_order_statistics_use_case,
    get_order_use_case,
    get_transition_order_use_case,
)
from src.api.schemas.order_schemas import (
    DisputeRequest,
    OpenOrderRequest,
    OrderHistoryEntryResponse,
    OrderHistoryResponse,
    OrderResponse,
    OrderStatisticsResponse,
    PaginatedOrdersResponse,
    ReasonRequest,
)
from src.application.interfaces.order_repository import OrderRole
from src.application.use_cases.get_order_history import GetOrderHistory, GetOrderHistoryInput
from src.application.use_cases.open_order import OpenOrder, OpenOrderInput
from src.application.use_cases.order_queries import (
    GetOrder,
    GetOrderStatistics,
    ListOrders,
    OrderView,
)
from src.application.use_cases.transition_order import TransitionOrder, TransitionOrderInput
from src.domain.entities.order import Order
from src.domain.enums.order_action import OrderAction
from src.domain.enums.order_status import OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"])


def order_to_response(order: Order, view: OrderView | None = None) -> OrderResponse:
    response = OrderResponse.model_validate(order)
    if view is not None:
        response.listing_title = view.listing_title
        response.buyer_name = view.buyer_name
        response.seller_name = view.seller_name
    return response


async def _transition(
    use_case: TransitionOrder,
    order_id: UUID,
    action: OrderAction,
    actor: Actor,
    **details: str | None,
) -> OrderResponse:
    result = await use_case.execute(
        TransitionOrderInput(
            order_id=order_id,
            action=action,
            actor_id=actor.user_id,
            is_moderator=actor.is_moderator,
            **details,  # type: ignore[arg-type]
        )
    )
    return order_to_response(result.order)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def open_order(
    body: OpenOrderRequest,
    actor: Actor = Depends(get_actor),
    use_case: OpenOrder = Depends(get_open_order_use_case),
) -> OrderResponse:
    """Commit to a listing. Reserves it and creates a PENDING order."""
    order = await use_case.execute(
        OpenOrderInput(
            listing_id=body.listing_id,
            buyer_id=actor.user_id,
            trade_type=body.trade_type,
            trade_location=body.trade_location,
            remark=body.remark,
            bargain_id=body.bargain_id,
        )
    )
    return order_to_response(order)


@router.get("", response_model=PaginatedOrdersResponse)
async def list_orders(
    role: OrderRole = Query(default=OrderRole.ANY),
    order_status: OrderStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    use_case: ListOrders = Depends(get_list_orders_use_case),
) -> PaginatedOrdersResponse:
    result = await use_case.execute(
        actor.user_id, role=role, status=order_status, page=page, page_size=page_size
    )
    return PaginatedOrdersResponse(
        orders=[order_to_response(view.order, view) for view in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/statistics", response_model=OrderStatisticsResponse)
async def order_statistics(
    actor: Actor = Depends(get_actor),
    use_case: GetOrderStatistics = Depends(get_order_statistics_use_case),
) -> OrderStatisticsResponse:
    stats = await use_case.execute(actor.user_id)
    return OrderStatisticsResponse.model_validate(stats)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: GetOrder = Depends(get_order_use_case),
) -> OrderResponse:
    view = await use_case.execute(order_id, actor.user_id, is_moderator=actor.is_moderator)
    return order_to_response(view.order, view)


@router.get("/{order_id}/history", response_model=OrderHistoryResponse)
async def get_order_history(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: GetOrderHistory = Depends(get_order_history_use_case),
) -> OrderHistoryResponse:
    result = await use_case.execute(
        GetOrderHistoryInput(
            order_id=order_id, actor_id=actor.user_id, is_moderator=actor.is_moderator
        )
    )
    return OrderHistoryResponse(
        order_id=result.order_id,
        history=[
            OrderHistoryEntryResponse(
                id=r.id,
                from_status=r.from_status,
                to_status=r.to_status,
                transitioned_at=r.transitioned_at,
                triggered_by=r.triggered_by,
                actor_id=r.actor_id,
                metadata=r.metadata,
            )
            for r in result.history
        ],
    )


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(use_case, order_id, OrderAction.CANCEL, actor)


@router.post("/{order_id}/pay", response_model=OrderResponse)
async def pay_order(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(use_case, order_id, OrderAction.PAY, actor)


@router.post("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(use_case, order_id, OrderAction.SHIP, actor)


@router.post("/{order_id}/confirm", response_model=OrderResponse)
async def confirm_receipt(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(use_case, order_id, OrderAction.CONFIRM_RECEIPT, actor)


@router.post("/{order_id}/refund", response_model=OrderResponse)
async def apply_refund(
    order_id: UUID,
    body: ReasonRequest,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(
        use_case, order_id, OrderAction.APPLY_REFUND, actor, reason=body.reason
    )


@router.post("/{order_id}/refund/approve", response_model=OrderResponse)
async def approve_refund(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(use_case, order_id, OrderAction.APPROVE_REFUND, actor)


@router.post("/{order_id}/refund/reject", response_model=OrderResponse)
async def reject_refund(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(use_case, order_id, OrderAction.REJECT_REFUND, actor)


@router.post("/{order_id}/dispute", response_model=OrderResponse)
async def apply_dispute(
    order_id: UUID,
    body: DisputeRequest,
    actor: Actor = Depends(get_actor),
    use_case: TransitionOrder = Depends(get_transition_order_use_case),
) -> OrderResponse:
    return await _transition(
        use_case,
        order_id,
        OrderAction.APPLY_DISPUTE,
        actor,
        reason=body.reason,
        evidence=body.evidence,
    )
