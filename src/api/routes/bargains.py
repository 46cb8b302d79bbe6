from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    Actor,
    get_actor,
    get_list_bargains_use_case,
    get_propose_bargain_use_case,
    get_respond_to_bargain_use_case,
)
from src.api.schemas.bargain_schemas import (
    BargainResponse,
    PaginatedBargainsResponse,
    ProposeBargainRequest,
)
from src.application.use_cases.list_bargains import ListBargains
from src.application.use_cases.negotiate_price import (
    ProposeBargain,
    ProposeBargainInput,
    RespondToBargain,
    RespondToBargainInput,
)
from src.domain.enums.bargain_status import BargainAction

router = APIRouter(prefix="/bargains", tags=["bargains"])


@router.post("", response_model=BargainResponse, status_code=status.HTTP_201_CREATED)
async def propose_bargain(
    body: ProposeBargainRequest,
    actor: Actor = Depends(get_actor),
    use_case: ProposeBargain = Depends(get_propose_bargain_use_case),
) -> BargainResponse:
    bargain = await use_case.execute(
        ProposeBargainInput(
            listing_id=body.listing_id,
            proposer_id=actor.user_id,
            original_price=body.original_price,
            proposed_price=body.proposed_price,
            message=body.message,
        )
    )
    return BargainResponse.model_validate(bargain)


@router.get("", response_model=PaginatedBargainsResponse)
async def list_my_bargains(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    use_case: ListBargains = Depends(get_list_bargains_use_case),
) -> PaginatedBargainsResponse:
    """Bargains the caller proposed or received, newest first."""
    result = await use_case.for_user(actor.user_id, page=page, page_size=page_size)
    return PaginatedBargainsResponse(
        bargains=[BargainResponse.model_validate(b) for b in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/listing/{listing_id}", response_model=list[BargainResponse])
async def list_bargains_for_listing(
    listing_id: UUID,
    use_case: ListBargains = Depends(get_list_bargains_use_case),
) -> list[BargainResponse]:
    bargains = await use_case.for_listing(listing_id)
    return [BargainResponse.model_validate(b) for b in bargains]


async def _respond(
    use_case: RespondToBargain, bargain_id: UUID, actor: Actor, action: BargainAction
) -> BargainResponse:
    bargain = await use_case.execute(
        RespondToBargainInput(bargain_id=bargain_id, actor_id=actor.user_id, action=action)
    )
    return BargainResponse.model_validate(bargain)


@router.post("/{bargain_id}/accept", response_model=BargainResponse)
async def accept_bargain(
    bargain_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: RespondToBargain = Depends(get_respond_to_bargain_use_case),
) -> BargainResponse:
    return await _respond(use_case, bargain_id, actor, BargainAction.ACCEPT)


@router.post("/{bargain_id}/reject", response_model=BargainResponse)
async def reject_bargain(
    bargain_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: RespondToBargain = Depends(get_respond_to_bargain_use_case),
) -> BargainResponse:
    return await _respond(use_case, bargain_id, actor, BargainAction.REJECT)


@router.post("/{bargain_id}/cancel", response_model=BargainResponse)
async def cancel_bargain(
    bargain_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: RespondToBargain = Depends(get_respond_to_bargain_use_case),
) -> BargainResponse:
    return await _respond(use_case, bargain_id, actor, BargainAction.CANCEL)
