from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog

from src.application.interfaces.bargain_repository import BargainRepository
from src.application.interfaces.collaborators import Notifier
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.domain.entities.bargain import Bargain
from src.domain.enums.bargain_status import BargainAction
from src.domain.errors import BargainNotFoundError, ListingNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class ProposeBargainInput:
    listing_id: UUID
    proposer_id: int
    original_price: Decimal
    proposed_price: Decimal
    message: str | None = None


@dataclass
class RespondToBargainInput:
    bargain_id: UUID
    actor_id: int
    action: BargainAction


class ProposeBargain:
    """Use case: a prospective buyer proposes a price to the listing owner."""

    def __init__(
        self,
        listing_repo: ListingRepository,
        bargain_repo: BargainRepository,
        event_publisher: EventPublisher,
        notifier: Notifier,
    ) -> None:
        self._listing_repo = listing_repo
        self._bargain_repo = bargain_repo
        self._event_publisher = event_publisher
        self._notifier = notifier

    async def execute(self, input_data: ProposeBargainInput) -> Bargain:
        listing = await self._listing_repo.get_by_id(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)

        bargain = Bargain.propose(
            listing=listing,
            bargainer_id=input_data.proposer_id,
            original_price=input_data.original_price,
            proposed_price=input_data.proposed_price,
            message=input_data.message,
        )
        await self._bargain_repo.add(bargain)
        await self._event_publisher.publish_many(bargain.collect_events())

        await self._notifier.notify(
            bargain.target_user_id,
            "New price offer",
            f"You received an offer of {bargain.proposed_price} (asking {bargain.original_price}) "
            f"on \"{listing.title}\".",
            "BARGAIN",
            bargain.id,
        )

        logger.info(
            "bargain_proposed",
            bargain_id=str(bargain.id),
            listing_id=str(bargain.listing_id),
            bargainer_id=bargain.bargainer_id,
            proposed_price=str(bargain.proposed_price),
        )
        return bargain


class RespondToBargain:
    """
    Use case: the listing owner accepts/rejects, or the proposer withdraws.

    Has no effect on the listing or any order.
    """

    _VERBS = {
        BargainAction.ACCEPT: "accepted",
        BargainAction.REJECT: "rejected",
        BargainAction.CANCEL: "withdrawn",
    }

    def __init__(
        self,
        bargain_repo: BargainRepository,
        event_publisher: EventPublisher,
        notifier: Notifier,
    ) -> None:
        self._bargain_repo = bargain_repo
        self._event_publisher = event_publisher
        self._notifier = notifier

    async def execute(self, input_data: RespondToBargainInput) -> Bargain:
        bargain = await self._bargain_repo.get_by_id(input_data.bargain_id)
        if bargain is None:
            raise BargainNotFoundError(input_data.bargain_id)

        from_status = bargain.status

        if input_data.action is BargainAction.ACCEPT:
            bargain.accept(input_data.actor_id)
        elif input_data.action is BargainAction.REJECT:
            bargain.reject(input_data.actor_id)
        else:
            bargain.cancel(input_data.actor_id)

        await self._bargain_repo.save(bargain)
        await self._event_publisher.publish_many(bargain.collect_events())

        recipient = (
            bargain.target_user_id
            if input_data.action is BargainAction.CANCEL
            else bargain.bargainer_id
        )
        verb = self._VERBS[input_data.action]
        await self._notifier.notify(
            recipient,
            f"Offer {verb}",
            f"The offer of {bargain.proposed_price} was {verb}.",
            "BARGAIN",
            bargain.id,
        )

        logger.info(
            "bargain_status_changed",
            bargain_id=str(bargain.id),
            actor_id=input_data.actor_id,
            from_status=from_status.value,
            to_status=bargain.status.value,
        )
        return bargain
