"""Unit tests for the Bargain and Listing entities."""
from decimal import Decimal
from uuid import uuid4

import pytest

from src.domain.entities.bargain import Bargain
from src.domain.entities.listing import Listing
from src.domain.enums.bargain_status import BargainStatus
from src.domain.enums.listing_availability import ListingAvailability
from src.domain.errors import (
    ForbiddenError,
    InvalidStateError,
    ListingUnavailableError,
    SelfTransactionError,
)
from src.domain.events.domain_events import (
    BargainStatusChangedEvent,
    ListingAvailabilityChangedEvent,
)

OWNER = 10
BUYER = 20


def _make_listing(availability: ListingAvailability = ListingAvailability.ON_SALE) -> Listing:
    return Listing(seller_id=OWNER, title="Desk lamp", price=Decimal("50"), availability=availability)


def _propose(listing: Listing | None = None) -> Bargain:
    bargain = Bargain.propose(
        listing=listing or _make_listing(),
        bargainer_id=BUYER,
        original_price=Decimal("50"),
        proposed_price=Decimal("40"),
        message="Would you take 40?",
    )
    bargain.collect_events()
    return bargain


class TestPropose:
    def test_creates_pending_bargain_addressed_to_owner(self) -> None:
        listing = _make_listing()
        bargain = Bargain.propose(
            listing=listing,
            bargainer_id=BUYER,
            original_price=Decimal("50"),
            proposed_price=Decimal("40"),
        )
        assert bargain.status is BargainStatus.PENDING
        assert bargain.target_user_id == OWNER
        assert bargain.listing_id == listing.id

        events = bargain.collect_events()
        assert isinstance(events[0], BargainStatusChangedEvent)
        assert events[0].from_status is None

    def test_owner_cannot_bargain_on_own_listing(self) -> None:
        with pytest.raises(ForbiddenError):
            Bargain.propose(
                listing=_make_listing(),
                bargainer_id=OWNER,
                original_price=Decimal("50"),
                proposed_price=Decimal("40"),
            )

    def test_rejects_non_positive_price(self) -> None:
        with pytest.raises(ValueError):
            Bargain.propose(
                listing=_make_listing(),
                bargainer_id=BUYER,
                original_price=Decimal("50"),
                proposed_price=Decimal("0"),
            )


class TestRespond:
    def test_owner_accepts(self) -> None:
        bargain = _propose()
        bargain.accept(OWNER)
        assert bargain.status is BargainStatus.ACCEPTED

    def test_owner_rejects(self) -> None:
        bargain = _propose()
        bargain.reject(OWNER)
        assert bargain.status is BargainStatus.REJECTED

    def test_proposer_cannot_accept_own_offer(self) -> None:
        with pytest.raises(ForbiddenError):
            _propose().accept(BUYER)

    def test_only_proposer_cancels(self) -> None:
        with pytest.raises(ForbiddenError):
            _propose().cancel(OWNER)

    def test_cannot_cancel_after_acceptance(self) -> None:
        bargain = _propose()
        bargain.accept(OWNER)
        with pytest.raises(InvalidStateError):
            bargain.cancel(BUYER)
        assert bargain.status is BargainStatus.ACCEPTED

    def test_cannot_accept_twice(self) -> None:
        bargain = _propose()
        bargain.accept(OWNER)
        with pytest.raises(InvalidStateError):
            bargain.accept(OWNER)


class TestUsableForOrder:
    def test_accepted_bargain_is_usable_by_proposer(self) -> None:
        listing = _make_listing()
        bargain = _propose(listing)
        bargain.accept(OWNER)
        bargain.ensure_usable_for_order(listing.id, BUYER)

    def test_pending_bargain_is_not_usable(self) -> None:
        listing = _make_listing()
        with pytest.raises(InvalidStateError):
            _propose(listing).ensure_usable_for_order(listing.id, BUYER)

    def test_other_buyer_cannot_use_it(self) -> None:
        listing = _make_listing()
        bargain = _propose(listing)
        bargain.accept(OWNER)
        with pytest.raises(ForbiddenError):
            bargain.ensure_usable_for_order(listing.id, 30)

    def test_other_listing_is_rejected(self) -> None:
        bargain = _propose()
        bargain.accept(OWNER)
        with pytest.raises(InvalidStateError):
            bargain.ensure_usable_for_order(uuid4(), BUYER)

    def test_bargain_is_single_use(self) -> None:
        listing = _make_listing()
        bargain = _propose(listing)
        bargain.accept(OWNER)
        bargain.link_order(uuid4())
        with pytest.raises(InvalidStateError):
            bargain.ensure_usable_for_order(listing.id, BUYER)


class TestListing:
    def test_self_transaction_is_checked_first(self) -> None:
        with pytest.raises(SelfTransactionError):
            _make_listing(ListingAvailability.SOLD).ensure_reservable_by(OWNER)

    @pytest.mark.parametrize(
        "availability",
        [
            ListingAvailability.DRAFT,
            ListingAvailability.SOLD,
            ListingAvailability.OFF_SHELF,
            ListingAvailability.DELETED,
        ],
    )
    def test_only_on_sale_is_reservable(self, availability: ListingAvailability) -> None:
        with pytest.raises(ListingUnavailableError):
            _make_listing(availability).ensure_reservable_by(BUYER)

    def test_apply_availability_records_event(self) -> None:
        listing = _make_listing()
        listing.apply_availability(ListingAvailability.SOLD)
        event = listing.collect_events()[0]
        assert isinstance(event, ListingAvailabilityChangedEvent)
        assert event.from_availability is ListingAvailability.ON_SALE
        assert event.to_availability is ListingAvailability.SOLD
