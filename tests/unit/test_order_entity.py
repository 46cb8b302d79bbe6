"""Unit tests for the Order aggregate's role and sub-state guards."""
import re
from decimal import Decimal

import pytest

from src.domain.entities.listing import Listing
from src.domain.entities.order import SYSTEM_TRIGGER, Order, generate_order_no
from src.domain.enums.listing_availability import ListingAvailability
from src.domain.enums.order_status import (
    DisputeResolution,
    DisputeStatus,
    OrderStatus,
    RefundStatus,
    TradeType,
)
from src.domain.errors import ForbiddenError, InvalidStateError, SelfTransactionError
from src.domain.events.domain_events import (
    DisputeStatusChangedEvent,
    OrderOpenedEvent,
    OrderStatusChangedEvent,
    RefundStatusChangedEvent,
)

SELLER = 1
BUYER = 2
STRANGER = 3
MODERATOR = 99


def _make_listing() -> Listing:
    return Listing(
        seller_id=SELLER,
        title="Calculus textbook",
        price=Decimal("50.00"),
        availability=ListingAvailability.SOLD,
        trade_type=TradeType.OFFLINE,
        trade_location="Library lobby",
    )


def _make_order(status: OrderStatus = OrderStatus.PENDING) -> Order:
    order = Order.open(listing=_make_listing(), buyer_id=BUYER)
    order.status = status
    order.collect_events()
    return order


class TestOpen:
    def test_copies_terms_from_listing(self) -> None:
        listing = _make_listing()
        order = Order.open(listing=listing, buyer_id=BUYER, remark="evening please")

        assert order.status is OrderStatus.PENDING
        assert order.price == Decimal("50.00")
        assert order.seller_id == SELLER
        assert order.trade_type is TradeType.OFFLINE
        assert order.trade_location == "Library lobby"
        assert order.refund_status is RefundStatus.NONE
        assert order.dispute_status is DisputeStatus.NONE

    def test_price_is_not_affected_by_later_listing_edits(self) -> None:
        listing = _make_listing()
        order = Order.open(listing=listing, buyer_id=BUYER)
        listing.price = Decimal("80.00")
        assert order.price == Decimal("50.00")

    def test_agreed_price_overrides_listing_price(self) -> None:
        order = Order.open(listing=_make_listing(), buyer_id=BUYER, agreed_price=Decimal("40"))
        assert order.price == Decimal("40")

    def test_explicit_trade_details_win(self) -> None:
        order = Order.open(
            listing=_make_listing(),
            buyer_id=BUYER,
            trade_type=TradeType.ONLINE,
            trade_location="Parcel locker",
        )
        assert order.trade_type is TradeType.ONLINE
        assert order.trade_location == "Parcel locker"

    def test_owner_cannot_buy_own_listing(self) -> None:
        with pytest.raises(SelfTransactionError):
            Order.open(listing=_make_listing(), buyer_id=SELLER)

    def test_emits_opened_event(self) -> None:
        order = Order.open(listing=_make_listing(), buyer_id=BUYER)
        events = order.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], OrderOpenedEvent)
        assert events[0].order_no == order.order_no

    def test_order_numbers_have_expected_shape(self) -> None:
        assert re.fullmatch(r"ORD\d{13}[0-9A-F]{8}", generate_order_no())

    def test_order_numbers_are_unique(self) -> None:
        assert len({generate_order_no() for _ in range(200)}) == 200


class TestHappyPath:
    def test_pay_ship_confirm(self) -> None:
        order = _make_order()
        order.pay(BUYER)
        order.ship(SELLER)
        order.confirm_receipt(BUYER)

        assert order.status is OrderStatus.COMPLETED
        events = order.collect_events()
        assert [e.to_status for e in events] == [  # type: ignore[attr-defined]
            OrderStatus.PAID,
            OrderStatus.SHIPPED,
            OrderStatus.COMPLETED,
        ]


class TestRoleGuards:
    def test_seller_cannot_pay(self) -> None:
        with pytest.raises(ForbiddenError):
            _make_order().pay(SELLER)

    def test_buyer_cannot_ship(self) -> None:
        with pytest.raises(ForbiddenError):
            _make_order(OrderStatus.PAID).ship(BUYER)

    def test_seller_cannot_confirm_receipt(self) -> None:
        with pytest.raises(ForbiddenError):
            _make_order(OrderStatus.SHIPPED).confirm_receipt(SELLER)

    def test_stranger_cannot_cancel(self) -> None:
        with pytest.raises(ForbiddenError):
            _make_order().cancel(STRANGER)

    def test_role_is_checked_before_status(self) -> None:
        # Wrong actor on a wrong status reports the role problem
        with pytest.raises(ForbiddenError):
            _make_order(OrderStatus.COMPLETED).pay(SELLER)


class TestStatusGuards:
    def test_cannot_pay_twice(self) -> None:
        order = _make_order()
        order.pay(BUYER)
        with pytest.raises(InvalidStateError):
            order.pay(BUYER)

    def test_cannot_ship_unpaid_order(self) -> None:
        with pytest.raises(InvalidStateError):
            _make_order().ship(SELLER)

    @pytest.mark.parametrize("status", [OrderStatus.PAID, OrderStatus.SHIPPED])
    def test_cancel_only_while_pending(self, status: OrderStatus) -> None:
        with pytest.raises(InvalidStateError):
            _make_order(status).cancel(BUYER)

    def test_either_party_can_cancel_pending(self) -> None:
        order = _make_order()
        order.cancel(SELLER)
        assert order.status is OrderStatus.CANCELLED

    def test_failed_guard_leaves_order_untouched(self) -> None:
        order = _make_order(OrderStatus.SHIPPED)
        with pytest.raises(InvalidStateError):
            order.pay(BUYER)
        assert order.status is OrderStatus.SHIPPED
        assert order.collect_events() == []


class TestExpire:
    def test_expire_cancels_pending_as_system(self) -> None:
        order = _make_order()
        order.expire()

        assert order.status is OrderStatus.CANCELLED
        event = order.collect_events()[0]
        assert isinstance(event, OrderStatusChangedEvent)
        assert event.triggered_by == SYSTEM_TRIGGER
        assert event.actor_id is None

    def test_expire_refuses_paid_order(self) -> None:
        with pytest.raises(InvalidStateError):
            _make_order(OrderStatus.PAID).expire()


class TestRefund:
    def test_apply_then_approve_cancels(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_refund(BUYER, "wrong item")
        assert order.refund_status is RefundStatus.APPLYING
        assert order.refund_reason == "wrong item"

        order.approve_refund(SELLER)
        assert order.refund_status is RefundStatus.APPROVED
        assert order.status is OrderStatus.CANCELLED
        assert order.refund_time is not None

        events = order.collect_events()
        assert sum(isinstance(e, RefundStatusChangedEvent) for e in events) == 2
        assert isinstance(events[-1], OrderStatusChangedEvent)

    def test_reject_keeps_status(self) -> None:
        order = _make_order(OrderStatus.SHIPPED)
        order.apply_refund(BUYER, "scratched")
        order.reject_refund(SELLER)
        assert order.refund_status is RefundStatus.REJECTED
        assert order.status is OrderStatus.SHIPPED

    def test_refund_can_be_requested_again_after_rejection(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_refund(BUYER, "first")
        order.reject_refund(SELLER)
        order.apply_refund(BUYER, "second")
        assert order.refund_status is RefundStatus.APPLYING

    def test_no_refund_on_pending_order(self) -> None:
        with pytest.raises(InvalidStateError):
            _make_order().apply_refund(BUYER, "changed my mind")

    def test_no_duplicate_refund_request(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_refund(BUYER, "wrong item")
        with pytest.raises(InvalidStateError):
            order.apply_refund(BUYER, "again")

    def test_no_refund_while_dispute_open(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_dispute(SELLER, "buyer unreachable", None)
        with pytest.raises(InvalidStateError):
            order.apply_refund(BUYER, "wrong item")

    def test_only_seller_approves(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_refund(BUYER, "wrong item")
        with pytest.raises(ForbiddenError):
            order.approve_refund(BUYER)

    def test_approve_without_request_fails(self) -> None:
        with pytest.raises(InvalidStateError):
            _make_order(OrderStatus.PAID).approve_refund(SELLER)


class TestDispute:
    def test_apply_records_reason_and_time(self) -> None:
        order = _make_order(OrderStatus.COMPLETED)
        order.apply_dispute(BUYER, "item broken", "photo.jpg")
        assert order.dispute_status is DisputeStatus.APPLYING
        assert order.dispute_reason == "item broken"
        assert order.dispute_evidence == "photo.jpg"
        assert order.dispute_time is not None

    def test_no_dispute_on_pending_order(self) -> None:
        with pytest.raises(InvalidStateError):
            _make_order().apply_dispute(BUYER, "x", None)

    def test_no_second_open_dispute(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_dispute(BUYER, "x", None)
        with pytest.raises(InvalidStateError):
            order.apply_dispute(SELLER, "y", None)

    def test_stranger_cannot_dispute(self) -> None:
        with pytest.raises(ForbiddenError):
            _make_order(OrderStatus.PAID).apply_dispute(STRANGER, "x", None)

    def test_review_moves_to_processing(self) -> None:
        order = _make_order(OrderStatus.SHIPPED)
        order.apply_dispute(BUYER, "x", None)
        order.start_dispute_review(MODERATOR, is_moderator=True)
        assert order.dispute_status is DisputeStatus.PROCESSING

    def test_review_requires_moderator(self) -> None:
        order = _make_order(OrderStatus.SHIPPED)
        order.apply_dispute(BUYER, "x", None)
        with pytest.raises(ForbiddenError):
            order.start_dispute_review(SELLER, is_moderator=False)

    def test_resolve_requires_moderator(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_dispute(BUYER, "x", None)
        with pytest.raises(ForbiddenError):
            order.resolve_dispute(
                SELLER, is_moderator=False, resolution=DisputeResolution.UPHOLD_SALE
            )

    def test_resolve_without_open_dispute_fails(self) -> None:
        with pytest.raises(InvalidStateError):
            _make_order(OrderStatus.PAID).resolve_dispute(
                MODERATOR, is_moderator=True, resolution=DisputeResolution.UPHOLD_SALE
            )

    def test_uphold_keeps_primary_status(self) -> None:
        order = _make_order(OrderStatus.COMPLETED)
        order.apply_dispute(BUYER, "x", None)
        order.resolve_dispute(
            MODERATOR,
            is_moderator=True,
            resolution=DisputeResolution.UPHOLD_SALE,
            note="Seller provided proof of delivery",
        )
        assert order.dispute_status is DisputeStatus.RESOLVED
        assert order.status is OrderStatus.COMPLETED
        assert order.dispute_result == "Seller provided proof of delivery"
        assert order.resolve_time is not None

    def test_note_text_does_not_drive_outcome(self) -> None:
        order = _make_order(OrderStatus.SHIPPED)
        order.apply_dispute(BUYER, "x", None)
        order.resolve_dispute(
            MODERATOR,
            is_moderator=True,
            resolution=DisputeResolution.UPHOLD_SALE,
            note="refund and cancel requested but denied",
        )
        assert order.status is OrderStatus.SHIPPED

    def test_reverse_sale_cancels_completed_order(self) -> None:
        order = _make_order(OrderStatus.COMPLETED)
        order.apply_dispute(BUYER, "counterfeit", None)
        order.start_dispute_review(MODERATOR, is_moderator=True)
        order.collect_events()

        order.resolve_dispute(
            MODERATOR, is_moderator=True, resolution=DisputeResolution.REVERSE_SALE
        )

        assert order.status is OrderStatus.CANCELLED
        assert order.dispute_resolution is DisputeResolution.REVERSE_SALE
        events = order.collect_events()
        assert isinstance(events[0], DisputeStatusChangedEvent)
        assert events[0].resolution == "REVERSE_SALE"
        assert isinstance(events[-1], OrderStatusChangedEvent)

    def test_reverse_sale_approves_pending_refund(self) -> None:
        order = _make_order(OrderStatus.PAID)
        order.apply_refund(BUYER, "wrong item")
        order.apply_dispute(SELLER, "buyer is lying", None)

        order.resolve_dispute(
            MODERATOR, is_moderator=True, resolution=DisputeResolution.REVERSE_SALE
        )

        assert order.refund_status is RefundStatus.APPROVED
        assert order.status is OrderStatus.CANCELLED

    def test_new_dispute_after_resolution_clears_previous_outcome(self) -> None:
        order = _make_order(OrderStatus.COMPLETED)
        order.apply_dispute(BUYER, "x", None)
        order.resolve_dispute(
            MODERATOR, is_moderator=True, resolution=DisputeResolution.UPHOLD_SALE, note="ok"
        )
        order.apply_dispute(BUYER, "new evidence", "receipt.pdf")
        assert order.dispute_status is DisputeStatus.APPLYING
        assert order.dispute_resolution is None
        assert order.dispute_result is None
