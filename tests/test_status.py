from itertools import product

from ops_dashboard.domain.models import OrderSummary
from ops_dashboard.domain.status import StatusKind, derive, derive_progress

FLAGS = ("placed", "confirmed", "processed", "shipped", "delivered", "cancelled")


def test_every_flag_combination_has_one_status():
    kinds = set(StatusKind)
    for values in product((False, True), repeat=len(FLAGS)):
        flags = dict(zip(FLAGS, values))
        result = derive(flags)
        assert result.status in kinds
        if flags["cancelled"]:
            assert result == (StatusKind.CANCELLED, "Cancelled")


def test_cancelled_beats_delivered():
    result = derive({"placed": True, "delivered": True, "cancelled": True})
    assert result.status == StatusKind.CANCELLED
    assert result.label == "Cancelled"


def test_priority_order():
    assert derive({"placed": True, "confirmed": True, "processed": True, "shipped": True,
                   "delivered": True}) == (StatusKind.COMPLETED, "Delivered")
    assert derive({"placed": True, "shipped": True}) == (StatusKind.PROCESSING, "Shipped")
    assert derive({"processed": True}) == (StatusKind.PROCESSING, "Processed")
    assert derive({"placed": True, "confirmed": True}) == (StatusKind.PROCESSING, "Confirmed")
    assert derive({"placed": True}) == (StatusKind.PENDING, "Placed")


def test_no_flags_is_unknown():
    assert derive({}) == (StatusKind.INACTIVE, "Unknown")
    assert derive(OrderSummary(order_id="X")) == (StatusKind.INACTIVE, "Unknown")


def test_derive_reads_wire_aliases_through_model():
    order = OrderSummary.model_validate({"orderId": "A1", "placed": True, "confirmedd": True})
    assert derive(order).label == "Confirmed"
    cancelled = OrderSummary.model_validate({"orderId": "A2", "delivered": True, "cancelOrder": True})
    assert derive(cancelled).status == StatusKind.CANCELLED


def test_progress_is_not_collapsed():
    order = OrderSummary(order_id="S", placed=True, confirmed=True, processed=True, shipped=True)
    steps = derive_progress(order)
    assert [s.key for s in steps] == ["placed", "confirmed", "processed", "shipped", "delivered"]
    assert [s.completed for s in steps] == [True, True, True, True, False]
    assert derive(order).label == "Shipped"


def test_progress_keeps_steps_of_cancelled_order():
    steps = derive_progress({"placed": True, "confirmed": True, "cancelled": True})
    assert [s.completed for s in steps] == [True, True, False, False, False]
