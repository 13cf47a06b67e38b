"""Tests for the order status state machine."""

import pytest

from localmarket.errors import InvalidOrderStatusError, InvalidStatusTransitionError
from localmarket.order_lifecycle import TERMINAL_STATUSES, can_transition, check_transition


class TestTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            ("pending", "processing"),
            ("processing", "shipped"),
            ("shipped", "delivered"),
            ("pending", "delivered"),
            ("pending", "cancelled"),
            ("processing", "cancelled"),
            ("shipped", "cancelled"),
        ],
    )
    def test_allowed(self, current, new):
        assert can_transition(current, new)
        check_transition("ORD-1", current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            ("processing", "pending"),
            ("shipped", "processing"),
            ("delivered", "shipped"),
            ("delivered", "cancelled"),
            ("cancelled", "pending"),
            ("pending", "pending"),
        ],
    )
    def test_rejected(self, current, new):
        assert not can_transition(current, new)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            check_transition("ORD-1", current, new)
        assert exc_info.value.current == current
        assert exc_info.value.requested == new

    def test_terminal_states_have_no_exits(self):
        for status in TERMINAL_STATUSES:
            for new in ("pending", "processing", "shipped", "delivered", "cancelled"):
                assert not can_transition(status, new)

    def test_force_skips_graph(self):
        check_transition("ORD-1", "delivered", "pending", force=True)

    def test_unknown_status_rejected_even_when_forced(self):
        with pytest.raises(InvalidOrderStatusError):
            check_transition("ORD-1", "pending", "lost", force=True)
