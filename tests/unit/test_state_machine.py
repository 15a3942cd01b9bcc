"""Unit tests for bm_market.domain.state_machine."""

import pytest

from src.bm_market.domain.state_machine import can_transition


class TestLegalTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [("open", "active"), ("open", "cancelled"), ("active", "settled")],
    )
    def test_allowed(self, current: str, target: str) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("open", "settled"),
            ("active", "cancelled"),
            ("active", "open"),
            ("settled", "settled"),
            ("settled", "active"),
            ("cancelled", "active"),
            ("cancelled", "settled"),
        ],
    )
    def test_forbidden(self, current: str, target: str) -> None:
        assert not can_transition(current, target)


def test_unknown_status_raises() -> None:
    with pytest.raises(ValueError):
        can_transition("closed", "settled")
