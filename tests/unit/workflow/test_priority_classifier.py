from __future__ import annotations

from decimal import Decimal

import pytest

from collectflow.core.enums import Priority
from collectflow.core.schemas import WorkflowConfiguration
from collectflow.workflow.priority import classify_priority, priority_rank

CONFIG = WorkflowConfiguration(critical_amount_threshold=Decimal("50000"))


def test_large_amount_is_critical_even_when_barely_overdue():
    assert classify_priority(60000, 2, CONFIG) == Priority.CRITICAL


def test_amount_equal_to_threshold_is_critical():
    assert classify_priority(Decimal("50000.00"), -10, CONFIG) == Priority.CRITICAL


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (-5, Priority.LOW),
        (6, Priority.LOW),
        (7, Priority.MEDIUM),
        (29, Priority.MEDIUM),
        (30, Priority.HIGH),
        (59, Priority.HIGH),
        (60, Priority.CRITICAL),
        (365, Priority.CRITICAL),
    ],
)
def test_day_bands_are_inclusive_on_lower_bound(days, expected):
    assert classify_priority(100, days, CONFIG) == expected


def test_priority_never_drops_as_days_increase():
    ranks = [priority_rank(classify_priority(1000, days, CONFIG)) for days in range(-30, 120)]
    assert all(later <= earlier for earlier, later in zip(ranks, ranks[1:]))


def test_zero_threshold_makes_everything_critical():
    config = WorkflowConfiguration(critical_amount_threshold=Decimal("0"))
    assert classify_priority(1, -3, config) == Priority.CRITICAL


def test_rank_order():
    assert [priority_rank(p) for p in ("critical", "high", "medium", "low")] == [0, 1, 2, 3]
