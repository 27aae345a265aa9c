"""Amount and age based priority classification."""

from __future__ import annotations

from decimal import Decimal

from collectflow.core.enums import PRIORITY_RANK, Priority
from collectflow.core.schemas import WorkflowConfiguration

CRITICAL_DAYS = 60
HIGH_DAYS = 30
MEDIUM_DAYS = 7


def classify_priority(
    amount: Decimal | float | int,
    days_overdue: int,
    config: WorkflowConfiguration,
) -> Priority:
    if days_overdue >= CRITICAL_DAYS or Decimal(str(amount)) >= config.critical_amount_threshold:
        return Priority.CRITICAL
    if days_overdue >= HIGH_DAYS:
        return Priority.HIGH
    if days_overdue >= MEDIUM_DAYS:
        return Priority.MEDIUM
    return Priority.LOW


def priority_rank(priority: Priority | str) -> int:
    return PRIORITY_RANK[Priority(priority)]
