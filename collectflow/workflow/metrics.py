"""Summary counters over the current workflow and promise snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from collectflow.core.enums import Priority, PromiseState
from collectflow.workflow.builder import WorkflowInstance

AT_RISK_DAYS = 30


@dataclass(frozen=True)
class WorkflowMetrics:
    total_workflows: int
    critical_or_high: int
    pending_promises: int
    broken_promises: int
    amount_at_risk: Decimal
    actions_due_today: int


def aggregate_metrics(
    instances: Iterable[WorkflowInstance],
    promise_states: Iterable[PromiseState],
    today: date,
) -> WorkflowMetrics:
    instances = list(instances)
    states = list(promise_states)
    return WorkflowMetrics(
        total_workflows=len(instances),
        critical_or_high=sum(1 for w in instances if w.priority in (Priority.CRITICAL, Priority.HIGH)),
        pending_promises=sum(1 for s in states if s == PromiseState.PENDING),
        broken_promises=sum(1 for s in states if s == PromiseState.BROKEN),
        amount_at_risk=sum(
            (Decimal(str(w.amount)) for w in instances if w.days_overdue > AT_RISK_DAYS),
            Decimal("0"),
        ),
        actions_due_today=sum(1 for w in instances if w.next_action_date == today),
    )
