"""Workflow instance derivation.

Instances are never stored. They are rebuilt from a ledger snapshot on every
read, so this module only joins plain records with the stage catalog and the
priority classifier.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from collectflow.core.enums import DEFAULT_NEXT_ACTION, PRE_DUE_STAGE_LABEL, Priority
from collectflow.core.schemas import WorkflowConfiguration
from collectflow.workflow.priority import classify_priority, priority_rank
from collectflow.workflow.stages import current_stage, next_stage, render_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceRecord:
    id: int
    client_id: int | None
    client_name: str | None
    invoice_number: str
    amount: Decimal
    due_date: date
    status: str


@dataclass(frozen=True)
class ActionCounts:
    """Prior collection actions, per invoice and per client for invoice-less entries.

    An invoice's history is its own actions plus its client's invoice-less ones.
    """

    by_invoice: Mapping[int, int] = field(default_factory=dict)
    by_client: Mapping[int, int] = field(default_factory=dict)

    def history_for(self, invoice_id: int, client_id: int | None) -> int:
        client_level = self.by_client.get(client_id, 0) if client_id is not None else 0
        return self.by_invoice.get(invoice_id, 0) + client_level


@dataclass(frozen=True)
class ActivePromiseIndex:
    """Keys of promises that are not yet fulfilled."""

    invoice_ids: frozenset[int] = frozenset()
    client_ids: frozenset[int] = frozenset()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int | None, int | None]]) -> "ActivePromiseIndex":
        """Build from ``(client_id, invoice_id)`` pairs of unresolved promises."""
        invoice_ids: set[int] = set()
        client_ids: set[int] = set()
        for client_id, invoice_id in pairs:
            if client_id is not None:
                client_ids.add(client_id)
            if invoice_id is not None:
                invoice_ids.add(invoice_id)
        return cls(invoice_ids=frozenset(invoice_ids), client_ids=frozenset(client_ids))

    def covers(self, invoice_id: int, client_id: int | None) -> bool:
        if invoice_id in self.invoice_ids:
            return True
        return client_id is not None and client_id in self.client_ids


@dataclass(frozen=True)
class WorkflowInstance:
    invoice_id: int
    client_id: int | None
    client_name: str
    invoice_number: str
    amount: Decimal
    days_overdue: int
    current_stage: str
    current_stage_id: str | None
    next_action: str
    next_action_date: date
    history_count: int
    has_active_promise: bool
    priority: Priority
    stage_priority: Priority | None = None
    suggested_message: str | None = None


def _to_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def compute_days_overdue(due_date: date | datetime, today: date) -> int:
    """Whole days from due date to ``today``; negative before the due date."""
    return (_to_date(today) - _to_date(due_date)).days


def build_instance(
    invoice: InvoiceRecord,
    config: WorkflowConfiguration,
    today: date,
    promises: ActivePromiseIndex,
    action_counts: ActionCounts,
) -> WorkflowInstance:
    days_overdue = compute_days_overdue(invoice.due_date, today)
    reached = current_stage(days_overdue, config)
    upcoming = next_stage(days_overdue, config)

    if upcoming is not None:
        next_action = upcoming.action_type.value
        days_until_next = upcoming.offset_days - days_overdue
    else:
        next_action = reached.action_type.value if reached is not None else DEFAULT_NEXT_ACTION
        days_until_next = config.reminder_frequency_days

    client_name = invoice.client_name or "Unnamed"
    message_stage = upcoming or reached
    suggested_message = None
    if message_stage is not None:
        suggested_message = render_message(message_stage, invoice.invoice_number, invoice.amount, client_name)

    return WorkflowInstance(
        invoice_id=invoice.id,
        client_id=invoice.client_id,
        client_name=client_name,
        invoice_number=invoice.invoice_number,
        amount=invoice.amount,
        days_overdue=days_overdue,
        current_stage=reached.name if reached is not None else PRE_DUE_STAGE_LABEL,
        current_stage_id=reached.id if reached is not None else None,
        next_action=next_action,
        next_action_date=today + timedelta(days=max(0, days_until_next)),
        history_count=action_counts.history_for(invoice.id, invoice.client_id),
        has_active_promise=promises.covers(invoice.id, invoice.client_id),
        priority=classify_priority(invoice.amount, days_overdue, config),
        stage_priority=reached.priority if reached is not None else None,
        suggested_message=suggested_message,
    )


def sort_key(instance: WorkflowInstance) -> tuple[int, int, int]:
    """Priority rank, then most overdue first, then invoice id."""
    return (priority_rank(instance.priority), -instance.days_overdue, instance.invoice_id)


def sort_instances(instances: Iterable[WorkflowInstance]) -> list[WorkflowInstance]:
    return sorted(instances, key=sort_key)


def build_workflow_instances(
    invoices: Iterable[InvoiceRecord],
    config: WorkflowConfiguration,
    today: date,
    promises: ActivePromiseIndex | None = None,
    action_counts: ActionCounts | None = None,
) -> list[WorkflowInstance]:
    """One sorted instance per invoice in the snapshot."""
    promises = promises or ActivePromiseIndex()
    action_counts = action_counts or ActionCounts()
    instances = sort_instances(
        build_instance(invoice, config, today, promises, action_counts) for invoice in invoices
    )
    logger.debug(
        "workflow.instances.built",
        extra={"event": "workflow.instances.built", "count": len(instances), "as_of": today.isoformat()},
    )
    return instances
