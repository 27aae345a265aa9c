"""Enums for the collections escalation workflow."""

from __future__ import annotations

import enum


class ActionType(str, enum.Enum):
    """Kinds of action a workflow stage can schedule."""

    REMINDER = "reminder"
    CALL = "call"
    EMAIL = "email"
    ESCALATION = "escalation"
    LEGAL = "legal"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PromiseState(str, enum.Enum):
    """Derived state of a payment promise. Never stored."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    BROKEN = "broken"
    PARTIAL = "partial"


class InvoiceStatus(str, enum.Enum):
    OPEN = "open"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


# Invoices the workflow engine considers.
ACTIVE_INVOICE_STATUSES = (InvoiceStatus.OPEN.value, InvoiceStatus.PARTIALLY_PAID.value)

# Sort rank, lower first.
PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}

PRE_DUE_STAGE_LABEL = "Pre-due"
DEFAULT_NEXT_ACTION = ActionType.REMINDER.value
