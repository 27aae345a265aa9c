from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from collectflow.core.enums import ActionType, Priority
from collectflow.core.schemas import DEFAULT_WORKFLOW_CONFIG, StageDefinition, WorkflowConfiguration
from collectflow.workflow.builder import (
    ActionCounts,
    ActivePromiseIndex,
    InvoiceRecord,
    WorkflowInstance,
    build_instance,
    build_workflow_instances,
    compute_days_overdue,
    sort_instances,
)

TODAY = date(2026, 3, 15)

CATALOG = WorkflowConfiguration(
    stages=(
        StageDefinition(id="pre", name="Pre-due reminder", offset_days=-3, action_type=ActionType.REMINDER,
                        priority=Priority.LOW, message_template="Invoice {invoice_number} due soon"),
        StageDefinition(id="due", name="Due notice", offset_days=0, action_type=ActionType.EMAIL,
                        priority=Priority.MEDIUM),
        StageDefinition(id="call", name="First call", offset_days=7, action_type=ActionType.CALL,
                        priority=Priority.MEDIUM),
        StageDefinition(id="escalate", name="Escalation", offset_days=30, action_type=ActionType.ESCALATION,
                        priority=Priority.HIGH, message_template="Escalate {client_name} for ${amount}"),
    ),
    reminder_frequency_days=5,
    critical_amount_threshold=Decimal("50000"),
)


def _invoice(invoice_id: int, due: date, amount: str = "1000", client_id: int | None = 1) -> InvoiceRecord:
    return InvoiceRecord(
        id=invoice_id,
        client_id=client_id,
        client_name="Acme",
        invoice_number=f"F-{invoice_id:03d}",
        amount=Decimal(amount),
        due_date=due,
        status="open",
    )


def _instance(invoice_id: int, priority: Priority, days_overdue: int) -> WorkflowInstance:
    return WorkflowInstance(
        invoice_id=invoice_id,
        client_id=1,
        client_name="Acme",
        invoice_number=f"F-{invoice_id}",
        amount=Decimal("100"),
        days_overdue=days_overdue,
        current_stage="x",
        current_stage_id=None,
        next_action="call",
        next_action_date=TODAY,
        history_count=0,
        has_active_promise=False,
        priority=priority,
    )


def test_days_overdue_is_signed():
    assert compute_days_overdue(date(2026, 3, 5), TODAY) == 10
    assert compute_days_overdue(date(2026, 3, 20), TODAY) == -5
    assert compute_days_overdue(TODAY, TODAY) == 0


def test_instance_between_stages_points_at_next_stage():
    instance = build_instance(_invoice(1, TODAY - timedelta(days=10)), CATALOG, TODAY,
                              ActivePromiseIndex(), ActionCounts())
    assert instance.days_overdue == 10
    assert instance.current_stage == "First call"
    assert instance.current_stage_id == "call"
    assert instance.next_action == "escalation"
    assert instance.next_action_date == TODAY + timedelta(days=20)
    assert instance.priority == Priority.MEDIUM
    assert instance.stage_priority == Priority.MEDIUM
    assert instance.suggested_message == "Escalate Acme for $1,000"


def test_pre_due_instance_uses_pre_due_label():
    instance = build_instance(_invoice(2, TODAY + timedelta(days=10)), CATALOG, TODAY,
                              ActivePromiseIndex(), ActionCounts())
    assert instance.current_stage == "Pre-due"
    assert instance.current_stage_id is None
    assert instance.stage_priority is None
    assert instance.next_action == "reminder"
    assert instance.next_action_date == TODAY + timedelta(days=7)
    assert instance.priority == Priority.LOW
    assert instance.suggested_message == "Invoice F-002 due soon"


def test_past_last_stage_falls_back_to_reminder_cadence():
    instance = build_instance(_invoice(3, TODAY - timedelta(days=45)), CATALOG, TODAY,
                              ActivePromiseIndex(), ActionCounts())
    assert instance.current_stage == "Escalation"
    assert instance.next_action == "escalation"
    assert instance.next_action_date == TODAY + timedelta(days=5)
    assert instance.priority == Priority.HIGH


def test_empty_catalog_defaults_to_reminder():
    config = WorkflowConfiguration(reminder_frequency_days=7)
    instance = build_instance(_invoice(4, TODAY - timedelta(days=3)), config, TODAY,
                              ActivePromiseIndex(), ActionCounts())
    assert instance.current_stage == "Pre-due"
    assert instance.next_action == "reminder"
    assert instance.next_action_date == TODAY + timedelta(days=7)
    assert instance.suggested_message is None


def test_zero_cadence_schedules_today_after_last_stage():
    config = WorkflowConfiguration(stages=CATALOG.stages, reminder_frequency_days=0)
    instance = build_instance(_invoice(5, TODAY - timedelta(days=40)), config, TODAY,
                              ActivePromiseIndex(), ActionCounts())
    assert instance.next_action_date == TODAY


def test_history_adds_invoice_actions_to_client_level_actions():
    counts = ActionCounts(by_invoice={10: 3}, by_client={1: 2, 2: 4})
    with_invoice_actions = build_instance(_invoice(10, TODAY), CATALOG, TODAY, ActivePromiseIndex(), counts)
    client_only = build_instance(_invoice(11, TODAY), CATALOG, TODAY, ActivePromiseIndex(), counts)
    no_client = build_instance(_invoice(12, TODAY, client_id=None), CATALOG, TODAY, ActivePromiseIndex(), counts)
    assert with_invoice_actions.history_count == 5
    assert client_only.history_count == 2
    assert no_client.history_count == 0


def test_active_promise_matches_invoice_or_client():
    index = ActivePromiseIndex.from_pairs([(7, 20), (8, None)])
    assert index.covers(20, 99) is True
    assert index.covers(21, 7) is True
    assert index.covers(22, 8) is True
    assert index.covers(23, 9) is False
    assert index.covers(24, None) is False


def test_more_overdue_first_within_same_priority():
    ordered = sort_instances([_instance(1, Priority.HIGH, 10), _instance(2, Priority.HIGH, 40)])
    assert [i.invoice_id for i in ordered] == [2, 1]


def test_priority_dominates_days_overdue():
    ordered = sort_instances([
        _instance(1, Priority.LOW, 5),
        _instance(2, Priority.MEDIUM, 8),
        _instance(3, Priority.CRITICAL, 1),
        _instance(4, Priority.HIGH, 50),
    ])
    assert [i.invoice_id for i in ordered] == [3, 4, 2, 1]


def test_full_ties_fall_back_to_invoice_id_and_sorting_is_idempotent():
    instances = [_instance(9, Priority.HIGH, 30), _instance(3, Priority.HIGH, 30), _instance(5, Priority.HIGH, 30)]
    once = sort_instances(instances)
    assert [i.invoice_id for i in once] == [3, 5, 9]
    assert sort_instances(once) == once
    assert sort_instances(reversed(once)) == once


def test_build_workflow_instances_sorts_the_snapshot():
    invoices = [
        _invoice(1, TODAY - timedelta(days=3)),
        _invoice(2, TODAY - timedelta(days=70)),
        _invoice(3, TODAY + timedelta(days=2), amount="75000"),
        _invoice(4, TODAY - timedelta(days=35)),
    ]
    instances = build_workflow_instances(invoices, CATALOG, TODAY)
    assert [(i.invoice_id, i.priority) for i in instances] == [
        (2, Priority.CRITICAL),
        (3, Priority.CRITICAL),
        (4, Priority.HIGH),
        (1, Priority.LOW),
    ]


def test_default_catalog_first_call_window():
    instances = build_workflow_instances([_invoice(1, TODAY - timedelta(days=10))], DEFAULT_WORKFLOW_CONFIG, TODAY)
    assert instances[0].current_stage == "First collection call"
    assert instances[0].next_action == "call"
    assert instances[0].next_action_date == TODAY + timedelta(days=5)
