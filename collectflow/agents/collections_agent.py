"""Collections agent: daily pass over the escalation workflow.

Computes the current workflow snapshot and logs the actions due today with
their suggested message. Dispatching reminders, calls or notices is left to
whoever consumes these events.
"""

from __future__ import annotations

import logging
from datetime import date

from collectflow.core.startup import bootstrap
from collectflow.services.workflow_service import WorkflowService
from collectflow.workflow.metrics import WorkflowMetrics

logger = logging.getLogger(__name__)


def run_collections_agent(today: date | None = None) -> WorkflowMetrics:
    workflow_config = bootstrap()
    today = today or date.today()
    logger.info("collections.start", extra={"event": "collections.start", "as_of": today.isoformat()})

    with WorkflowService(workflow_config=workflow_config) as service:
        instances = service.get_active_workflows(today=today, use_cache=False)
        for instance in instances:
            if instance.next_action_date != today:
                continue
            logger.info(
                "collections.action.due",
                extra={
                    "event": "collections.action.due",
                    "invoice_id": instance.invoice_id,
                    "invoice_number": instance.invoice_number,
                    "client_id": instance.client_id,
                    "priority": instance.priority.value,
                    "stage": instance.current_stage,
                    "next_action": instance.next_action,
                    "has_active_promise": instance.has_active_promise,
                    "message": instance.suggested_message,
                },
            )
        metrics = service.get_metrics(today=today, use_cache=False)

    logger.info(
        "collections.complete",
        extra={
            "event": "collections.complete",
            "total_workflows": metrics.total_workflows,
            "critical_or_high": metrics.critical_or_high,
            "pending_promises": metrics.pending_promises,
            "broken_promises": metrics.broken_promises,
            "amount_at_risk": str(metrics.amount_at_risk),
            "actions_due_today": metrics.actions_due_today,
        },
    )
    return metrics


if __name__ == "__main__":
    run_collections_agent()
