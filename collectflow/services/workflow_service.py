"""Read facade: ledger snapshot in, sorted workflow instances and metrics out."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from collectflow.core.enums import PromiseState
from collectflow.core.schemas import WorkflowConfiguration, load_workflow_config
from collectflow.services.base_service import BaseService
from collectflow.services.ledger_service import LedgerService
from collectflow.services.promise_service import PromiseTracker, PromiseView
from collectflow.workflow.builder import WorkflowInstance, build_workflow_instances
from collectflow.workflow.cache import PROMISES_VIEW, WORKFLOWS_VIEW, SnapshotCache, get_snapshot_cache
from collectflow.workflow.metrics import WorkflowMetrics, aggregate_metrics

logger = logging.getLogger(__name__)


class WorkflowService(BaseService):
    """Recomputes workflow instances on read, behind a short-lived snapshot cache.

    The workflow configuration is fixed per service instance and is part of
    every cache key, so services built with different configurations never
    share snapshots.
    """

    def __init__(
        self,
        db: Session | None = None,
        workflow_config: WorkflowConfiguration | None = None,
        cache: SnapshotCache | None = None,
    ) -> None:
        super().__init__(db)
        self.workflow_config = workflow_config or load_workflow_config()
        self.cache = cache or get_snapshot_cache()
        self.ledger = LedgerService(db=self.db)
        self.promises = PromiseTracker(db=self.db, cache=self.cache)

    def _compute_workflows(
        self,
        today: date,
        due_from: date | None,
        due_to: date | None,
    ) -> list[WorkflowInstance]:
        invoices = self.ledger.fetch_open_invoices(due_from=due_from, due_to=due_to)
        promise_index = self.ledger.fetch_active_promise_index()
        action_counts = self.ledger.fetch_action_counts()
        instances = build_workflow_instances(
            invoices,
            self.workflow_config,
            today,
            promises=promise_index,
            action_counts=action_counts,
        )
        logger.info(
            "workflow.instances.loaded",
            extra={"event": "workflow.instances.loaded", "count": len(instances), "as_of": today.isoformat()},
        )
        return instances

    def get_active_workflows(
        self,
        today: date | None = None,
        use_cache: bool = True,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> list[WorkflowInstance]:
        today = today or date.today()
        if not use_cache:
            return self._compute_workflows(today, due_from, due_to)
        instances = self.cache.get_or_compute(
            WORKFLOWS_VIEW,
            self.workflow_config,
            today,
            due_from,
            due_to,
            compute=lambda: self._compute_workflows(today, due_from, due_to),
        )
        return list(instances)

    def get_promises(
        self,
        state: PromiseState | str | None = None,
        today: date | None = None,
        use_cache: bool = True,
    ) -> list[PromiseView]:
        today = today or date.today()
        if use_cache:
            promises = self.cache.get_or_compute(
                PROMISES_VIEW,
                today,
                compute=lambda: self.promises.list_promises(today=today),
            )
        else:
            promises = self.promises.list_promises(today=today)
        if state is None:
            return list(promises)
        wanted = PromiseState(state)
        return [p for p in promises if p.state == wanted]

    def get_metrics(self, today: date | None = None, use_cache: bool = True) -> WorkflowMetrics:
        today = today or date.today()
        instances = self.get_active_workflows(today=today, use_cache=use_cache)
        promises = self.get_promises(today=today, use_cache=use_cache)
        return aggregate_metrics(instances, (p.state for p in promises), today)

    def invalidate(self) -> None:
        self.cache.invalidate(WORKFLOWS_VIEW, PROMISES_VIEW)
