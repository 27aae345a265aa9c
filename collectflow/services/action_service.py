"""Append-only recording of collection actions."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from collectflow.core.schemas import ActionCreateRequest, validate_request
from collectflow.database.models import CollectionAction
from collectflow.services.base_service import BaseService
from collectflow.workflow.cache import WORKFLOWS_VIEW, SnapshotCache, get_snapshot_cache

logger = logging.getLogger(__name__)


class ActionRecorder(BaseService):
    """Logs calls, emails and other collection steps taken by users.

    Action types are free text; they are not checked against the stage catalog.
    """

    def __init__(self, db: Session | None = None, cache: SnapshotCache | None = None) -> None:
        super().__init__(db)
        self.cache = cache or get_snapshot_cache()

    def record(
        self,
        client_id: int,
        action_type: str,
        description: str,
        invoice_id: int | None = None,
        outcome: str | None = None,
        contact_name: str | None = None,
        contact_phone: str | None = None,
        next_action_date: date | None = None,
    ) -> int:
        request = validate_request(
            ActionCreateRequest,
            client_id=client_id,
            invoice_id=invoice_id,
            action_type=action_type,
            description=description,
            outcome=outcome,
            contact_name=contact_name,
            contact_phone=contact_phone,
            next_action_date=next_action_date,
        )
        action = CollectionAction(
            client_id=request.client_id,
            invoice_id=request.invoice_id,
            action_type=request.action_type,
            description=request.description,
            outcome=request.outcome or None,
            contact_name=request.contact_name or None,
            contact_phone=request.contact_phone or None,
            next_action_date=request.next_action_date,
        )
        self.db.add(action)
        self.commit()
        self.db.refresh(action)
        self.cache.invalidate(WORKFLOWS_VIEW)
        logger.info(
            "action.recorded",
            extra={
                "event": "action.recorded",
                "action_id": action.id,
                "action_type": action.action_type,
                "client_id": action.client_id,
                "invoice_id": action.invoice_id,
            },
        )
        return action.id

    def _query(self, stmt, operation: str) -> list[CollectionAction]:
        with self.reading(operation):
            return list(self.db.scalars(stmt).all())

    def list_actions(self, client_id: int | None = None, invoice_id: int | None = None) -> list[CollectionAction]:
        """Action history, newest first."""
        stmt = select(CollectionAction)
        if client_id is not None:
            stmt = stmt.where(CollectionAction.client_id == client_id)
        if invoice_id is not None:
            stmt = stmt.where(CollectionAction.invoice_id == invoice_id)
        stmt = stmt.order_by(CollectionAction.created_at.desc(), CollectionAction.id.desc())
        return self._query(stmt, "list_actions")

    def list_scheduled(self, on_date: date) -> list[CollectionAction]:
        """Agenda: actions whose follow-up falls on ``on_date``."""
        stmt = (
            select(CollectionAction)
            .where(CollectionAction.next_action_date == on_date)
            .order_by(CollectionAction.client_id.asc(), CollectionAction.id.asc())
        )
        return self._query(stmt, "list_scheduled")
