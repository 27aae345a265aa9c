"""Payment promise tracking on top of the collection ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from collectflow.core.enums import PromiseState
from collectflow.core.exceptions import NotFoundError, ValidationError
from collectflow.core.schemas import PartialPaymentRequest, PromiseCreateRequest, validate_request
from collectflow.database.models import PaymentPromise
from collectflow.services.base_service import BaseService
from collectflow.services.ledger_service import LedgerService
from collectflow.workflow.cache import PROMISES_VIEW, WORKFLOWS_VIEW, SnapshotCache, get_snapshot_cache
from collectflow.workflow.promises import derive_state

logger = logging.getLogger(__name__)

OUTCOME_FULFILLED = "Promise fulfilled"
OUTCOME_FAILED = "Promise failed"
OUTCOME_PARTIAL = "Promise partially fulfilled"


@dataclass(frozen=True)
class PromiseView:
    id: int
    client_id: int
    client_name: str
    invoice_id: int | None
    invoice_number: str | None
    amount: Decimal
    promised_date: date
    contact_name: str | None
    contact_phone: str | None
    description: str | None
    state: PromiseState
    created_at: datetime


class PromiseTracker(BaseService):
    """Creates and resolves payment promises. Writes invalidate cached views."""

    def __init__(self, db: Session | None = None, cache: SnapshotCache | None = None) -> None:
        super().__init__(db)
        self.cache = cache or get_snapshot_cache()
        self.ledger = LedgerService(db=self.db)

    def _invalidate(self) -> None:
        self.cache.invalidate(PROMISES_VIEW, WORKFLOWS_VIEW)

    def _get(self, promise_id: int) -> PaymentPromise:
        with self.reading("get_promise"):
            promise = self.db.get(PaymentPromise, promise_id)
        if promise is None:
            raise NotFoundError(f"Payment promise {promise_id} not found.")
        return promise

    def create(
        self,
        client_id: int,
        amount: Decimal | int | float | str,
        promised_date: date,
        invoice_id: int | None = None,
        contact_name: str | None = None,
        contact_phone: str | None = None,
        description: str | None = None,
    ) -> int:
        """Record a promise. Any promised date is accepted, past ones included."""
        request = validate_request(
            PromiseCreateRequest,
            client_id=client_id,
            invoice_id=invoice_id,
            amount=amount,
            promised_date=promised_date,
            contact_name=contact_name,
            contact_phone=contact_phone,
            description=description,
        )
        promise = PaymentPromise(
            client_id=request.client_id,
            invoice_id=request.invoice_id,
            amount=request.amount,
            promised_date=request.promised_date,
            contact_name=request.contact_name or None,
            contact_phone=request.contact_phone or None,
            description=request.description or f"Payment promise for ${request.amount:,}",
            fulfilled=None,
        )
        self.db.add(promise)
        self.commit()
        self.db.refresh(promise)
        self._invalidate()
        logger.info(
            "promise.created",
            extra={
                "event": "promise.created",
                "promise_id": promise.id,
                "client_id": promise.client_id,
                "invoice_id": promise.invoice_id,
            },
        )
        return promise.id

    def mark_fulfilled(self, promise_id: int) -> None:
        promise = self._get(promise_id)
        if promise.fulfilled is True:
            return
        promise.fulfilled = True
        promise.outcome = OUTCOME_FULFILLED
        self.commit()
        self._invalidate()
        logger.info("promise.fulfilled", extra={"event": "promise.fulfilled", "promise_id": promise_id})

    def mark_failed(self, promise_id: int) -> None:
        promise = self._get(promise_id)
        if promise.fulfilled is False and not promise.is_partial:
            return
        promise.fulfilled = False
        promise.is_partial = False
        promise.outcome = OUTCOME_FAILED
        self.commit()
        self._invalidate()
        logger.info("promise.failed", extra={"event": "promise.failed", "promise_id": promise_id})

    def mark_partial(self, promise_id: int, amount_received: Decimal | int | float | str) -> None:
        received = validate_request(PartialPaymentRequest, amount_received=amount_received).amount_received
        promise = self._get(promise_id)
        if promise.fulfilled is True:
            raise ValidationError(f"Promise {promise_id} is already fulfilled.")
        if received >= promise.amount:
            raise ValidationError("amount_received covers the whole promise; mark it fulfilled instead.")
        if promise.is_partial and promise.amount_received == received:
            return
        promise.is_partial = True
        promise.amount_received = received
        promise.fulfilled = None
        promise.outcome = OUTCOME_PARTIAL
        self.commit()
        self._invalidate()
        logger.info(
            "promise.partial",
            extra={"event": "promise.partial", "promise_id": promise_id, "amount_received": str(received)},
        )

    def derive_state(self, promise: PaymentPromise, today: date | None = None) -> PromiseState:
        return derive_state(promise, today or date.today())

    def list_promises(self, state: PromiseState | str | None = None, today: date | None = None) -> list[PromiseView]:
        """Full promise history with derived state, optionally filtered by state."""
        today = today or date.today()
        wanted = PromiseState(state) if state is not None else None
        promises = self.ledger.fetch_promises()
        names = self.ledger.client_names(p.client_id for p in promises)
        numbers = self.ledger.invoice_numbers(p.invoice_id for p in promises if p.invoice_id is not None)

        views = []
        for promise in promises:
            promise_state = derive_state(promise, today)
            if wanted is not None and promise_state != wanted:
                continue
            views.append(
                PromiseView(
                    id=promise.id,
                    client_id=promise.client_id,
                    client_name=names.get(promise.client_id, "Unnamed"),
                    invoice_id=promise.invoice_id,
                    invoice_number=numbers.get(promise.invoice_id) if promise.invoice_id is not None else None,
                    amount=promise.amount,
                    promised_date=promise.promised_date,
                    contact_name=promise.contact_name,
                    contact_phone=promise.contact_phone,
                    description=promise.description,
                    state=promise_state,
                    created_at=promise.created_at,
                )
            )
        return views
