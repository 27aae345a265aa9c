"""Read boundary over the invoice ledger, client directory and collection ledger.

Every read failure is re-raised as LedgerUnavailableError so callers can tell
"no data" apart from "could not fetch data".
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import func, select

from collectflow.core.enums import ACTIVE_INVOICE_STATUSES
from collectflow.database.models import Client, CollectionAction, Invoice, PaymentPromise
from collectflow.services.base_service import BaseService
from collectflow.workflow.builder import ActionCounts, ActivePromiseIndex, InvoiceRecord


class LedgerService(BaseService):
    """Snapshot reads used by the workflow builder and promise listings."""

    def fetch_open_invoices(self, due_from: date | None = None, due_to: date | None = None) -> list[InvoiceRecord]:
        """Open and partially paid invoices, oldest due date first."""
        stmt = select(Invoice).where(Invoice.status.in_(ACTIVE_INVOICE_STATUSES))
        if due_from is not None:
            stmt = stmt.where(Invoice.due_date >= due_from)
        if due_to is not None:
            stmt = stmt.where(Invoice.due_date <= due_to)
        stmt = stmt.order_by(Invoice.due_date.asc(), Invoice.id.asc())

        with self.reading("fetch_open_invoices"):
            rows = self.db.scalars(stmt).all()
        return [
            InvoiceRecord(
                id=row.id,
                client_id=row.client_id,
                client_name=row.client_name,
                invoice_number=row.invoice_number,
                amount=row.amount,
                due_date=row.due_date,
                status=row.status,
            )
            for row in rows
        ]

    def fetch_promises(self, unresolved_only: bool = False) -> list[PaymentPromise]:
        stmt = select(PaymentPromise)
        if unresolved_only:
            stmt = stmt.where((PaymentPromise.fulfilled.is_(None)) | (PaymentPromise.fulfilled.is_(False)))
        stmt = stmt.order_by(PaymentPromise.promised_date.asc(), PaymentPromise.id.asc())
        with self.reading("fetch_promises"):
            return list(self.db.scalars(stmt).all())

    def fetch_active_promise_index(self) -> ActivePromiseIndex:
        stmt = select(PaymentPromise.client_id, PaymentPromise.invoice_id).where(
            (PaymentPromise.fulfilled.is_(None)) | (PaymentPromise.fulfilled.is_(False))
        )
        with self.reading("fetch_active_promise_index"):
            pairs = self.db.execute(stmt).all()
        return ActivePromiseIndex.from_pairs((client_id, invoice_id) for client_id, invoice_id in pairs)

    def fetch_action_counts(self) -> ActionCounts:
        by_invoice_stmt = (
            select(CollectionAction.invoice_id, func.count(CollectionAction.id))
            .where(CollectionAction.invoice_id.is_not(None))
            .group_by(CollectionAction.invoice_id)
        )
        by_client_stmt = (
            select(CollectionAction.client_id, func.count(CollectionAction.id))
            .where(CollectionAction.invoice_id.is_(None))
            .group_by(CollectionAction.client_id)
        )
        with self.reading("fetch_action_counts"):
            by_invoice = {invoice_id: count for invoice_id, count in self.db.execute(by_invoice_stmt).all()}
            by_client = {client_id: count for client_id, count in self.db.execute(by_client_stmt).all()}
        return ActionCounts(by_invoice=by_invoice, by_client=by_client)

    def client_names(self, client_ids: Iterable[int]) -> dict[int, str]:
        ids = sorted({cid for cid in client_ids if cid is not None})
        if not ids:
            return {}
        with self.reading("client_names"):
            rows = self.db.execute(select(Client.id, Client.name).where(Client.id.in_(ids))).all()
        return {client_id: name for client_id, name in rows}

    def invoice_numbers(self, invoice_ids: Iterable[int]) -> dict[int, str]:
        ids = sorted({iid for iid in invoice_ids if iid is not None})
        if not ids:
            return {}
        with self.reading("invoice_numbers"):
            rows = self.db.execute(select(Invoice.id, Invoice.invoice_number).where(Invoice.id.in_(ids))).all()
        return {invoice_id: number for invoice_id, number in rows}
