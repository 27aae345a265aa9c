from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from collectflow.core.enums import InvoiceStatus
from collectflow.database.models import Base, Client, Invoice, PaymentPromise
from collectflow.workflow.cache import SnapshotCache


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def cache():
    return SnapshotCache(ttl_seconds=120, view_ttls={"promises": 60})


@pytest.fixture
def seeded_ledger(session):
    """Three clients, five invoices (one paid) and three promises as of 2026-03-15."""
    acme = Client(name="Acme Corp")
    globex = Client(name="Globex")
    initech = Client(name="Initech")
    session.add_all([acme, globex, initech])
    session.commit()

    invoices = {
        "acme_old": Invoice(
            client_id=acme.id, client_name=acme.name, invoice_number="A-001",
            amount=Decimal("1200.00"), due_date=date(2026, 1, 5), status=InvoiceStatus.OPEN.value,
        ),
        "acme_partial": Invoice(
            client_id=acme.id, client_name=acme.name, invoice_number="A-002",
            amount=Decimal("800.00"), due_date=date(2026, 2, 10), status=InvoiceStatus.PARTIALLY_PAID.value,
        ),
        "globex_recent": Invoice(
            client_id=globex.id, client_name=globex.name, invoice_number="G-001",
            amount=Decimal("300.00"), due_date=date(2026, 3, 12), status=InvoiceStatus.OPEN.value,
        ),
        "globex_paid": Invoice(
            client_id=globex.id, client_name=globex.name, invoice_number="G-002",
            amount=Decimal("5000.00"), due_date=date(2026, 1, 1), status=InvoiceStatus.PAID.value,
        ),
        "initech_large": Invoice(
            client_id=initech.id, client_name=initech.name, invoice_number="I-001",
            amount=Decimal("60000.00"), due_date=date(2026, 3, 20), status=InvoiceStatus.OPEN.value,
        ),
    }
    session.add_all(invoices.values())
    session.commit()

    promises = {
        "acme_pending": PaymentPromise(
            client_id=acme.id, invoice_id=invoices["acme_old"].id,
            amount=Decimal("600.00"), promised_date=date(2026, 3, 20), fulfilled=None,
        ),
        "globex_broken": PaymentPromise(
            client_id=globex.id, invoice_id=None,
            amount=Decimal("300.00"), promised_date=date(2026, 3, 1), fulfilled=None,
        ),
        "acme_kept": PaymentPromise(
            client_id=acme.id, invoice_id=invoices["acme_partial"].id,
            amount=Decimal("400.00"), promised_date=date(2026, 3, 10), fulfilled=True,
        ),
    }
    session.add_all(promises.values())
    session.commit()

    return {
        "clients": {"acme": acme.id, "globex": globex.id, "initech": initech.id},
        "invoices": {key: inv.id for key, inv in invoices.items()},
        "promises": {key: p.id for key, p in promises.items()},
    }
