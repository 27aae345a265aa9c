from __future__ import annotations

from datetime import date, timedelta

import pytest

from collectflow.core.exceptions import ValidationError
from collectflow.database.models import CollectionAction
from collectflow.services.action_service import ActionRecorder
from collectflow.workflow.cache import PROMISES_VIEW, WORKFLOWS_VIEW

TODAY = date(2026, 3, 15)


def test_record_appends_action_with_optional_fields(session, cache, seeded_ledger):
    recorder = ActionRecorder(db=session, cache=cache)
    action_id = recorder.record(
        client_id=seeded_ledger["clients"]["acme"],
        invoice_id=seeded_ledger["invoices"]["acme_old"],
        action_type="call",
        description="  Spoke with accounts payable  ",
        outcome="promised_payment",
        contact_name="Jane Doe",
        contact_phone="555-0101",
        next_action_date=TODAY + timedelta(days=3),
    )

    action = session.get(CollectionAction, action_id)
    assert action.action_type == "call"
    assert action.description == "Spoke with accounts payable"
    assert action.outcome == "promised_payment"
    assert action.next_action_date == TODAY + timedelta(days=3)
    assert action.created_at is not None


def test_action_type_outside_stage_catalog_is_accepted(session, cache, seeded_ledger):
    recorder = ActionRecorder(db=session, cache=cache)
    action_id = recorder.record(
        client_id=seeded_ledger["clients"]["globex"],
        action_type="site_visit",
        description="Visited the client office",
    )
    assert session.get(CollectionAction, action_id).invoice_id is None


@pytest.mark.parametrize(
    ("action_type", "description"),
    [("", "Called"), ("call", ""), ("   ", "Called"), ("call", "   ")],
)
def test_blank_type_or_description_is_rejected_before_write(session, cache, seeded_ledger, action_type, description):
    recorder = ActionRecorder(db=session, cache=cache)
    with pytest.raises(ValidationError):
        recorder.record(
            client_id=seeded_ledger["clients"]["acme"],
            action_type=action_type,
            description=description,
        )
    assert session.query(CollectionAction).count() == 0


def test_record_invalidates_only_workflow_view(session, cache, seeded_ledger):
    cache.put(WORKFLOWS_VIEW, "snapshot", value=["stale"])
    cache.put(PROMISES_VIEW, "snapshot", value=["still fresh"])

    ActionRecorder(db=session, cache=cache).record(
        client_id=seeded_ledger["clients"]["acme"],
        action_type="email",
        description="Sent statement",
    )

    assert cache.get(WORKFLOWS_VIEW, "snapshot") is None
    assert cache.get(PROMISES_VIEW, "snapshot") == ["still fresh"]


def test_history_and_agenda_queries(session, cache, seeded_ledger):
    recorder = ActionRecorder(db=session, cache=cache)
    acme = seeded_ledger["clients"]["acme"]
    globex = seeded_ledger["clients"]["globex"]
    first = recorder.record(client_id=acme, action_type="email", description="First", next_action_date=TODAY)
    second = recorder.record(client_id=acme, action_type="call", description="Second",
                             next_action_date=TODAY + timedelta(days=1))
    third = recorder.record(client_id=globex, action_type="call", description="Third", next_action_date=TODAY)

    history = recorder.list_actions(client_id=acme)
    assert {a.id for a in history} == {first, second}
    assert [a.id for a in recorder.list_scheduled(TODAY)] == [first, third]
