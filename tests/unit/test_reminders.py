"""Unit tests for suggested reminders and dashboard totals"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from debt_reminders.domain.alerts import summarize_alerts
from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.domain.models import (
    AlertItem,
    AlertKind,
    AlertsData,
    DebtRecord,
    DebtTerms,
    Direction,
    PersonRecord,
    Tone,
)
from debt_reminders.domain.reminders import SUGGESTED_TONE_BY_KIND, suggest_reminders, sum_open_totals

AS_OF = datetime(2024, 3, 13, 10, 30)


def make_item(kind, person_id="p-ana", person_phone=None, debt_id="d1"):
    return AlertItem(
        kind=kind,
        direction=Direction.RECEIVABLE,
        debt_id=debt_id,
        person_id=person_id,
        person_name="Ana",
        person_phone=person_phone,
        debt_title="Fiado",
        due_date=date(2024, 3, 10),
        promised_date=None,
        balance=Decimal("60.00"),
        total_due=Decimal("60.00"),
        priority=None,
    )


def make_alerts(items):
    return AlertsData(
        workspace_id="ws-1",
        as_of_local_date="2024-03-13",
        summary=summarize_alerts(items),
        items=items,
    )


def make_debt(debt_id, amount="100", due_date=None, direction=Direction.RECEIVABLE, **terms):
    return DebtRecord(
        terms=DebtTerms(
            id=debt_id,
            amount_original=Decimal(amount),
            issued_at=datetime(2024, 1, 1),
            due_date=due_date,
            **terms,
        ),
        person_id="p-ana",
        direction=direction,
    )


def test_reminder_id_is_kind_debt_and_day():
    reminders = suggest_reminders(make_alerts([make_item(AlertKind.OVERDUE, debt_id="d-42")]), {})

    assert reminders.workspace_id == "ws-1"
    assert reminders.as_of_local_date == "2024-03-13"
    assert reminders.items[0].id == "OVERDUE:d-42:2024-03-13"


@pytest.mark.parametrize(
    "kind,tone",
    [
        (AlertKind.OVERDUE, Tone.NORMAL),
        (AlertKind.PROMISE_TODAY, Tone.SOFT),
        (AlertKind.DUE_TODAY, Tone.SOFT),
        (AlertKind.DUE_SOON, Tone.SOFT),
        (AlertKind.HIGH_PRIORITY, Tone.STRONG),
    ],
)
def test_recommended_tone_by_kind(kind, tone):
    reminders = suggest_reminders(make_alerts([make_item(kind)]), {})

    assert reminders.items[0].recommended_tone == tone


def test_every_kind_has_a_tone():
    assert set(SUGGESTED_TONE_BY_KIND) == set(AlertKind)


def test_channels_follow_contact_details():
    """Phone enables whatsapp and sms, email only email"""
    items = [
        make_item(AlertKind.OVERDUE, person_id="p-phone", debt_id="d1"),
        make_item(AlertKind.DUE_SOON, person_id="p-mail", debt_id="d2"),
    ]
    persons = {
        "p-phone": PersonRecord(id="p-phone", name="Ana", phone="0991"),
        "p-mail": PersonRecord(id="p-mail", name="Beto", email="beto@x.test"),
    }

    reminders = suggest_reminders(make_alerts(items), persons)

    phone, mail = reminders.items
    assert (phone.channels.whatsapp, phone.channels.email, phone.channels.sms) == (True, False, True)
    assert (mail.channels.whatsapp, mail.channels.email, mail.channels.sms) == (False, True, False)
    assert phone.person_phone == "0991"


def test_missing_person_falls_back_to_alert_phone():
    reminders = suggest_reminders(make_alerts([make_item(AlertKind.OVERDUE, person_phone="0987")]), {})

    item = reminders.items[0]
    assert item.person_phone == "0987"
    assert item.channels.whatsapp is True
    assert item.channels.email is False


def test_reminders_keep_feed_order():
    items = [
        make_item(AlertKind.OVERDUE, debt_id="d1"),
        make_item(AlertKind.DUE_TODAY, debt_id="d2"),
        make_item(AlertKind.HIGH_PRIORITY, debt_id="d3"),
    ]

    reminders = suggest_reminders(make_alerts(items), {})

    assert [item.debt_id for item in reminders.items] == ["d1", "d2", "d3"]


def test_open_totals_split_by_due_date():
    debts = [
        make_debt("late", "100", due_date=date(2024, 3, 1)),
        make_debt("today", "30", due_date=datetime(2024, 3, 13, 23, 0)),
        make_debt("later", "20", due_date=date(2024, 4, 1)),
        make_debt("undated", "5"),
    ]

    totals = sum_open_totals(debts, {"late": Decimal("40")}, AS_OF)

    assert totals.receivable.total_open == Decimal("115.00")
    assert totals.receivable.overdue == Decimal("60.00")
    assert totals.receivable.due_today == Decimal("30.00")
    assert totals.payable.total_open == Decimal("0")


def test_settled_debts_are_left_out():
    debts = [
        make_debt("paid", "10", due_date=date(2024, 3, 1)),
        make_debt("over", "10", due_date=date(2024, 3, 1)),
    ]

    totals = sum_open_totals(debts, {"paid": Decimal("10"), "over": Decimal("15")}, AS_OF)

    assert totals.receivable.total_open == Decimal("0")
    assert totals.receivable.overdue == Decimal("0")


def test_open_totals_per_direction_include_interest():
    """2% monthly on 100 for two whole months"""
    debts = [
        make_debt("owed", "100", due_date=date(2024, 3, 1), direction=Direction.PAYABLE,
                  has_interest=True, interest_rate_pct=Decimal("2")),
        make_debt("lent", "50", due_date=date(2024, 3, 20)),
    ]

    totals = sum_open_totals(debts, {}, AS_OF)

    assert totals.payable.total_open == Decimal("104.00")
    assert totals.payable.overdue == Decimal("104.00")
    assert totals.receivable.total_open == Decimal("50.00")
    assert totals.receivable.overdue == Decimal("0")


def test_open_totals_reject_malformed_terms():
    debts = [make_debt("bad", "100", has_interest=True, interest_rate_pct=Decimal("5"), interest_period="weekly")]

    with pytest.raises(InvalidDebtTermsError):
        sum_open_totals(debts, {}, AS_OF)
