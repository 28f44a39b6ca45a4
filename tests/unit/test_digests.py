"""Unit tests for digest composition"""

from datetime import date
from decimal import Decimal
from debt_reminders.domain.alerts import summarize_alerts
from debt_reminders.domain.digests import (
    build_daily_digests,
    build_weekly_digest,
    format_currency,
    pick_tone,
    render_template,
)
from debt_reminders.domain.models import (
    AlertItem,
    AlertKind,
    AlertsData,
    Channel,
    Direction,
    ReminderTemplate,
    Tone,
)


def make_item(kind, person_id="p-ana", person_name="Ana", balance="60", due_date=date(2024, 3, 10), **kwargs):
    fields = {
        "kind": kind,
        "direction": Direction.RECEIVABLE,
        "debt_id": f"d-{person_id}-{kind.value}",
        "person_id": person_id,
        "person_name": person_name,
        "person_phone": None,
        "debt_title": "Fiado",
        "due_date": due_date,
        "promised_date": None,
        "balance": Decimal(balance),
        "total_due": Decimal(balance),
        "priority": None,
    }
    fields.update(kwargs)
    return AlertItem(**fields)


def make_alerts(items):
    return AlertsData(workspace_id="ws-1", as_of_local_date="2024-03-13", summary=summarize_alerts(items), items=items)


def no_templates(tone):
    return None


def test_render_template_replaces_every_occurrence():
    assert render_template("{a} y {a} con {b}", {"a": "x", "b": "y"}) == "x y x con y"


def test_render_template_leaves_unknown_placeholders():
    assert render_template("Hola {personName} {unknown}", {"personName": "Ana"}) == "Hola Ana {unknown}"


def test_format_currency():
    assert format_currency(Decimal("5")) == "$5.00"
    assert format_currency(Decimal("1234.565")) == "$1234.57"


def test_pick_tone_is_harshest():
    assert pick_tone([make_item(AlertKind.DUE_SOON), make_item(AlertKind.OVERDUE)]) == Tone.STRONG
    assert pick_tone([make_item(AlertKind.DUE_SOON), make_item(AlertKind.PROMISE_TODAY)]) == Tone.NORMAL
    assert pick_tone([make_item(AlertKind.HIGH_PRIORITY)]) == Tone.NORMAL
    assert pick_tone([make_item(AlertKind.DUE_SOON)]) == Tone.SOFT


def test_daily_digest_per_person():
    """One digest per person, grouped from the ranked item list"""
    items = [
        make_item(AlertKind.OVERDUE, balance="60"),
        make_item(AlertKind.DUE_TODAY, person_id="p-beto", person_name="Beto", balance="30"),
        make_item(AlertKind.DUE_SOON, balance="20", due_date=date(2024, 3, 15)),
    ]

    digests = build_daily_digests(make_alerts(items), "Tienda Lupita", no_templates)

    assert [(d.person_name, d.tone) for d in digests] == [("Ana", Tone.STRONG), ("Beto", Tone.NORMAL)]
    assert digests[0].person_id == "p-ana"


def test_daily_digest_default_copy_and_item_lines():
    items = [
        make_item(AlertKind.OVERDUE, balance="60"),
        make_item(AlertKind.DUE_SOON, balance="20", due_date=None),
    ]

    digest = build_daily_digests(make_alerts(items), "Tienda Lupita", no_templates)[0]

    assert digest.subject == "Recordatorios Tienda Lupita - Ana"
    assert digest.text.startswith("Hola Ana. Te notifico que el saldo pendiente de $60.00 esta vencido.")
    assert "Workspace: Tienda Lupita\nTono: strong\n\n" in digest.text
    assert "- Ana | Fiado | saldo $60.00 | vence 2024-03-10" in digest.text
    assert "- Ana | Fiado | saldo $20.00 | vence sin fecha" in digest.text


def test_daily_digest_uses_workspace_template():
    templates = {
        Tone.NORMAL: ReminderTemplate(
            channel=Channel.EMAIL,
            tone=Tone.NORMAL,
            title="Pago de {personName}",
            body="{personName}, prometiste pagar {totalDue} el {promisedDate} en {workspaceName}",
        )
    }
    items = [make_item(AlertKind.PROMISE_TODAY, balance="45.5", promised_date=date(2024, 3, 13))]

    digest = build_daily_digests(make_alerts(items), "Tienda Lupita", templates.get)[0]

    assert digest.subject == "Pago de Ana"
    assert digest.text.startswith("Ana, prometiste pagar $45.50 el 2024-03-13 en Tienda Lupita\n\n")


def test_template_without_title_keeps_default_subject():
    templates = {Tone.SOFT: ReminderTemplate(channel=Channel.EMAIL, tone=Tone.SOFT, body="Hola {personName}")}
    items = [make_item(AlertKind.DUE_SOON)]

    digest = build_daily_digests(make_alerts(items), "Tienda Lupita", templates.get)[0]

    assert digest.subject == "Recordatorios Tienda Lupita - Ana"
    assert digest.text.startswith("Hola Ana\n\n")


def test_missing_promise_renders_dash():
    templates = {Tone.STRONG: ReminderTemplate(channel=Channel.EMAIL, tone=Tone.STRONG, body="[{promisedDate}]")}

    digest = build_daily_digests(make_alerts([make_item(AlertKind.OVERDUE)]), "T", templates.get)[0]

    assert digest.text.startswith("[-]")


def test_daily_digest_html_is_escaped():
    items = [make_item(AlertKind.OVERDUE, person_name="<Ana & Co>")]

    digest = build_daily_digests(make_alerts(items), "Tienda", no_templates)[0]

    assert "<Ana & Co>" not in digest.html
    assert "&lt;Ana &amp; Co&gt;" in digest.html


def test_no_items_no_daily_digests():
    assert build_daily_digests(make_alerts([]), "Tienda", no_templates) == []


def test_weekly_digest_summary_and_top_items():
    items = [make_item(AlertKind.OVERDUE, person_id=f"p{i}", person_name=f"P{i}") for i in range(12)]
    items.append(
        make_item(AlertKind.DUE_SOON, person_id="q", person_name="Q", direction=Direction.PAYABLE)
    )

    digest = build_weekly_digest(make_alerts(items), "Tienda Lupita", top_items=10)

    assert digest.subject == "Resumen semanal Tienda Lupita"
    assert "Receivable: overdue 12, dueToday 0, dueSoon 0, highPriority 0, promiseToday 0" in digest.text
    assert "Payable: overdue 0, dueToday 0, dueSoon 1, highPriority 0, promiseToday 0" in digest.text
    top_section = digest.text.split("Top items:\n")[1]
    assert len(top_section.splitlines()) == 10


def test_no_items_no_weekly_digest():
    assert build_weekly_digest(make_alerts([]), "Tienda") is None
