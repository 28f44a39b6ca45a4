"""Digest composer - daily per-person reminders and the weekly workspace summary"""

import html
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from debt_reminders.domain.ledger import round2
from debt_reminders.domain.models import (
    AlertCounts,
    AlertItem,
    AlertKind,
    AlertsData,
    Channel,
    DailyDigest,
    ReminderTemplate,
    Tone,
    WeeklyDigest,
)

TemplateLookup = Callable[[Tone], Optional[ReminderTemplate]]

TONE_BY_KIND: Dict[AlertKind, Tone] = {
    AlertKind.OVERDUE: Tone.STRONG,
    AlertKind.PROMISE_TODAY: Tone.NORMAL,
    AlertKind.DUE_TODAY: Tone.NORMAL,
    AlertKind.HIGH_PRIORITY: Tone.NORMAL,
    AlertKind.DUE_SOON: Tone.SOFT,
}

TONE_PRIORITY: Dict[Tone, int] = {
    Tone.STRONG: 0,
    Tone.NORMAL: 1,
    Tone.SOFT: 2,
}

# Used when the workspace has no template row for the tone
DEFAULT_TEMPLATES: Dict[Tone, ReminderTemplate] = {
    Tone.SOFT: ReminderTemplate(
        channel=Channel.EMAIL,
        tone=Tone.SOFT,
        body=(
            "Hola {personName}, espero estes bien. Te escribo para recordarte el saldo "
            "pendiente de {balance}. Me confirmas cuando podrias ponerte al dia? Gracias."
        ),
    ),
    Tone.NORMAL: ReminderTemplate(
        channel=Channel.EMAIL,
        tone=Tone.NORMAL,
        body=(
            "Hola {personName}. Te recuerdo que tienes un saldo pendiente de {balance} "
            "con vencimiento {dueDate}. Quedo atento a tu pago."
        ),
    ),
    Tone.STRONG: ReminderTemplate(
        channel=Channel.EMAIL,
        tone=Tone.STRONG,
        body=(
            "Hola {personName}. Te notifico que el saldo pendiente de {balance} esta vencido. "
            "Por favor regulariza el pago hoy para evitar inconvenientes."
        ),
    ),
}

ITEM_LINE = "- {personName} | {debtTitle} | saldo {balance} | vence {dueDate}"
NO_DUE_DATE = "sin fecha"
NO_PROMISE = "-"


def format_currency(amount: Decimal) -> str:
    return f"${round2(amount)}"


def format_local_date(value: Optional[date], missing: str = NO_DUE_DATE) -> str:
    return value.isoformat() if value is not None else missing


def render_template(text: str, variables: Dict[str, str]) -> str:
    """Replace every {name} placeholder; unknown placeholders are left as is"""
    output = text
    for key, value in variables.items():
        output = output.replace("{" + key + "}", value)
    return output


def build_variables(item: AlertItem, workspace_name: str) -> Dict[str, str]:
    return {
        "personName": item.person_name,
        "balance": format_currency(item.balance),
        "totalDue": format_currency(item.total_due),
        "debtTitle": item.debt_title,
        "dueDate": format_local_date(item.due_date),
        "promisedDate": format_local_date(item.promised_date, missing=NO_PROMISE),
        "workspaceName": workspace_name,
    }


def pick_tone(items: List[AlertItem]) -> Tone:
    """Harshest tone any of the items calls for"""
    return min((TONE_BY_KIND[item.kind] for item in items), key=TONE_PRIORITY.__getitem__)


def render_item_lines(items: List[AlertItem], workspace_name: str) -> List[str]:
    return [render_template(ITEM_LINE, build_variables(item, workspace_name)) for item in items]


def render_items_text(items: List[AlertItem], workspace_name: str, tone: Tone) -> str:
    lines = "\n".join(render_item_lines(items, workspace_name))
    return f"Workspace: {workspace_name}\nTono: {tone.value}\n\n{lines}"


def group_by_person(items: List[AlertItem]) -> Dict[str, List[AlertItem]]:
    """Items per person, keeping the classifier's order inside each group"""
    grouped: Dict[str, List[AlertItem]] = {}
    for item in items:
        grouped.setdefault(item.person_id, []).append(item)
    return grouped


def build_daily_digests(
    alerts: AlertsData,
    workspace_name: str,
    template_lookup: TemplateLookup,
) -> List[DailyDigest]:
    """
    One digest per person with at least one alert.

    The message template is chosen by the harshest tone among the person's
    alerts and filled in from their most urgent item; the full list of open
    alerts follows it. Returns an empty list when there is nothing to send.
    """
    digests: List[DailyDigest] = []

    for person_id, items in group_by_person(alerts.items).items():
        tone = pick_tone(items)
        template = template_lookup(tone)
        top_item = items[0]
        variables = build_variables(top_item, workspace_name)
        items_text = render_items_text(items, workspace_name, tone)

        if template is not None and template.title:
            subject = render_template(template.title, variables)
        else:
            subject = f"Recordatorios {workspace_name} - {top_item.person_name}"

        message = render_template((template or DEFAULT_TEMPLATES[tone]).body, variables)
        text = f"{message}\n\n{items_text}"
        html_body = f"<p>{html.escape(message)}</p><hr/><pre>{html.escape(items_text)}</pre>"

        digests.append(
            DailyDigest(
                person_id=person_id,
                person_name=top_item.person_name,
                tone=tone,
                subject=subject,
                text=text,
                html=html_body,
            )
        )

    return digests


def format_counts(label: str, counts: AlertCounts) -> str:
    return (
        f"{label}: overdue {counts.overdue_count}, dueToday {counts.due_today_count}, "
        f"dueSoon {counts.due_soon_count}, highPriority {counts.high_priority_count}, "
        f"promiseToday {counts.promise_today_count}"
    )


def build_weekly_digest(
    alerts: AlertsData,
    workspace_name: str,
    top_items: int = 10,
) -> Optional[WeeklyDigest]:
    """Workspace-wide summary counts plus the most urgent items, or None without alerts"""
    if not alerts.items:
        return None

    lines = [
        f"Workspace: {workspace_name}",
        format_counts("Receivable", alerts.summary.receivable),
        format_counts("Payable", alerts.summary.payable),
    ]
    top_lines = render_item_lines(alerts.items[:top_items], workspace_name)

    text = "\n".join(lines) + "\n\nTop items:\n" + "\n".join(top_lines)
    return WeeklyDigest(
        subject=f"Resumen semanal {workspace_name}",
        text=text,
        html=f"<pre>{html.escape(text)}</pre>",
    )
