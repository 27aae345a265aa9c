"""Stage resolution over a declarative stage catalog.

Both resolvers scan the catalog in declaration order and only replace the
running candidate on a strictly better offset, so ties on ``offset_days``
always resolve to the stage declared first.
"""

from __future__ import annotations

from decimal import Decimal

from collectflow.core.schemas import StageDefinition, WorkflowConfiguration


def current_stage(days_overdue: int, config: WorkflowConfiguration) -> StageDefinition | None:
    """Latest stage already reached: greatest ``offset_days <= days_overdue``."""
    best: StageDefinition | None = None
    for stage in config.stages:
        if stage.offset_days > days_overdue:
            continue
        if best is None or stage.offset_days > best.offset_days:
            best = stage
    return best


def next_stage(days_overdue: int, config: WorkflowConfiguration) -> StageDefinition | None:
    """Soonest stage not yet reached: smallest ``offset_days > days_overdue``."""
    best: StageDefinition | None = None
    for stage in config.stages:
        if stage.offset_days <= days_overdue:
            continue
        if best is None or stage.offset_days < best.offset_days:
            best = stage
    return best


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _format_amount(amount: Decimal | float | int) -> str:
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def render_message(
    stage: StageDefinition,
    invoice_number: str | None,
    amount: Decimal | float | int,
    client_name: str | None,
) -> str:
    """Fill a stage's message template. Unknown placeholders are left as written."""
    values = _KeepMissing(
        invoice_number=invoice_number or "",
        amount=_format_amount(amount),
        client_name=client_name or "",
    )
    try:
        return stage.message_template.format_map(values)
    except (ValueError, IndexError):
        # Malformed braces or positional fields; show the template untouched.
        return stage.message_template
