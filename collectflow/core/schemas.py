"""Pydantic schemas for the workflow configuration document and ledger writes."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from collectflow.core.config import get_config
from collectflow.core.enums import ActionType, Priority
from collectflow.core.exceptions import ConfigurationError, ValidationError


class StageDefinition(BaseModel):
    """One point on the escalation timeline, relative to the invoice due date."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    offset_days: int
    action_type: ActionType
    priority: Priority
    message_template: str = ""
    auto_execute: bool = False

    @field_validator("name")
    @classmethod
    def name_is_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("stage name must not be blank")
        return value


class WorkflowConfiguration(BaseModel):
    """Stage catalog plus thresholds. Immutable for the duration of a computation."""

    model_config = ConfigDict(frozen=True)

    stages: tuple[StageDefinition, ...] = ()
    grace_days: int = Field(default=3, ge=0)
    reminder_frequency_days: int = Field(default=7, ge=0)
    auto_escalate: bool = True
    notify_supervisor: bool = True
    critical_amount_threshold: Decimal = Field(default=Decimal("50000"), ge=0)

    @model_validator(mode="after")
    def stage_ids_are_unique(self) -> "WorkflowConfiguration":
        seen: set[str] = set()
        for stage in self.stages:
            if stage.id in seen:
                raise ValueError(f"duplicate stage id: {stage.id}")
            seen.add(stage.id)
        return self


DEFAULT_WORKFLOW_CONFIG = WorkflowConfiguration(
    stages=(
        StageDefinition(
            id="pre-3",
            name="Pre-due reminder",
            offset_days=-3,
            action_type=ActionType.REMINDER,
            priority=Priority.LOW,
            message_template="Reminder: invoice {invoice_number} is due in 3 days for ${amount}",
            auto_execute=True,
        ),
        StageDefinition(
            id="day-0",
            name="Due date notice",
            offset_days=0,
            action_type=ActionType.EMAIL,
            priority=Priority.MEDIUM,
            message_template="Invoice {invoice_number} is due today. Amount: ${amount}",
            auto_execute=True,
        ),
        StageDefinition(
            id="post-7",
            name="First collection call",
            offset_days=7,
            action_type=ActionType.CALL,
            priority=Priority.MEDIUM,
            message_template="Call to follow up on invoice {invoice_number}, 7 days overdue",
            auto_execute=False,
        ),
        StageDefinition(
            id="post-15",
            name="Second call - negotiation",
            offset_days=15,
            action_type=ActionType.CALL,
            priority=Priority.HIGH,
            message_template="Urgent second call. Negotiate a payment plan for {invoice_number}",
            auto_execute=False,
        ),
        StageDefinition(
            id="post-30",
            name="Supervisor escalation",
            offset_days=30,
            action_type=ActionType.ESCALATION,
            priority=Priority.HIGH,
            message_template="Escalation: {client_name} is 30+ days overdue. Amount: ${amount}",
            auto_execute=True,
        ),
        StageDefinition(
            id="post-60",
            name="Pre-legal notice",
            offset_days=60,
            action_type=ActionType.EMAIL,
            priority=Priority.CRITICAL,
            message_template="Formal notice: legal collection will begin unless the account is settled",
            auto_execute=False,
        ),
        StageDefinition(
            id="post-90",
            name="Legal proceedings",
            offset_days=90,
            action_type=ActionType.LEGAL,
            priority=Priority.CRITICAL,
            message_template="Start legal collection proceedings for {client_name}",
            auto_execute=False,
        ),
    ),
    grace_days=3,
    reminder_frequency_days=7,
    auto_escalate=True,
    notify_supervisor=True,
    critical_amount_threshold=Decimal("50000"),
)


def parse_workflow_config(payload: str | dict[str, Any]) -> WorkflowConfiguration:
    """Validate a whole configuration document, raising ConfigurationError on any defect."""
    try:
        if isinstance(payload, str):
            return WorkflowConfiguration.model_validate_json(payload)
        return WorkflowConfiguration.model_validate(payload)
    except PydanticValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def load_workflow_config(path: str | Path | None = None) -> WorkflowConfiguration:
    """Load the workflow configuration from ``path``, the configured path, or the defaults."""
    resolved = path or get_config().WORKFLOW_CONFIG_PATH
    if not resolved:
        return DEFAULT_WORKFLOW_CONFIG
    try:
        raw = Path(resolved).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read workflow config at {resolved}: {exc}") from exc
    return parse_workflow_config(raw)


class PromiseCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: int = Field(ge=1)
    invoice_id: int | None = Field(default=None, ge=1)
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    promised_date: date
    contact_name: str | None = Field(default=None, max_length=200)
    contact_phone: str | None = Field(default=None, max_length=40)
    description: str | None = Field(default=None, max_length=4000)


class PartialPaymentRequest(BaseModel):
    amount_received: Decimal = Field(gt=0, max_digits=14, decimal_places=2)


class ActionCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: int = Field(ge=1)
    invoice_id: int | None = Field(default=None, ge=1)
    action_type: str = Field(min_length=1, max_length=40)
    description: str = Field(min_length=1, max_length=4000)
    outcome: str | None = Field(default=None, max_length=200)
    contact_name: str | None = Field(default=None, max_length=200)
    contact_phone: str | None = Field(default=None, max_length=40)
    next_action_date: date | None = None


def validate_request(model_cls: type[BaseModel], **data: Any) -> BaseModel:
    """Validate write input, translating pydantic errors into ValidationError."""
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc
