"""Stage validation and readiness schemas."""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class ValidationReason(str, enum.Enum):
    """Why a validation came out the way it did."""

    NOT_FOUND = "not_found"
    UNRESTRICTED = "unrestricted"
    NOT_FORWARD = "not_forward"
    PREREQUISITES_MET = "prerequisites_met"
    SKIPPED = "skipped"
    BLOCKED = "blocked"


class PrerequisiteResult(BaseModel):
    field: str
    passed: bool
    message: str


class StageValidationResult(BaseModel):
    allowed: bool
    current_stage: str
    target_stage: str
    reason: ValidationReason
    unmet_prerequisites: list[PrerequisiteResult] = Field(default_factory=list)
    all_prerequisites: list[PrerequisiteResult] = Field(default_factory=list)

    @property
    def unmet_fields(self) -> list[str]:
        return [item.field for item in self.unmet_prerequisites]


class StageReadiness(BaseModel):
    stage: str
    label: str
    ordinal: int
    is_current_stage: bool
    is_unrestricted: bool
    can_skip: bool
    can_progress: bool
    prerequisites: list[PrerequisiteResult] = Field(default_factory=list)
    blocking: list[PrerequisiteResult] = Field(default_factory=list)


class JobSignals(BaseModel):
    quoted_value: Decimal | None = None
    deposit_required: bool = False
    deposit_received: bool = False
    quote_response: str | None = None
    has_quote_items: bool = False
    has_survey_scheduled: bool = False
    has_work_scheduled: bool = False
    has_invoice: bool = False
    paid_amount: Decimal = Decimal("0")
    is_paid_in_full: bool = False


class JobReadinessReport(BaseModel):
    job_id: int
    current_stage: str
    ruleset_version: str
    stages: list[StageReadiness]
    signals: JobSignals

    def stage(self, stage: Any) -> StageReadiness | None:
        key = getattr(stage, "value", stage)
        return next((item for item in self.stages if item.stage == key), None)
