"""Ledger, status-change and finance report schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from jobline.schemas.stages import StageValidationResult


class LedgerOutcome(BaseModel):
    """Result of a ledger side effect. ``warning`` is set when nothing was written."""

    recorded: bool
    transaction_id: int | None = None
    warning: str | None = None


class StatusChangeResult(BaseModel):
    job_id: int
    applied: bool
    old_status: str | None = None
    new_status: str
    validation: StageValidationResult | None = None
    ledger: list[LedgerOutcome] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class OutstandingFee(BaseModel):
    callout_id: int
    incident_type: str
    partner_id: int | None = None
    partner_name: str | None = None
    job_id: int | None = None
    total_collected: Decimal
    callout_fee_amount: Decimal


class PartnerFeeBalance(BaseModel):
    partner_id: int
    partner_name: str
    outstanding_count: int
    outstanding_total: Decimal


class PartnerVolume(BaseModel):
    partner_id: int
    business_name: str
    total_value: Decimal
    job_count: int
    ccc_margin: Decimal


class PartnerJobVolume(BaseModel):
    total_volume: Decimal
    total_margin: Decimal
    total_job_count: int
    partners: list[PartnerVolume] = Field(default_factory=list)


class FinancialSummary(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    total_profit: Decimal
    outstanding_fees: Decimal
