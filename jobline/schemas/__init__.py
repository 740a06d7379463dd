"""Pydantic schemas for engine inputs and results."""

from jobline.schemas.commission import CalloutFeeTerms, MarginSplit
from jobline.schemas.ledger import (
    FinancialSummary,
    LedgerOutcome,
    OutstandingFee,
    PartnerFeeBalance,
    PartnerJobVolume,
    PartnerVolume,
    StatusChangeResult,
)
from jobline.schemas.pricing import (
    DepositConfig,
    DiscountConfig,
    LineItemInput,
    PricedLine,
    QuoteTotals,
    TaxConfig,
)
from jobline.schemas.stages import (
    JobReadinessReport,
    JobSignals,
    PrerequisiteResult,
    StageReadiness,
    StageValidationResult,
    ValidationReason,
)

__all__ = [
    "CalloutFeeTerms",
    "DepositConfig",
    "DiscountConfig",
    "FinancialSummary",
    "JobReadinessReport",
    "JobSignals",
    "LedgerOutcome",
    "LineItemInput",
    "MarginSplit",
    "OutstandingFee",
    "PartnerFeeBalance",
    "PartnerJobVolume",
    "PartnerVolume",
    "PricedLine",
    "PrerequisiteResult",
    "QuoteTotals",
    "StageReadiness",
    "StageValidationResult",
    "StatusChangeResult",
    "TaxConfig",
    "ValidationReason",
]
