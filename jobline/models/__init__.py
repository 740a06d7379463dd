"""SQLAlchemy model package for the job lifecycle schema."""

from jobline.models.base import Base
from jobline.models.callout import EmergencyCallout
from jobline.models.document import Invoice, QuoteLineItem
from jobline.models.enums import (
    AmountType,
    BookingStatus,
    CalendarEventType,
    CalloutStatus,
    DeliveryType,
    DocumentStatus,
    DocumentType,
    JobStage,
    PartnerQuoteStatus,
    PaymentType,
    ProposalStatus,
    QuoteResponse,
    QuoteType,
    SurveyStatus,
    TransactionSource,
    TransactionType,
)
from jobline.models.job import Job
from jobline.models.ledger import FinancialTransaction, JobClientPayment
from jobline.models.party import Contact, Partner
from jobline.models.schedule import CalendarEvent, JobScheduleProposal
from jobline.models.stage_audit import JobStageAudit
from jobline.models.survey import JobSurvey

__all__ = [
    "AmountType",
    "Base",
    "BookingStatus",
    "CalendarEvent",
    "CalendarEventType",
    "CalloutStatus",
    "Contact",
    "DeliveryType",
    "DocumentStatus",
    "DocumentType",
    "EmergencyCallout",
    "FinancialTransaction",
    "Invoice",
    "Job",
    "JobClientPayment",
    "JobScheduleProposal",
    "JobStage",
    "JobStageAudit",
    "JobSurvey",
    "Partner",
    "PartnerQuoteStatus",
    "PaymentType",
    "ProposalStatus",
    "QuoteLineItem",
    "QuoteResponse",
    "QuoteType",
    "SurveyStatus",
    "TransactionSource",
    "TransactionType",
]
