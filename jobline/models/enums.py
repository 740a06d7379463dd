"""Canonical enum values for the job lifecycle schema."""

from __future__ import annotations

import enum


class JobStage(str, enum.Enum):
    """Pipeline stages. Declaration order is pipeline order."""

    NEW_ENQUIRY = "new_enquiry"
    CONTACTED = "contacted"
    SURVEY_BOOKED = "survey_booked"
    QUOTING = "quoting"
    QUOTE_SENT = "quote_sent"
    FOLLOW_UP = "follow_up"
    QUOTE_ACCEPTED = "quote_accepted"
    DEPOSIT_REQUESTED = "deposit_requested"
    DEPOSIT_PAID = "deposit_paid"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INVOICE_SENT = "invoice_sent"
    PAID = "paid"
    CLOSED = "closed"
    LOST = "lost"


class DeliveryType(str, enum.Enum):
    IN_HOUSE = "in_house"
    PARTNER = "partner"
    HYBRID = "hybrid"


class QuoteType(str, enum.Enum):
    FIXED = "fixed"
    ESTIMATE = "estimate"


class QuoteResponse(str, enum.Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"


class AmountType(str, enum.Enum):
    """How a discount, deposit or partner charge value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PartnerQuoteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class DocumentType(str, enum.Enum):
    QUOTE = "quote"
    INVOICE = "invoice"


class DocumentStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    PAID = "paid"
    VOID = "void"


class SurveyStatus(str, enum.Enum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class BookingStatus(str, enum.Enum):
    PENDING_CLIENT = "pending_client"
    CLIENT_ACCEPTED = "client_accepted"
    CLIENT_DECLINED = "client_declined"
    CLIENT_COUNTER = "client_counter"
    CONFIRMED = "confirmed"


class ProposalStatus(str, enum.Enum):
    PENDING_CLIENT = "pending_client"
    SCHEDULED = "scheduled"
    CLIENT_COUNTERED = "client_countered"
    DECLINED = "declined"
    CONFIRMED = "confirmed"


class CalendarEventType(str, enum.Enum):
    PROJECT_START = "project_start"
    SURVEY = "survey"
    OTHER = "other"


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionSource(str, enum.Enum):
    JOB_PAYMENT = "job_payment"
    JOB_COMPLETION = "job_completion"
    CALLOUT_FEE = "callout_fee"
    MANUAL = "manual"


class PaymentType(str, enum.Enum):
    DEPOSIT = "deposit"
    BALANCE = "balance"
    OTHER = "other"


class CalloutStatus(str, enum.Enum):
    OPEN = "open"
    COMPLETED = "completed"
