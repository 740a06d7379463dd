from __future__ import annotations

from decimal import Decimal

import pytest

from jobline.lifecycle.enricher import EnrichedJob
from jobline.lifecycle.validator import StageTransitionValidator
from jobline.models.enums import JobStage
from jobline.schemas.stages import ValidationReason


class _StaticEnricher:
    def __init__(self, job: EnrichedJob | None) -> None:
        self.job = job

    def enrich(self, job_id: int) -> EnrichedJob | None:
        return self.job


def _validator(job: EnrichedJob | None = None) -> StageTransitionValidator:
    return StageTransitionValidator(enricher=_StaticEnricher(job))


def test_validator_needs_session_or_enricher():
    with pytest.raises(ValueError):
        StageTransitionValidator()


@pytest.mark.parametrize("current", [stage.value for stage in JobStage] + ["quoted"])
@pytest.mark.parametrize("target", [JobStage.LOST, JobStage.CLOSED, JobStage.FOLLOW_UP])
def test_unrestricted_stage_reachable_from_anywhere(current, target):
    job = EnrichedJob(job_id=1, status=current)
    result = _validator().evaluate(job, target)
    assert result.allowed is True
    assert result.reason == ValidationReason.UNRESTRICTED
    assert result.unmet_prerequisites == []


def test_backward_transition_skips_prerequisites():
    job = EnrichedJob(job_id=1, status=JobStage.PAID.value)
    result = _validator().evaluate(job, JobStage.SURVEY_BOOKED)
    assert result.allowed is True
    assert result.reason == ValidationReason.NOT_FORWARD


def test_lateral_transition_is_allowed():
    job = EnrichedJob(job_id=1, status=JobStage.QUOTE_SENT.value)
    result = _validator().evaluate(job, JobStage.QUOTE_SENT)
    assert result.allowed is True
    assert result.reason == ValidationReason.NOT_FORWARD


def test_forward_transition_reports_exact_unmet_list():
    job = EnrichedJob(job_id=1, status=JobStage.QUOTING.value)
    result = _validator().evaluate(job, JobStage.QUOTE_SENT)
    assert result.allowed is False
    assert result.reason == ValidationReason.BLOCKED
    assert result.unmet_fields == ["has_quote_items", "quoted_value"]
    assert result.unmet_prerequisites[0].message == "Quote must have line items before it can be sent"


def test_forward_transition_with_prerequisites_met():
    job = EnrichedJob(job_id=1, status=JobStage.QUOTING.value, has_quote_items=True, quoted_value=Decimal("216.00"))
    result = _validator().evaluate(job, JobStage.QUOTE_SENT)
    assert result.allowed is True
    assert result.reason == ValidationReason.PREREQUISITES_MET
    assert [item.passed for item in result.all_prerequisites] == [True, True]


def test_deposit_paid_skipped_when_no_deposit_required():
    job = EnrichedJob(job_id=1, status=JobStage.QUOTE_SENT.value, deposit_required=False)
    result = _validator().evaluate(job, JobStage.DEPOSIT_PAID)
    assert result.allowed is True
    assert result.reason == ValidationReason.SKIPPED
    assert result.unmet_prerequisites == []


def test_deposit_paid_blocked_when_deposit_required_but_not_received():
    job = EnrichedJob(
        job_id=1,
        status=JobStage.QUOTE_ACCEPTED.value,
        deposit_required=True,
        deposit_amount=Decimal("50.00"),
    )
    result = _validator().evaluate(job, JobStage.DEPOSIT_PAID)
    assert result.allowed is False
    assert result.unmet_fields == ["deposit_received"]


def test_unregistered_current_stage_to_scheduled_without_survey_or_work():
    job = EnrichedJob(job_id=1, status="quoted")
    result = _validator().evaluate(job, JobStage.SCHEDULED)
    assert result.allowed is False
    assert set(result.unmet_fields) == {"has_survey_scheduled", "has_work_scheduled"}


def test_unknown_target_stage_fails_open(caplog):
    job = EnrichedJob(job_id=1, status=JobStage.NEW_ENQUIRY.value)
    result = _validator().evaluate(job, "archived")
    assert result.allowed is True
    assert result.reason == ValidationReason.NOT_FORWARD
    assert result.unmet_prerequisites == []
    assert any(record.getMessage() == "stage.validation.unknown_stage" for record in caplog.records)


def test_lateral_move_is_allowed_before_prerequisites_are_checked():
    job = EnrichedJob(job_id=1, status=JobStage.SCHEDULED.value)
    result = _validator().evaluate(job, JobStage.SCHEDULED)
    assert result.allowed is True
    assert result.reason == ValidationReason.NOT_FORWARD
    assert result.all_prerequisites == []


def test_paid_requires_payment_in_full():
    short = EnrichedJob(
        job_id=1, status=JobStage.INVOICE_SENT.value, quoted_value=Decimal("500.00"), paid_amount=Decimal("499.99")
    )
    settled = EnrichedJob(
        job_id=1, status=JobStage.INVOICE_SENT.value, quoted_value=Decimal("500.00"), paid_amount=Decimal("500.00")
    )
    assert _validator().evaluate(short, JobStage.PAID).unmet_fields == ["is_paid_in_full"]
    assert _validator().evaluate(settled, JobStage.PAID).allowed is True


def test_validate_missing_job_is_structured_rejection():
    result = _validator(None).validate(404, JobStage.CONTACTED)
    assert result.allowed is False
    assert result.reason == ValidationReason.NOT_FOUND
    assert result.unmet_fields == ["job"]
    assert result.unmet_prerequisites[0].message == "Job not found"


def test_validate_loads_job_through_enricher():
    job = EnrichedJob(job_id=7, status=JobStage.CONTACTED.value, has_survey_scheduled=True)
    result = _validator(job).validate(7, "survey_booked")
    assert result.allowed is True
    assert result.current_stage == "contacted"
    assert result.target_stage == "survey_booked"


def test_readiness_report_covers_every_stage():
    job = EnrichedJob(job_id=3, status=JobStage.QUOTING.value, deposit_required=False)
    report = _validator(job).readiness(3)

    assert report is not None
    assert [item.stage for item in report.stages] == [stage.value for stage in JobStage]
    assert report.stage(JobStage.QUOTING).is_current_stage is True

    quote_sent = report.stage(JobStage.QUOTE_SENT)
    assert quote_sent.can_progress is False
    assert [item.field for item in quote_sent.blocking] == ["has_quote_items", "quoted_value"]

    deposit_paid = report.stage(JobStage.DEPOSIT_PAID)
    assert deposit_paid.can_skip is True
    assert deposit_paid.can_progress is True
    assert deposit_paid.blocking == []

    assert report.stage(JobStage.LOST).is_unrestricted is True
    assert report.signals.deposit_required is False


def test_readiness_for_missing_job_is_none():
    assert _validator(None).readiness(1) is None
