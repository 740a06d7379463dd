"""Site survey requests and their booking negotiation."""

from __future__ import annotations

import logging
from datetime import datetime

from jobline.core.exceptions import NotFoundError, ValidationError
from jobline.lifecycle.state_machine import SURVEY_BOOKING, SURVEY_STATUS
from jobline.models import (
    BookingStatus,
    CalendarEvent,
    CalendarEventType,
    Job,
    JobSurvey,
    Partner,
    SurveyStatus,
)
from jobline.models.base import utcnow
from jobline.services.base_service import BaseService

logger = logging.getLogger(__name__)

CLIENT_DECISIONS = (BookingStatus.CLIENT_ACCEPTED, BookingStatus.CLIENT_DECLINED, BookingStatus.CLIENT_COUNTER)


class SurveyService(BaseService):
    def _require_survey(self, survey_id: int) -> JobSurvey:
        survey = self.db.get(JobSurvey, survey_id)
        if survey is None:
            raise NotFoundError(f"Survey {survey_id} not found")
        return survey

    def _log(self, event: str, survey: JobSurvey) -> None:
        logger.info(
            event,
            extra={
                "event": event,
                "job_id": survey.job_id,
                "survey_id": survey.id,
                "status": survey.status,
                "booking_status": survey.booking_status,
            },
        )

    def request_survey(self, job_id: int, partner_id: int | None = None, notes: str | None = None) -> JobSurvey:
        if self.db.get(Job, job_id) is None:
            raise NotFoundError(f"Job {job_id} not found")
        if partner_id is not None and self.db.get(Partner, partner_id) is None:
            raise NotFoundError(f"Partner {partner_id} not found")

        survey = JobSurvey(job_id=job_id, partner_id=partner_id, status=SurveyStatus.REQUESTED.value, notes=notes)
        self.db.add(survey)
        self.commit()
        self.db.refresh(survey)
        self._log("survey.requested", survey)
        return survey

    def get_survey(self, survey_id: int) -> JobSurvey | None:
        return self.db.get(JobSurvey, survey_id)

    def list_for_job(self, job_id: int) -> list[JobSurvey]:
        return self.db.query(JobSurvey).filter(JobSurvey.job_id == job_id).order_by(JobSurvey.id.asc()).all()

    def partner_respond(self, survey_id: int, accepted: bool) -> JobSurvey:
        survey = self._require_survey(survey_id)
        target = SurveyStatus.ACCEPTED if accepted else SurveyStatus.DECLINED
        SURVEY_STATUS.assert_transition(survey.status, target)
        survey.status = target.value
        self.commit()
        self.db.refresh(survey)
        self._log("survey.partner_response", survey)
        return survey

    def propose_booking(self, survey_id: int, proposed_date: datetime) -> JobSurvey:
        """Partner offers a visit date; the client answers through ``client_respond``."""
        survey = self._require_survey(survey_id)
        if survey.status != SurveyStatus.ACCEPTED.value:
            raise ValidationError("Only an accepted survey can be offered a booking date.")
        SURVEY_BOOKING.assert_transition(survey.booking_status, BookingStatus.PENDING_CLIENT)
        survey.booking_status = BookingStatus.PENDING_CLIENT.value
        survey.proposed_date = proposed_date
        survey.counter_proposed_date = None
        self.commit()
        self.db.refresh(survey)
        self._log("survey.booking.proposed", survey)
        return survey

    def client_respond(
        self,
        survey_id: int,
        decision: BookingStatus | str,
        counter_date: datetime | None = None,
    ) -> JobSurvey:
        survey = self._require_survey(survey_id)
        target = BookingStatus(decision)
        if target not in CLIENT_DECISIONS:
            raise ValidationError(f"Not a client booking decision: {target.value}")
        if target == BookingStatus.CLIENT_COUNTER and counter_date is None:
            raise ValidationError("A counter proposal needs a date.")
        SURVEY_BOOKING.assert_transition(survey.booking_status, target)
        survey.booking_status = target.value
        if target == BookingStatus.CLIENT_COUNTER:
            survey.counter_proposed_date = counter_date
        self.commit()
        self.db.refresh(survey)
        self._log("survey.booking.client_response", survey)
        return survey

    def confirm_booking(self, survey_id: int) -> JobSurvey:
        """Fix the visit date and mark the survey scheduled."""
        survey = self._require_survey(survey_id)
        SURVEY_BOOKING.assert_transition(survey.booking_status, BookingStatus.CONFIRMED)
        SURVEY_STATUS.assert_transition(survey.status, SurveyStatus.SCHEDULED)

        if survey.booking_status == BookingStatus.CLIENT_COUNTER.value:
            scheduled = survey.counter_proposed_date
        else:
            scheduled = survey.proposed_date
        survey.booking_status = BookingStatus.CONFIRMED.value
        survey.status = SurveyStatus.SCHEDULED.value
        survey.scheduled_date = scheduled
        self.db.add(
            CalendarEvent(
                job_id=survey.job_id,
                event_type=CalendarEventType.SURVEY.value,
                title=f"Site survey for job {survey.job_id}",
                starts_at=scheduled,
            )
        )
        self.commit()
        self.db.refresh(survey)
        self._log("survey.booking.confirmed", survey)
        return survey

    def complete_survey(self, survey_id: int, notes: str | None = None) -> JobSurvey:
        survey = self._require_survey(survey_id)
        SURVEY_STATUS.assert_transition(survey.status, SurveyStatus.COMPLETED)
        survey.status = SurveyStatus.COMPLETED.value
        survey.completed_at = utcnow()
        if notes:
            survey.notes = notes
        self.commit()
        self.db.refresh(survey)
        self._log("survey.completed", survey)
        return survey
