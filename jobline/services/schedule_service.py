"""Work start-date negotiation between the business and the client."""

from __future__ import annotations

import logging
from datetime import datetime

from jobline.core.exceptions import NotFoundError, ValidationError
from jobline.lifecycle.state_machine import SCHEDULE_PROPOSAL
from jobline.models import CalendarEvent, CalendarEventType, Job, JobScheduleProposal, ProposalStatus
from jobline.models.base import utcnow
from jobline.services.base_service import BaseService

logger = logging.getLogger(__name__)


class ScheduleService(BaseService):
    """A job has at most one active (non-archived) start-date proposal."""

    def _require_job(self, job_id: int) -> Job:
        job = self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    def _require_active(self, proposal_id: int) -> JobScheduleProposal:
        proposal = self.db.get(JobScheduleProposal, proposal_id)
        if proposal is None:
            raise NotFoundError(f"Schedule proposal {proposal_id} not found")
        if proposal.is_archived:
            raise ValidationError("Schedule proposal has been superseded by a newer one.")
        return proposal

    def propose_start(self, job_id: int, start_date: datetime, proposed_by: str = "admin") -> JobScheduleProposal:
        """Archive the job's current proposal and open a new one in the same transaction."""
        job = self._require_job(job_id)
        archived = (
            self.db.query(JobScheduleProposal)
            .filter(JobScheduleProposal.job_id == job.id)
            .filter(JobScheduleProposal.is_archived.is_(False))
            .update({JobScheduleProposal.is_archived: True}, synchronize_session="fetch")
        )
        proposal = JobScheduleProposal(
            job_id=job.id,
            proposed_start_date=start_date,
            status=ProposalStatus.PENDING_CLIENT.value,
            proposed_by=proposed_by,
        )
        self.db.add(proposal)
        self.commit()
        self.db.refresh(proposal)
        logger.info(
            "schedule.proposal.created",
            extra={
                "event": "schedule.proposal.created",
                "job_id": job.id,
                "proposal_id": proposal.id,
                "archived_count": archived,
            },
        )
        return proposal

    def get_active_proposal(self, job_id: int) -> JobScheduleProposal | None:
        return (
            self.db.query(JobScheduleProposal)
            .filter(JobScheduleProposal.job_id == job_id)
            .filter(JobScheduleProposal.is_archived.is_(False))
            .order_by(JobScheduleProposal.id.desc())
            .first()
        )

    def list_proposals(self, job_id: int) -> list[JobScheduleProposal]:
        return (
            self.db.query(JobScheduleProposal)
            .filter(JobScheduleProposal.job_id == job_id)
            .order_by(JobScheduleProposal.id.asc())
            .all()
        )

    def _respond(
        self,
        proposal_id: int,
        target: ProposalStatus,
        notes: str | None = None,
        counter_date: datetime | None = None,
    ) -> JobScheduleProposal:
        proposal = self._require_active(proposal_id)
        SCHEDULE_PROPOSAL.assert_transition(proposal.status, target)
        proposal.status = target.value
        proposal.responded_at = utcnow()
        if notes is not None:
            proposal.client_notes = notes
        if counter_date is not None:
            proposal.counter_proposed_date = counter_date
        self.commit()
        self.db.refresh(proposal)
        logger.info(
            "schedule.proposal.client_response",
            extra={
                "event": "schedule.proposal.client_response",
                "job_id": proposal.job_id,
                "proposal_id": proposal.id,
                "status": proposal.status,
            },
        )
        return proposal

    def client_accept(self, proposal_id: int, notes: str | None = None) -> JobScheduleProposal:
        return self._respond(proposal_id, ProposalStatus.SCHEDULED, notes=notes)

    def client_counter(self, proposal_id: int, counter_date: datetime, notes: str | None = None) -> JobScheduleProposal:
        if counter_date is None:
            raise ValidationError("A counter proposal needs a date.")
        return self._respond(proposal_id, ProposalStatus.CLIENT_COUNTERED, notes=notes, counter_date=counter_date)

    def client_decline(self, proposal_id: int, notes: str | None = None) -> JobScheduleProposal:
        return self._respond(proposal_id, ProposalStatus.DECLINED, notes=notes)

    def confirm(self, proposal_id: int) -> JobScheduleProposal:
        """Lock in the start date and put a project-start event on the calendar.

        A countered proposal is confirmed on the client's date.
        """
        proposal = self._require_active(proposal_id)
        SCHEDULE_PROPOSAL.assert_transition(proposal.status, ProposalStatus.CONFIRMED)
        if proposal.status == ProposalStatus.CLIENT_COUNTERED.value and proposal.counter_proposed_date is not None:
            proposal.proposed_start_date = proposal.counter_proposed_date
        proposal.status = ProposalStatus.CONFIRMED.value
        self.db.add(self._project_start(proposal.job, proposal.proposed_start_date))
        self.commit()
        self.db.refresh(proposal)
        logger.info(
            "schedule.proposal.confirmed",
            extra={"event": "schedule.proposal.confirmed", "job_id": proposal.job_id, "proposal_id": proposal.id},
        )
        return proposal

    @staticmethod
    def _project_start(job: Job, starts_at: datetime, title: str | None = None) -> CalendarEvent:
        return CalendarEvent(
            job_id=job.id,
            event_type=CalendarEventType.PROJECT_START.value,
            title=title or f"Project start: {job.job_number or job.id}",
            starts_at=starts_at,
        )

    def add_project_start_event(self, job_id: int, starts_at: datetime, title: str | None = None) -> CalendarEvent:
        job = self._require_job(job_id)
        event = self._project_start(job, starts_at, title)
        self.db.add(event)
        self.commit()
        self.db.refresh(event)
        return event
