"""Stage transition validation and readiness reporting."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from jobline.lifecycle.enricher import EnrichedJob, JobDataEnricher
from jobline.lifecycle.stage_rules import StageRule, StageRuleRegistry, default_registry
from jobline.models.enums import JobStage
from jobline.schemas.stages import (
    JobReadinessReport,
    PrerequisiteResult,
    StageReadiness,
    StageValidationResult,
    ValidationReason,
)

logger = logging.getLogger(__name__)


def _stage_key(stage: JobStage | str | None) -> str:
    if stage is None:
        return ""
    return stage.value if isinstance(stage, JobStage) else str(stage)


def check_prerequisites(rule: StageRule, job: EnrichedJob) -> list[PrerequisiteResult]:
    return [
        PrerequisiteResult(
            field=prereq.field,
            passed=prereq.is_met(job.value_of(prereq.field)),
            message=prereq.message,
        )
        for prereq in rule.prerequisites
    ]


class StageTransitionValidator:
    """Decide whether a job may move to a stage.

    ``evaluate`` is pure and works on an ``EnrichedJob``; ``validate`` and
    ``readiness`` load that view through the enricher first.
    """

    def __init__(
        self,
        db: Session | None = None,
        registry: StageRuleRegistry | None = None,
        enricher: JobDataEnricher | None = None,
    ) -> None:
        if enricher is None and db is None:
            raise ValueError("StageTransitionValidator needs a session or an enricher.")
        self.registry = registry or default_registry
        self.enricher = enricher or JobDataEnricher(db)

    def evaluate(self, job: EnrichedJob, target_stage: JobStage | str) -> StageValidationResult:
        current = job.status
        target = _stage_key(target_stage)

        def result(allowed: bool, reason: ValidationReason, unmet=None, checked=None) -> StageValidationResult:
            return StageValidationResult(
                allowed=allowed,
                current_stage=current,
                target_stage=target,
                reason=reason,
                unmet_prerequisites=unmet or [],
                all_prerequisites=checked or [],
            )

        if self.registry.is_unrestricted(target):
            return result(True, ValidationReason.UNRESTRICTED)

        if not self.registry.is_forward(current, target):
            if self.registry.get(target) is None:
                # Unregistered stages sit at ordinal -1 and pass here; update paths refuse to persist them.
                logger.warning(
                    "stage.validation.unknown_stage",
                    extra={"event": "stage.validation.unknown_stage", "job_id": job.job_id, "target_stage": target},
                )
            return result(True, ValidationReason.NOT_FORWARD)

        rule = self.registry.get(target)
        checked = check_prerequisites(rule, job)
        unmet = [item for item in checked if not item.passed]
        if rule.skip_applies(job):
            return result(True, ValidationReason.SKIPPED, checked=checked)
        if unmet:
            return result(False, ValidationReason.BLOCKED, unmet=unmet, checked=checked)
        return result(True, ValidationReason.PREREQUISITES_MET, checked=checked)

    def validate(self, job_id: int, target_stage: JobStage | str) -> StageValidationResult:
        job = self.enricher.enrich(job_id)
        if job is None:
            return StageValidationResult(
                allowed=False,
                current_stage="",
                target_stage=_stage_key(target_stage),
                reason=ValidationReason.NOT_FOUND,
                unmet_prerequisites=[PrerequisiteResult(field="job", passed=False, message="Job not found")],
            )

        outcome = self.evaluate(job, target_stage)
        logger.info(
            "stage.validation.evaluated",
            extra={
                "event": "stage.validation.evaluated",
                "job_id": job_id,
                "current_stage": outcome.current_stage,
                "target_stage": outcome.target_stage,
                "allowed": outcome.allowed,
                "reason": outcome.reason.value,
                "unmet": outcome.unmet_fields,
            },
        )
        return outcome

    def readiness_for(self, job: EnrichedJob) -> JobReadinessReport:
        stages: list[StageReadiness] = []
        for ordinal, rule in enumerate(self.registry.rules()):
            prerequisites = check_prerequisites(rule, job)
            all_met = all(item.passed for item in prerequisites)
            skip = rule.skip_applies(job)
            can_progress = all_met or rule.unrestricted or skip
            stages.append(
                StageReadiness(
                    stage=rule.stage.value,
                    label=rule.label,
                    ordinal=ordinal,
                    is_current_stage=rule.stage.value == job.status,
                    is_unrestricted=rule.unrestricted,
                    can_skip=skip,
                    can_progress=can_progress,
                    prerequisites=prerequisites,
                    blocking=[] if can_progress else [item for item in prerequisites if not item.passed],
                )
            )
        return JobReadinessReport(
            job_id=job.job_id,
            current_stage=job.status,
            ruleset_version=self.registry.version,
            stages=stages,
            signals=job.signals(),
        )

    def readiness(self, job_id: int) -> JobReadinessReport | None:
        job = self.enricher.enrich(job_id)
        if job is None:
            return None
        return self.readiness_for(job)
