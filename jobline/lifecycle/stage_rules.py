"""Pipeline stage prerequisite rules.

Every ``JobStage`` has exactly one ``StageRule``. A rule lists the
prerequisites that must hold before a job may move *forward* into that stage.
Moving backwards, sideways, or into an unrestricted stage never checks them.

Check kinds:

- ``truthy``: the field must be non-false and non-empty
- ``exists``: the field must not be None
- ``equals``: the field must equal the literal ``expected``
- ``has_related``: a derived count/boolean must be positive
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from jobline.core.exceptions import ConfigurationError
from jobline.models.enums import JobStage

if TYPE_CHECKING:
    from jobline.lifecycle.enricher import EnrichedJob

RULESET_VERSION = "2"

SkipCondition = Callable[["EnrichedJob"], bool]


class CheckKind(str, enum.Enum):
    TRUTHY = "truthy"
    EXISTS = "exists"
    EQUALS = "equals"
    HAS_RELATED = "has_related"


@dataclass(frozen=True)
class StagePrerequisite:
    field: str
    check: CheckKind
    message: str
    expected: Any = None

    def is_met(self, value: Any) -> bool:
        if self.check == CheckKind.EXISTS:
            return value is not None
        if self.check == CheckKind.EQUALS:
            return value == self.expected
        if self.check == CheckKind.HAS_RELATED:
            if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
                return value > 0
            return bool(value)
        return bool(value)


@dataclass(frozen=True)
class StageRule:
    stage: JobStage
    label: str
    prerequisites: tuple[StagePrerequisite, ...] = ()
    unrestricted: bool = False
    skip_when: SkipCondition | None = field(default=None, compare=False)

    @property
    def can_skip(self) -> bool:
        return self.skip_when is not None

    def skip_applies(self, job: "EnrichedJob") -> bool:
        return self.skip_when is not None and bool(self.skip_when(job))


def _deposit_not_required(job: "EnrichedJob") -> bool:
    return not job.deposit_required


DEFAULT_RULES: tuple[StageRule, ...] = (
    StageRule(JobStage.NEW_ENQUIRY, "New Enquiry"),
    StageRule(JobStage.CONTACTED, "Contacted"),
    StageRule(
        JobStage.SURVEY_BOOKED,
        "Survey Booked",
        (
            StagePrerequisite(
                "has_survey_scheduled",
                CheckKind.TRUTHY,
                "A survey must be assigned and scheduled before marking as Survey Booked",
            ),
        ),
    ),
    StageRule(JobStage.QUOTING, "Quoting"),
    StageRule(
        JobStage.QUOTE_SENT,
        "Quote Sent",
        (
            StagePrerequisite(
                "has_quote_items", CheckKind.HAS_RELATED, "Quote must have line items before it can be sent"
            ),
            StagePrerequisite(
                "quoted_value", CheckKind.TRUTHY, "Quote must have a total value before it can be sent"
            ),
        ),
    ),
    StageRule(JobStage.FOLLOW_UP, "Follow-Up Due", unrestricted=True),
    StageRule(
        JobStage.QUOTE_ACCEPTED,
        "Quote Accepted",
        (
            StagePrerequisite(
                "quote_response",
                CheckKind.EQUALS,
                "Client must accept the quote first (update via Client Portal or manually)",
                expected="accepted",
            ),
        ),
    ),
    StageRule(
        JobStage.DEPOSIT_REQUESTED,
        "Deposit Requested",
        (
            StagePrerequisite("deposit_required", CheckKind.TRUTHY, "Deposit must be configured on the job"),
            StagePrerequisite("deposit_amount", CheckKind.TRUTHY, "Deposit amount must be set"),
        ),
        skip_when=_deposit_not_required,
    ),
    StageRule(
        JobStage.DEPOSIT_PAID,
        "Deposit Paid",
        (StagePrerequisite("deposit_received", CheckKind.TRUTHY, "Deposit must be marked as received"),),
        skip_when=_deposit_not_required,
    ),
    StageRule(
        JobStage.SCHEDULED,
        "Scheduled",
        (
            StagePrerequisite(
                "has_survey_scheduled",
                CheckKind.TRUTHY,
                "A survey must be scheduled or completed before work is scheduled",
            ),
            StagePrerequisite(
                "has_work_scheduled",
                CheckKind.TRUTHY,
                "Work must be scheduled on the calendar (Project Start event or confirmed schedule proposal)",
            ),
        ),
    ),
    StageRule(JobStage.IN_PROGRESS, "In Progress"),
    StageRule(JobStage.COMPLETED, "Completed"),
    StageRule(
        JobStage.INVOICE_SENT,
        "Invoice Sent",
        (
            StagePrerequisite(
                "has_invoice",
                CheckKind.HAS_RELATED,
                "An invoice must be created and sent before marking as Invoice Sent",
            ),
        ),
    ),
    StageRule(
        JobStage.PAID,
        "Paid",
        (StagePrerequisite("is_paid_in_full", CheckKind.TRUTHY, "Job must be paid in full before marking as Paid"),),
    ),
    StageRule(JobStage.CLOSED, "Closed", unrestricted=True),
    StageRule(JobStage.LOST, "Lost", unrestricted=True),
)


def parse_stage(value: JobStage | str | None) -> JobStage | None:
    """Return the ``JobStage`` for a value, or None when it is not a registered stage."""
    if value is None:
        return None
    if isinstance(value, JobStage):
        return value
    try:
        return JobStage(str(value).strip())
    except ValueError:
        return None


class StageRuleRegistry:
    """Immutable lookup of stage rules keyed and ordered by ``JobStage``."""

    def __init__(self, rules: Iterable[StageRule], version: str = RULESET_VERSION) -> None:
        by_stage = {rule.stage: rule for rule in rules}
        missing = [stage.value for stage in JobStage if stage not in by_stage]
        if missing:
            raise ConfigurationError(f"Stage rules missing for: {', '.join(missing)}")
        self._rules = by_stage
        self._order = {stage: index for index, stage in enumerate(JobStage)}
        self.version = version

    def get(self, stage: JobStage | str | None) -> StageRule | None:
        parsed = parse_stage(stage)
        return self._rules.get(parsed) if parsed is not None else None

    def ordinal(self, stage: JobStage | str | None) -> int:
        """Pipeline position; -1 for anything not registered."""
        parsed = parse_stage(stage)
        return self._order[parsed] if parsed is not None else -1

    def is_unrestricted(self, stage: JobStage | str | None) -> bool:
        rule = self.get(stage)
        return rule is not None and rule.unrestricted

    def is_forward(self, from_stage: JobStage | str | None, to_stage: JobStage | str | None) -> bool:
        return self.ordinal(to_stage) > self.ordinal(from_stage)

    def rules(self) -> list[StageRule]:
        return [self._rules[stage] for stage in JobStage]

    def unrestricted_stages(self) -> list[JobStage]:
        return [rule.stage for rule in self.rules() if rule.unrestricted]


default_registry = StageRuleRegistry(DEFAULT_RULES)
