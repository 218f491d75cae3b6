"""
===============================================================================
CRC CARD — application/compliance/rules.py
===============================================================================

Module:
    Rule check registry + built-in checks.

Responsibilities:
    - Map a RuleType to the function that evaluates it over a scan window.
    - Provide the built-in checks:
        consent_required   -> one draft per unauthorized access event
        purpose_limitation -> one draft per authorized event whose purpose no
                              covering consent allows (opt-in)
    - Leave rule types without a check as "no violations" (never an error).

Collaborators:
    - domain.entities: AccessEvent, ComplianceRule, Consent, RuleType
    - application.compliance.engine: builds RuleContext and persists drafts

Notes:
    - Checks are pure over the context: they never write.
    - Adding a rule type = registering one function.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence
from uuid import UUID

from ...domain.entities import AccessEvent, ComplianceRule, Consent, RuleType


@dataclass(frozen=True)
class ViolationDraft:
    """What a check found; the engine turns it into a Violation."""

    description: str
    access_event_id: Optional[UUID] = None


@dataclass(frozen=True)
class RuleContext:
    """Everything a check may look at for one rule and one organization."""

    organization_id: UUID
    rule: ComplianceRule
    window_start: datetime
    window_end: datetime
    events: Sequence[AccessEvent]
    # Valid consents covering the event's data type at accessed_at.
    covering_consents: Callable[[AccessEvent], List[Consent]]


RuleCheck = Callable[[RuleContext], List[ViolationDraft]]


class RuleCheckRegistry:
    """RuleType -> check function."""

    def __init__(self) -> None:
        self._checks: Dict[RuleType, RuleCheck] = {}

    def register(self, rule_type: RuleType, check: RuleCheck) -> None:
        self._checks[rule_type] = check

    def get(self, rule_type: RuleType) -> RuleCheck | None:
        return self._checks.get(rule_type)

    def registered_types(self) -> List[RuleType]:
        return sorted(self._checks, key=lambda t: t.value)


def check_consent_required(context: RuleContext) -> List[ViolationDraft]:
    return [
        ViolationDraft(
            description=(
                f"Unauthorized {event.action.value} of {event.data_type.value} "
                f"data without valid consent"
            ),
            access_event_id=event.id,
        )
        for event in context.events
        if not event.authorized
    ]


def check_purpose_limitation(context: RuleContext) -> List[ViolationDraft]:
    drafts: List[ViolationDraft] = []
    for event in context.events:
        if not event.authorized:
            continue
        consents = context.covering_consents(event)
        if not consents or any(c.purpose == event.purpose for c in consents):
            continue
        consented = ", ".join(sorted({c.purpose.value for c in consents}))
        drafts.append(
            ViolationDraft(
                description=(
                    f"{event.data_type.value} data used for {event.purpose.value}; "
                    f"consent covers {consented}"
                ),
                access_event_id=event.id,
            )
        )
    return drafts


def build_default_registry(*, purpose_limitation: bool = False) -> RuleCheckRegistry:
    registry = RuleCheckRegistry()
    registry.register(RuleType.CONSENT_REQUIRED, check_consent_required)
    if purpose_limitation:
        registry.register(RuleType.PURPOSE_LIMITATION, check_purpose_limitation)
    return registry
