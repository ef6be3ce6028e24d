"""
Progress projection of a tenant's domain onboarding.

``derive_steps`` is the only place that maps persisted state to the five
presentation stages. It is pure: labels, icons and copy belong to the caller.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import DomainSettings, DomainStage

STEPS: Tuple[str, ...] = (
    "registered",
    "dns_pending",
    "dns_verified",
    "ssl_provisioning",
    "active",
)

STEP_PENDING = "pending"
STEP_CURRENT = "current"
STEP_COMPLETED = "completed"

# Index of the step in progress for each stage; None = no step current
_CURRENT_STEP: Dict[DomainStage, Optional[int]] = {
    DomainStage.ABSENT: None,
    DomainStage.PENDING_DNS: 1,
    DomainStage.PENDING_SSL: 3,
    DomainStage.ACTIVE: None,
}


@dataclass(frozen=True)
class Step:
    name: str
    state: str

    def to_dict(self) -> dict:
        return {"name": self.name, "state": self.state}


def derive_steps(settings: Optional[DomainSettings]) -> List[Step]:
    """Map settings (or None for a tenant without settings) to the five steps."""
    stage = settings.stage if settings is not None else DomainStage.ABSENT

    if stage is DomainStage.ACTIVE:
        return [Step(name, STEP_COMPLETED) for name in STEPS]

    current = _CURRENT_STEP[stage]
    steps = []
    for index, name in enumerate(STEPS):
        if current is None or index > current:
            state = STEP_PENDING
        elif index == current:
            state = STEP_CURRENT
        else:
            state = STEP_COMPLETED
        steps.append(Step(name, state))
    return steps
