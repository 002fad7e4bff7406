"""
Onboarding State.

The four wizard steps, their statuses, and the progress config. State is
rebuilt from onboarding_progress on resume; see machine.py for transitions.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


class StepId(str, Enum):
    """Wizard steps, in order."""
    HOUSEHOLD = "step-household"
    DEFAULTS = "step-defaults"
    EMPLOYEE = "step-employee"
    WELCOME = "step-welcome"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class OnboardingStep:
    """One wizard step."""
    id: StepId
    title: str
    description: str
    is_required: bool
    status: StepStatus = StepStatus.PENDING

    def to_dict(self) -> dict:
        data = asdict(self)
        data["id"] = self.id.value
        data["status"] = self.status.value
        return data


# (id, title, description, is_required)
STEP_CATALOG: tuple[tuple[StepId, str, str, bool], ...] = (
    (
        StepId.HOUSEHOLD,
        "Name Your Household",
        "Establish the primary container for your staff and management records.",
        True,
    ),
    (
        StepId.DEFAULTS,
        "Set Global Defaults",
        "Configure common holiday and attendance rules for your household.",
        False,
    ),
    (
        StepId.EMPLOYEE,
        "Add Your First Employee",
        "Start building your staff directory by adding one profile now.",
        False,
    ),
    (
        StepId.WELCOME,
        "You're All Set!",
        "Your household is ready. Welcome to HomeStaff.",
        True,
    ),
)

TOTAL_STEPS = len(STEP_CATALOG)


def default_steps() -> list[OnboardingStep]:
    """Fresh step list with the first step in progress."""
    steps = [
        OnboardingStep(id=step_id, title=title, description=description, is_required=required)
        for step_id, title, description, required in STEP_CATALOG
    ]
    steps[0].status = StepStatus.IN_PROGRESS
    return steps


def step_index(step_id: StepId | str) -> int:
    """Position of a step in the fixed order."""
    return [entry[0] for entry in STEP_CATALOG].index(StepId(step_id))


@dataclass
class OnboardingConfig:
    """Progress pointer for the wizard."""
    current_step_index: int = 0
    total_steps: int = TOTAL_STEPS
    is_completed: bool = False
    last_saved_at: str | None = None
    user_id: str | None = None

    def touch(self) -> None:
        self.last_saved_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class OnboardingSnapshot:
    """Serializable view of a machine, returned by the API."""
    config: OnboardingConfig
    steps: list[OnboardingStep] = field(default_factory=list)
    household_id: str | None = None
    skipped: list[StepId] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "config": self.config.to_dict(),
            "steps": [s.to_dict() for s in self.steps],
            "household_id": self.household_id,
            "skipped": [s.value for s in self.skipped],
        }
