"""
Onboarding errors.

Validation problems are expected (the UI keeps the user on the step);
unknown presets and step mismatches are programming errors and should fail
loudly. Backend failures surface as homestaff.db.StoreError.
"""

from homestaff.db.errors import HouseholdNotFoundError, StoreError


class OnboardingError(Exception):
    """Base class for onboarding flow errors."""


class StepValidationError(OnboardingError):
    """Required step data is missing or invalid."""

    def __init__(self, step_id: str, errors: list[str]):
        self.step_id = step_id
        self.errors = errors
        super().__init__(f"{step_id}: " + "; ".join(errors))


class StepMismatchError(OnboardingError):
    """A command referenced a step that is not the current one."""


class StepNotSkippableError(OnboardingError):
    """Attempted to skip a required step."""


class FlowCompletedError(OnboardingError):
    """The flow is already complete; only complete() may be repeated."""


class UnknownPresetError(OnboardingError, ValueError):
    """A preset id outside the static catalog."""

    def __init__(self, preset_id: str):
        self.preset_id = preset_id
        super().__init__(f"Unknown preset ID: {preset_id}")


class InvitationError(OnboardingError):
    """An invitation code could not be accepted. Message is user-facing."""


__all__ = [
    "OnboardingError",
    "StepValidationError",
    "StepMismatchError",
    "StepNotSkippableError",
    "FlowCompletedError",
    "UnknownPresetError",
    "InvitationError",
    "StoreError",
    "HouseholdNotFoundError",
]
