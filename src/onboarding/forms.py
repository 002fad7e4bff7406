"""
Onboarding Forms - per-step input validation.

Each step's payload is parsed into a small pydantic form. A required step
with an invalid payload blocks forward navigation; optional steps accept an
empty payload and simply do nothing.
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from homestaff.db.households import MIN_HOUSEHOLD_NAME_LENGTH

from .presets import is_attendance_preset, is_holiday_preset
from .state import StepId

logger = logging.getLogger(__name__)


# =============================================================================
# Form Models
# =============================================================================


class HouseholdForm(BaseModel):
    """Step 1: Household name."""

    household_name: str = Field(default="", validate_default=True, description="Display name of the household")

    @field_validator("household_name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> str:
        return (v or "").strip()

    @field_validator("household_name")
    @classmethod
    def check_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Household name is required")
        if len(v) < MIN_HOUSEHOLD_NAME_LENGTH:
            raise ValueError(f"Household name must be at least {MIN_HOUSEHOLD_NAME_LENGTH} characters")
        return v


class DefaultsForm(BaseModel):
    """
    Step 2: Default policies.

    Both presets are optional. Unknown ids are NOT rejected here: the
    resolver raises for them, which is a data-integrity error rather than
    something the user can fix.
    """

    holiday_rule: str | None = None
    attendance: str | None = None

    @field_validator("holiday_rule", "attendance", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def note_unknown(self) -> "DefaultsForm":
        if self.holiday_rule and not is_holiday_preset(self.holiday_rule):
            logger.warning(f"Unknown holiday preset submitted: {self.holiday_rule}")
        if self.attendance and not is_attendance_preset(self.attendance):
            logger.warning(f"Unknown attendance preset submitted: {self.attendance}")
        return self


class EmployeeForm(BaseModel):
    """Step 3: First employee (minimal fields)."""

    name: str = ""
    role: str = ""
    employment_type: Literal["monthly", "adhoc"] = "monthly"

    @field_validator("name", "role", mode="before")
    @classmethod
    def strip(cls, v: Any) -> str:
        return (v or "").strip()

    @field_validator("employment_type", mode="before")
    @classmethod
    def default_type(cls, v: Any) -> Any:
        return v or "monthly"

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.role)


class WelcomeForm(BaseModel):
    """Step 4: Nothing to collect."""


STEP_FORMS: dict[StepId, type[BaseModel]] = {
    StepId.HOUSEHOLD: HouseholdForm,
    StepId.DEFAULTS: DefaultsForm,
    StepId.EMPLOYEE: EmployeeForm,
    StepId.WELCOME: WelcomeForm,
}


# =============================================================================
# Validation
# =============================================================================


def _format_errors(e: ValidationError) -> list[str]:
    messages = []
    for err in e.errors():
        msg = err.get("msg", "Invalid value")
        # pydantic prefixes custom errors with "Value error, "
        messages.append(msg.removeprefix("Value error, "))
    return messages


def parse_step_data(
    step_id: StepId,
    data: dict[str, Any] | None,
    is_required: bool,
) -> tuple[BaseModel | None, list[str]]:
    """
    Parse and validate a step payload.

    Returns:
        (form, errors). form is None when validation failed.
    """
    form_cls = STEP_FORMS[step_id]
    try:
        form = form_cls.model_validate(data or {})
    except ValidationError as e:
        return None, _format_errors(e)

    # An optional employee step may be left incomplete; nothing is created then
    if isinstance(form, EmployeeForm) and is_required and not form.is_complete:
        errors = []
        if not form.name:
            errors.append("Employee name is required")
        if not form.role:
            errors.append("Employee role is required")
        return None, errors

    return form, []


def validate_step_data(step_id: StepId, data: dict[str, Any] | None, is_required: bool) -> tuple[bool, list[str]]:
    """
    Validate a step payload with specific error messages.

    Returns:
        (is_valid, error_messages)
    """
    form, errors = parse_step_data(step_id, data, is_required)
    return (form is not None, errors)
