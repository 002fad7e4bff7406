"""
HomeStaff - Domain records.

Pydantic models for the rows HomeStaff reads and writes. Field names match
the snake_case database columns so rows round-trip without renaming.
"""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


HolidayRuleType = Literal["days_per_month", "recurring", "custom"]
IntervalUnit = Literal["day", "week", "month", "year"]
EndsType = Literal["never", "on_date", "after_occurrences"]
TrackingMethod = Literal["present_by_default", "manual_entry"]
EmploymentType = Literal["monthly", "adhoc"]
PaymentMethod = Literal["Cash", "Bank Transfer", "UPI", "Cheque"]


# =============================================================================
# Households
# =============================================================================


class Household(BaseModel):
    id: str
    name: str
    status: Literal["active", "archived"] = "active"
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Household":
        return cls(
            id=row["id"],
            name=row["name"],
            status="active" if row.get("status") == "active" else "archived",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# =============================================================================
# Holiday Rules
# =============================================================================


class _HolidayRuleFields(BaseModel):
    """Recurrence fields shared by inputs, presets and stored rules."""

    rule_type: HolidayRuleType
    recurrence_interval_value: int = Field(default=1, ge=1)
    recurrence_interval_unit: IntervalUnit = "week"
    repeat_on_days_of_week: list[int] | None = None  # 0=Sunday .. 6=Saturday
    repeat_on_day_of_month: int | None = Field(default=None, ge=1, le=31)
    days_per_month: int | None = Field(default=None, ge=1, le=31)
    ends_type: EndsType = "never"
    ends_date: date | None = None
    ends_occurrences: int | None = Field(default=None, ge=1)

    @field_validator("repeat_on_days_of_week", mode="before")
    @classmethod
    def normalize_weekdays(cls, v: list[int] | None) -> list[int] | None:
        """Sort and de-duplicate weekday indices; empty means unset."""
        if not v:
            return None
        days = sorted({int(d) for d in v})
        if days[0] < 0 or days[-1] > 6:
            raise ValueError("Weekday indices must be between 0 (Sunday) and 6 (Saturday)")
        return days

    def to_row(self, household_id: str) -> dict[str, Any]:
        """Column dict for insert/upsert. Unset optional fields are omitted."""
        row = self.model_dump(mode="json", exclude_none=True, include=set(_HolidayRuleFields.model_fields))
        row["household_id"] = household_id
        return row


class HolidayRuleInput(_HolidayRuleFields):
    """
    A fully specified holiday rule from the custom rule editor.

    Field combinations are checked against rule_type:
    - days_per_month needs days_per_month
    - recurring needs repeat_on_days_of_week or repeat_on_day_of_month
    - ends_type on_date / after_occurrences need their end value
    """

    @model_validator(mode="after")
    def check_rule_shape(self) -> "HolidayRuleInput":
        if self.rule_type == "days_per_month" and self.days_per_month is None:
            raise ValueError("days_per_month rules require days_per_month")
        if self.rule_type == "recurring" and not (
            self.repeat_on_days_of_week or self.repeat_on_day_of_month
        ):
            raise ValueError(
                "recurring rules require repeat_on_days_of_week or repeat_on_day_of_month"
            )
        if self.ends_type == "on_date" and self.ends_date is None:
            raise ValueError("ends_type 'on_date' requires ends_date")
        if self.ends_type == "after_occurrences" and self.ends_occurrences is None:
            raise ValueError("ends_type 'after_occurrences' requires ends_occurrences")
        return self


class RecurrencePattern(HolidayRuleInput):
    """Normalized rule produced from a holiday preset. Immutable."""

    model_config = ConfigDict(frozen=True)


class HouseholdHolidayRule(_HolidayRuleFields):
    """A stored household-level holiday rule."""

    id: str
    household_id: str
    # True for the single preset-managed rule of a household, False for custom rules
    is_household_default: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "HouseholdHolidayRule":
        return cls(
            id=row["id"],
            household_id=row["household_id"],
            rule_type=row["rule_type"],
            recurrence_interval_value=row.get("recurrence_interval_value") or 1,
            recurrence_interval_unit=row.get("recurrence_interval_unit") or "week",
            repeat_on_days_of_week=row.get("repeat_on_days_of_week") or None,
            repeat_on_day_of_month=row.get("repeat_on_day_of_month") or None,
            days_per_month=row.get("days_per_month") or None,
            ends_type=row.get("ends_type") or "never",
            ends_date=row.get("ends_date") or None,
            ends_occurrences=row.get("ends_occurrences") or None,
            is_household_default=bool(row.get("is_household_default")),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# =============================================================================
# Attendance Settings
# =============================================================================


class HouseholdAttendanceSettings(BaseModel):
    id: str
    household_id: str
    tracking_method: TrackingMethod
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "HouseholdAttendanceSettings":
        return cls(
            id=row["id"],
            household_id=row["household_id"],
            tracking_method=row["tracking_method"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# =============================================================================
# Employees
# =============================================================================


class PhoneNumber(BaseModel):
    number: str
    label: str = ""


class Address(BaseModel):
    address: str
    label: str = ""


class EmployeeDocument(BaseModel):
    name: str
    url: str
    category: str = "Other"
    uploaded_at: str | None = None


class CustomProperty(BaseModel):
    name: str
    value: str


class Note(BaseModel):
    content: str


class EmployeeInput(BaseModel):
    """Person-level fields of a new employee."""

    name: str = Field(min_length=1)
    photo: str | None = None
    phone_numbers: list[PhoneNumber] = Field(default_factory=list)
    addresses: list[Address] = Field(default_factory=list)
    documents: list[EmployeeDocument] = Field(default_factory=list)
    custom_properties: list[CustomProperty] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)


class EmploymentInput(BaseModel):
    """
    Household-specific employment fields.

    Adhoc workers carry no holiday balance or salary.
    """

    household_id: str = Field(min_length=1)
    employment_type: EmploymentType = "monthly"
    role: str = Field(min_length=1)
    start_date: date
    holiday_balance: float | None = None
    current_salary: float | None = None
    payment_method: PaymentMethod = "Cash"


class Employee(BaseModel):
    """An employee as seen from one household."""

    id: str
    name: str
    photo: str | None = None
    household_id: str
    role: str
    employment_type: EmploymentType = "monthly"
    status: Literal["active", "archived"] = "active"
    holiday_balance: float = 0
    created_at: str | None = None
    updated_at: str | None = None


# =============================================================================
# Invitations
# =============================================================================


class InvitationValidation(BaseModel):
    valid: bool
    household_id: str | None = None
    household_name: str | None = None
    error: str | None = None


class InvitationResult(BaseModel):
    success: bool
    household_id: str | None = None
    error: str | None = None


# =============================================================================
# Onboarding Progress
# =============================================================================


class OnboardingProgress(BaseModel):
    """Persisted onboarding snapshot for one user."""

    user_id: str | None = None
    current_step_index: int = Field(default=0, ge=0)
    total_steps: int = 4
    is_completed: bool = False
    last_saved_at: str | None = None
    step_data: dict[str, dict[str, Any]] = Field(default_factory=dict)
