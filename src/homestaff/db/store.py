"""
Onboarding Store.

The boundary the onboarding state machine and default-policy resolver talk
to. SupabaseOnboardingStore binds the persistence functions to one
authenticated user; tests use an in-memory implementation.
"""

from typing import Any, Protocol

from homestaff.db import defaults, employees, households, invitations, progress
from homestaff.db.adapter import DatabaseAdapter
from homestaff.models import (
    Employee,
    EmployeeInput,
    EmploymentInput,
    HolidayRuleInput,
    Household,
    HouseholdAttendanceSettings,
    HouseholdHolidayRule,
    InvitationResult,
    OnboardingProgress,
    TrackingMethod,
)


class OnboardingStore(Protocol):
    """Persistence operations for one user's onboarding session."""

    # Progress
    async def get_onboarding_progress(self) -> OnboardingProgress | None: ...

    async def get_step_data(self, step_index: int) -> dict[str, Any] | None: ...

    async def save_onboarding_progress(
        self, step_index: int, data: dict[str, Any] | None, for_step: int | None = None
    ) -> None: ...

    async def save_step_draft(self, step_index: int, draft: dict[str, Any]) -> None: ...

    async def complete_onboarding(self) -> None: ...

    async def reset_onboarding_progress(self) -> None: ...

    # Households
    async def create_household(self, name: str) -> Household: ...

    async def get_household(self, household_id: str) -> Household | None: ...

    async def accept_invitation_code(self, code: str) -> InvitationResult: ...

    # Defaults
    async def upsert_holiday_rule(self, household_id: str, rule: HolidayRuleInput) -> HouseholdHolidayRule: ...

    async def insert_holiday_rule(self, household_id: str, rule: HolidayRuleInput) -> HouseholdHolidayRule: ...

    async def upsert_attendance_settings(
        self, household_id: str, tracking_method: TrackingMethod
    ) -> HouseholdAttendanceSettings: ...

    async def list_holiday_rules(self, household_id: str) -> list[HouseholdHolidayRule]: ...

    async def get_attendance_settings(self, household_id: str) -> HouseholdAttendanceSettings | None: ...

    # Employees
    async def create_employee(self, employee: EmployeeInput, employment: EmploymentInput) -> Employee: ...


class SupabaseOnboardingStore:
    """OnboardingStore backed by Supabase tables, scoped to a single user."""

    def __init__(self, client: DatabaseAdapter, user_id: str):
        self.client = client
        self.user_id = user_id

    async def get_onboarding_progress(self) -> OnboardingProgress | None:
        return await progress.get_onboarding_progress(self.client, self.user_id)

    async def get_step_data(self, step_index: int) -> dict[str, Any] | None:
        return await progress.get_step_data(self.client, self.user_id, step_index)

    async def save_onboarding_progress(
        self, step_index: int, data: dict[str, Any] | None, for_step: int | None = None
    ) -> None:
        await progress.save_onboarding_progress(self.client, self.user_id, step_index, data, for_step)

    async def save_step_draft(self, step_index: int, draft: dict[str, Any]) -> None:
        await progress.save_step_draft(self.client, self.user_id, step_index, draft)

    async def complete_onboarding(self) -> None:
        await progress.complete_onboarding(self.client, self.user_id)

    async def reset_onboarding_progress(self) -> None:
        await progress.reset_onboarding_progress(self.client, self.user_id)

    async def create_household(self, name: str) -> Household:
        return await households.create_household(self.client, self.user_id, name)

    async def get_household(self, household_id: str) -> Household | None:
        return await households.get_household(self.client, household_id)

    async def accept_invitation_code(self, code: str) -> InvitationResult:
        return await invitations.accept_invitation_code(self.client, self.user_id, code)

    async def upsert_holiday_rule(self, household_id: str, rule: HolidayRuleInput) -> HouseholdHolidayRule:
        return await defaults.upsert_holiday_rule(self.client, household_id, rule)

    async def insert_holiday_rule(self, household_id: str, rule: HolidayRuleInput) -> HouseholdHolidayRule:
        return await defaults.insert_holiday_rule(self.client, household_id, rule)

    async def upsert_attendance_settings(
        self, household_id: str, tracking_method: TrackingMethod
    ) -> HouseholdAttendanceSettings:
        return await defaults.upsert_attendance_settings(self.client, household_id, tracking_method)

    async def list_holiday_rules(self, household_id: str) -> list[HouseholdHolidayRule]:
        return await defaults.list_holiday_rules(self.client, household_id)

    async def get_attendance_settings(self, household_id: str) -> HouseholdAttendanceSettings | None:
        return await defaults.get_attendance_settings(self.client, household_id)

    async def create_employee(self, employee: EmployeeInput, employment: EmploymentInput) -> Employee:
        return await employees.create_employee(self.client, employee, employment)
