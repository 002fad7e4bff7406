"""
Pytest configuration and fixtures for HomeStaff tests.
"""

import os
import uuid
from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest

# Set test environment before importing homestaff modules
os.environ["HOMESTAFF_ENV"] = "development"
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")

from homestaff.db.errors import StoreError
from homestaff.db.progress import merge_draft
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
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryOnboardingStore:
    """
    OnboardingStore fake with the same upsert semantics as the Supabase store.

    Every call is recorded in `calls` as (method_name, args). Set `fail_on`
    to a method name to make that method raise StoreError.
    """

    def __init__(self, user_id: str = "user-1"):
        self.user_id = user_id
        self.progress: OnboardingProgress | None = None
        self.households: dict[str, Household] = {}
        self.holiday_rules: list[HouseholdHolidayRule] = []
        self.attendance: dict[str, HouseholdAttendanceSettings] = {}
        self.employees: list[Employee] = []
        self.invitations: dict[str, str] = {}  # code -> household_id
        self.onboarding_completed = False
        self.calls: list[tuple[str, tuple]] = []
        self.fail_on: set[str] = set()

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise StoreError(f"Failed to {name}: connection reset")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    # Progress

    async def get_onboarding_progress(self) -> OnboardingProgress | None:
        self._record("get_onboarding_progress")
        if self.progress is None:
            return None
        return self.progress.model_copy(update={"is_completed": self.onboarding_completed}, deep=True)

    async def get_step_data(self, step_index: int) -> dict | None:
        self._record("get_step_data", step_index)
        if self.progress is None:
            return None
        return self.progress.step_data.get(f"step_{step_index}")

    async def save_onboarding_progress(self, step_index: int, data: dict | None, for_step: int | None = None) -> None:
        self._record("save_onboarding_progress", step_index, data, for_step)
        if not 0 <= step_index < 4:
            raise StoreError(f"Invalid step index: {step_index}")
        step_data = dict(self.progress.step_data) if self.progress else {}
        if data is not None:
            step_data[f"step_{step_index if for_step is None else for_step}"] = data
        self.progress = OnboardingProgress(
            user_id=self.user_id,
            current_step_index=step_index,
            last_saved_at=_now(),
            step_data=step_data,
        )

    async def save_step_draft(self, step_index: int, draft: dict) -> None:
        self._record("save_step_draft", step_index, draft)
        if not 0 <= step_index < 4:
            raise StoreError(f"Invalid step index: {step_index}")
        if self.progress is None:
            self.progress = OnboardingProgress(
                user_id=self.user_id,
                current_step_index=step_index,
                last_saved_at=_now(),
                step_data={f"step_{step_index}": dict(draft)},
            )
            return
        key = f"step_{step_index}"
        step_data = dict(self.progress.step_data)
        step_data[key] = merge_draft(step_data.get(key), draft)
        self.progress = self.progress.model_copy(update={"step_data": step_data, "last_saved_at": _now()})

    async def complete_onboarding(self) -> None:
        self._record("complete_onboarding")
        self.onboarding_completed = True

    async def reset_onboarding_progress(self) -> None:
        self._record("reset_onboarding_progress")
        self.progress = None
        self.onboarding_completed = False

    # Households

    async def create_household(self, name: str) -> Household:
        self._record("create_household", name)
        household = Household(id=f"hh-{len(self.households) + 1}", name=name.strip())
        self.households[household.id] = household
        return household

    async def get_household(self, household_id: str) -> Household | None:
        self._record("get_household", household_id)
        return self.households.get(household_id)

    async def accept_invitation_code(self, code: str) -> InvitationResult:
        self._record("accept_invitation_code", code)
        household_id = self.invitations.get(code)
        if household_id is None:
            return InvitationResult(success=False, error="Invalid invitation code")
        return InvitationResult(success=True, household_id=household_id)

    # Defaults

    async def upsert_holiday_rule(self, household_id: str, rule: HolidayRuleInput) -> HouseholdHolidayRule:
        self._record("upsert_holiday_rule", household_id, rule)
        existing = next(
            (r for r in self.holiday_rules if r.household_id == household_id and r.is_household_default),
            None,
        )
        stored = HouseholdHolidayRule(
            id=existing.id if existing else str(uuid.uuid4()),
            household_id=household_id,
            is_household_default=True,
            updated_at=_now(),
            **rule.model_dump(),
        )
        if existing:
            self.holiday_rules[self.holiday_rules.index(existing)] = stored
        else:
            self.holiday_rules.append(stored)
        return stored

    async def insert_holiday_rule(self, household_id: str, rule: HolidayRuleInput) -> HouseholdHolidayRule:
        self._record("insert_holiday_rule", household_id, rule)
        stored = HouseholdHolidayRule(id=str(uuid.uuid4()), household_id=household_id, **rule.model_dump())
        self.holiday_rules.append(stored)
        return stored

    async def upsert_attendance_settings(self, household_id: str, tracking_method: str) -> HouseholdAttendanceSettings:
        self._record("upsert_attendance_settings", household_id, tracking_method)
        existing = self.attendance.get(household_id)
        settings = HouseholdAttendanceSettings(
            id=existing.id if existing else str(uuid.uuid4()),
            household_id=household_id,
            tracking_method=tracking_method,
            updated_at=_now(),
        )
        self.attendance[household_id] = settings
        return settings

    async def list_holiday_rules(self, household_id: str) -> list[HouseholdHolidayRule]:
        self._record("list_holiday_rules", household_id)
        return [r for r in self.holiday_rules if r.household_id == household_id]

    async def get_attendance_settings(self, household_id: str) -> HouseholdAttendanceSettings | None:
        self._record("get_attendance_settings", household_id)
        return self.attendance.get(household_id)

    # Employees

    async def create_employee(self, employee: EmployeeInput, employment: EmploymentInput) -> Employee:
        self._record("create_employee", employee, employment)
        created = Employee(
            id=f"emp-{len(self.employees) + 1}",
            name=employee.name,
            household_id=employment.household_id,
            role=employment.role,
            employment_type=employment.employment_type,
        )
        self.employees.append(created)
        return created


@pytest.fixture
def store():
    """Empty in-memory onboarding store for one user."""
    return InMemoryOnboardingStore()


@pytest.fixture
def store_with_household():
    """Store that already holds household hh-1."""
    s = InMemoryOnboardingStore()
    s.households["hh-1"] = Household(id="hh-1", name="Sharma Residence")
    return s


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.insert.return_value = mock_table
    mock_table.upsert.return_value = mock_table
    mock_table.update.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table
    mock_client.rpc.return_value = MagicMock(execute=MagicMock(return_value=MagicMock(data=None)))

    return mock_client


@pytest.fixture
def sample_holiday_rule_row():
    """A stored preset-managed holiday rule row (4 days per month)."""
    return {
        "id": "rule-1",
        "household_id": "hh-1",
        "rule_type": "days_per_month",
        "recurrence_interval_value": 1,
        "recurrence_interval_unit": "month",
        "repeat_on_days_of_week": None,
        "repeat_on_day_of_month": None,
        "days_per_month": 4,
        "ends_type": "never",
        "ends_date": None,
        "ends_occurrences": None,
        "is_household_default": True,
        "created_at": "2026-01-05T10:00:00+00:00",
        "updated_at": "2026-01-05T10:00:00+00:00",
    }
