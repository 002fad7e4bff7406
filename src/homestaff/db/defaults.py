"""
Household defaults persistence (holiday rules, attendance settings).

Preset-managed records are written with a single upsert keyed on the
household so concurrent writers cannot create duplicates; the last write wins.
Custom holiday rules are plain inserts.
"""

import logging
from datetime import datetime, timezone

from homestaff.db.adapter import DatabaseAdapter
from homestaff.db.client import execute
from homestaff.db.errors import StoreError
from homestaff.models import (
    HolidayRuleInput,
    HouseholdAttendanceSettings,
    HouseholdHolidayRule,
    TrackingMethod,
)

logger = logging.getLogger(__name__)

HOLIDAY_RULES_TABLE = "household_holiday_rules"
ATTENDANCE_SETTINGS_TABLE = "household_attendance_settings"

# Unique constraint (household_id, is_household_default). Custom rules store
# NULL in is_household_default, so they never collide with each other.
HOLIDAY_DEFAULT_CONFLICT = "household_id,is_household_default"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def upsert_holiday_rule(
    client: DatabaseAdapter,
    household_id: str,
    rule: HolidayRuleInput,
) -> HouseholdHolidayRule:
    """Create or replace the household's preset-managed holiday rule."""
    row = rule.to_row(household_id)
    row["is_household_default"] = True
    row["updated_at"] = _now()
    # Explicit nulls so an update from p1 to p2 clears days_per_month etc.
    for column in ("repeat_on_days_of_week", "repeat_on_day_of_month", "days_per_month",
                   "ends_date", "ends_occurrences"):
        row.setdefault(column, None)

    result = execute(
        client.table(HOLIDAY_RULES_TABLE).upsert(row, on_conflict=HOLIDAY_DEFAULT_CONFLICT),
        "save holiday rule",
    )
    if not result.data:
        raise StoreError("Failed to save holiday rule: no row returned")
    return HouseholdHolidayRule.from_row(result.data[0])


async def insert_holiday_rule(
    client: DatabaseAdapter,
    household_id: str,
    rule: HolidayRuleInput,
) -> HouseholdHolidayRule:
    """Insert an additional (custom) holiday rule."""
    result = execute(
        client.table(HOLIDAY_RULES_TABLE).insert(rule.to_row(household_id)),
        "create holiday rule",
    )
    if not result.data:
        raise StoreError("Failed to create holiday rule: no row returned")
    return HouseholdHolidayRule.from_row(result.data[0])


async def upsert_attendance_settings(
    client: DatabaseAdapter,
    household_id: str,
    tracking_method: TrackingMethod,
) -> HouseholdAttendanceSettings:
    """Create or update the household's attendance settings (one row per household)."""
    result = execute(
        client.table(ATTENDANCE_SETTINGS_TABLE).upsert(
            {
                "household_id": household_id,
                "tracking_method": tracking_method,
                "updated_at": _now(),
            },
            on_conflict="household_id",
        ),
        "save attendance settings",
    )
    if not result.data:
        raise StoreError("Failed to save attendance settings: no row returned")
    return HouseholdAttendanceSettings.from_row(result.data[0])


async def list_holiday_rules(client: DatabaseAdapter, household_id: str) -> list[HouseholdHolidayRule]:
    """All holiday rules of a household. An empty list is a valid state."""
    result = execute(
        client.table(HOLIDAY_RULES_TABLE).select("*").eq("household_id", household_id),
        "fetch holiday rules",
    )
    return [HouseholdHolidayRule.from_row(row) for row in result.data or []]


async def get_attendance_settings(
    client: DatabaseAdapter,
    household_id: str,
) -> HouseholdAttendanceSettings | None:
    result = execute(
        client.table(ATTENDANCE_SETTINGS_TABLE).select("*").eq("household_id", household_id).limit(1),
        "fetch attendance settings",
    )
    if not result.data:
        return None
    return HouseholdAttendanceSettings.from_row(result.data[0])
