"""
Household Default-Policy Resolver.

Applies holiday and attendance presets to a household. Preset-managed
records are upserted by household, so repeating a selection updates the
existing record instead of adding another. The custom holiday preset writes
nothing: a household with no holiday rule is a valid state.
"""

import logging

from homestaff.db.errors import HouseholdNotFoundError
from homestaff.db.store import OnboardingStore
from homestaff.models import (
    HolidayRuleInput,
    HouseholdAttendanceSettings,
    HouseholdHolidayRule,
)

from .presets import resolve_attendance_preset, resolve_holiday_preset

logger = logging.getLogger(__name__)


async def _require_household(store: OnboardingStore, household_id: str) -> None:
    if not household_id or await store.get_household(household_id) is None:
        raise HouseholdNotFoundError(household_id)


async def apply_holiday_preset(
    store: OnboardingStore,
    household_id: str,
    preset_id: str,
) -> HouseholdHolidayRule | None:
    """
    Set the household's default holiday rule from a preset.

    Returns the stored rule, or None for the custom preset (nothing written).

    Raises:
        UnknownPresetError: preset_id is not a holiday preset (before any I/O).
        HouseholdNotFoundError: household_id does not exist.
    """
    pattern = resolve_holiday_preset(preset_id)
    if pattern is None:
        logger.info(f"Holiday preset {preset_id} is custom; deferring rule for {household_id}")
        return None

    await _require_household(store, household_id)
    rule = await store.upsert_holiday_rule(household_id, pattern)
    logger.info(f"Applied holiday preset {preset_id} to household {household_id} (rule {rule.id})")
    return rule


async def apply_attendance_preset(
    store: OnboardingStore,
    household_id: str,
    preset_id: str,
) -> HouseholdAttendanceSettings:
    """
    Set the household's attendance tracking method from a preset.

    Raises:
        UnknownPresetError: preset_id is not an attendance preset.
        HouseholdNotFoundError: household_id does not exist.
    """
    tracking_method = resolve_attendance_preset(preset_id)
    await _require_household(store, household_id)
    settings = await store.upsert_attendance_settings(household_id, tracking_method)
    logger.info(f"Applied attendance preset {preset_id} to household {household_id}")
    return settings


async def create_custom_holiday_rule(
    store: OnboardingStore,
    household_id: str,
    rule_input: HolidayRuleInput | dict,
) -> HouseholdHolidayRule:
    """
    Add a fully specified holiday rule. Always inserts.

    Raises:
        pydantic.ValidationError: field combination does not fit rule_type.
        HouseholdNotFoundError: household_id does not exist.
    """
    rule = rule_input if isinstance(rule_input, HolidayRuleInput) else HolidayRuleInput.model_validate(rule_input)
    await _require_household(store, household_id)
    return await store.insert_holiday_rule(household_id, rule)


async def get_household_defaults(
    store: OnboardingStore,
    household_id: str,
) -> tuple[list[HouseholdHolidayRule], HouseholdAttendanceSettings | None]:
    """Holiday rules (possibly none) and attendance settings (possibly unset)."""
    rules = await store.list_holiday_rules(household_id)
    attendance = await store.get_attendance_settings(household_id)
    return rules, attendance
