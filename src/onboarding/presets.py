"""
Onboarding Presets - household default policies.

A closed catalog of shortcuts shown on the "Set Global Defaults" step.
Holiday presets resolve to a RecurrencePattern (or None for "custom"),
attendance presets to a tracking method. Adding a preset means adding an
enum member AND its mapping; the module refuses to import otherwise.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Literal

from homestaff.models import RecurrencePattern, TrackingMethod

from .errors import UnknownPresetError


class HolidayPreset(str, Enum):
    FOUR_DAYS_PER_MONTH = "p1"
    EVERY_SUNDAY_OFF = "p2"
    CUSTOM = "p3"


class AttendancePreset(str, Enum):
    PRESENT_BY_DEFAULT = "a1"
    MANUAL_ENTRY = "a2"


@dataclass(frozen=True)
class PresetOption:
    id: str
    label: str
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


HOLIDAY_RULE_PRESETS: tuple[PresetOption, ...] = (
    PresetOption(HolidayPreset.FOUR_DAYS_PER_MONTH.value, "4 Days per Month", "Standard flexible entitlement."),
    PresetOption(HolidayPreset.EVERY_SUNDAY_OFF.value, "Every Sunday Off", "Weekly recurring holiday."),
    PresetOption(HolidayPreset.CUSTOM.value, "Custom", "Set your own rules later."),
)

ATTENDANCE_PRESETS: tuple[PresetOption, ...] = (
    PresetOption(AttendancePreset.PRESENT_BY_DEFAULT.value, "Present by Default", "Only mark absences (Recommended)."),
    PresetOption(AttendancePreset.MANUAL_ENTRY.value, "Manual Entry", "Mark attendance for every person daily."),
)


# None = no rule is created; the household configures one later
_HOLIDAY_PATTERNS: dict[HolidayPreset, RecurrencePattern | None] = {
    HolidayPreset.FOUR_DAYS_PER_MONTH: RecurrencePattern(
        rule_type="days_per_month",
        recurrence_interval_unit="month",
        recurrence_interval_value=1,
        days_per_month=4,
        ends_type="never",
    ),
    HolidayPreset.EVERY_SUNDAY_OFF: RecurrencePattern(
        rule_type="recurring",
        recurrence_interval_unit="week",
        recurrence_interval_value=1,
        repeat_on_days_of_week=[0],  # 0 = Sunday
        ends_type="never",
    ),
    HolidayPreset.CUSTOM: None,
}

_TRACKING_METHODS: dict[AttendancePreset, TrackingMethod] = {
    AttendancePreset.PRESENT_BY_DEFAULT: "present_by_default",
    AttendancePreset.MANUAL_ENTRY: "manual_entry",
}

_missing = (set(HolidayPreset) - set(_HOLIDAY_PATTERNS)) | (set(AttendancePreset) - set(_TRACKING_METHODS))
if _missing:
    raise RuntimeError(f"Presets without a mapping: {sorted(p.value for p in _missing)}")


def _holiday_preset(preset_id: str) -> HolidayPreset:
    try:
        return HolidayPreset(preset_id)
    except ValueError:
        raise UnknownPresetError(preset_id) from None


def _attendance_preset(preset_id: str) -> AttendancePreset:
    try:
        return AttendancePreset(preset_id)
    except ValueError:
        raise UnknownPresetError(preset_id) from None


def resolve_holiday_preset(preset_id: str) -> RecurrencePattern | None:
    """
    Map a holiday preset id to its recurrence pattern.

    Returns None for the custom preset (p3).

    Raises:
        UnknownPresetError: preset_id is not in the catalog.
    """
    return _HOLIDAY_PATTERNS[_holiday_preset(preset_id)]


def resolve_attendance_preset(preset_id: str) -> TrackingMethod:
    """
    Map an attendance preset id to a tracking method.

    Raises:
        UnknownPresetError: preset_id is not in the catalog.
    """
    return _TRACKING_METHODS[_attendance_preset(preset_id)]


def is_holiday_preset(preset_id: str) -> bool:
    return preset_id in {p.value for p in HolidayPreset}


def is_attendance_preset(preset_id: str) -> bool:
    return preset_id in {p.value for p in AttendancePreset}


def get_onboarding_presets() -> dict[str, list[dict]]:
    """All preset options for frontend rendering."""
    return {
        "holiday_rules": [p.to_dict() for p in HOLIDAY_RULE_PRESETS],
        "attendance": [p.to_dict() for p in ATTENDANCE_PRESETS],
    }


def get_preset_option(preset_id: str, kind: Literal["holiday", "attendance"]) -> PresetOption | None:
    presets = HOLIDAY_RULE_PRESETS if kind == "holiday" else ATTENDANCE_PRESETS
    return next((p for p in presets if p.id == preset_id), None)
