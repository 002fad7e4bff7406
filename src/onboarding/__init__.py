"""
HomeStaff Onboarding.

Four-step setup wizard for a new household admin:
1. Name Your Household (required)
2. Set Global Defaults - holiday and attendance presets (optional)
3. Add Your First Employee (optional)
4. Welcome (required, completes the flow)

Progress is persisted after every forward step so the user can resume.
"""

from .machine import Advance, Complete, OnboardingMachine, Retreat, Skip
from .presets import (
    AttendancePreset,
    HolidayPreset,
    get_onboarding_presets,
    resolve_attendance_preset,
    resolve_holiday_preset,
)
from .state import OnboardingConfig, OnboardingStep, StepId, StepStatus

__all__ = [
    "OnboardingMachine",
    "Advance",
    "Skip",
    "Retreat",
    "Complete",
    "OnboardingConfig",
    "OnboardingStep",
    "StepId",
    "StepStatus",
    "HolidayPreset",
    "AttendancePreset",
    "get_onboarding_presets",
    "resolve_holiday_preset",
    "resolve_attendance_preset",
]
