"""
Onboarding API Endpoints.

Handles the setup wizard with persistent progress. Each request rebuilds the
user's OnboardingMachine from onboarding_progress, applies one command and
returns the new state.
"""

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from homestaff.db.client import get_authenticated_client
from homestaff.db.errors import HouseholdNotFoundError, StoreError
from homestaff.db.store import OnboardingStore, SupabaseOnboardingStore
from homestaff.models import HolidayRuleInput, HouseholdAttendanceSettings, HouseholdHolidayRule
from homestaff.web.auth import AuthenticatedUser, get_current_user

from .defaults import create_custom_holiday_rule, get_household_defaults
from .errors import InvitationError, OnboardingError, StepValidationError
from .machine import Advance, Complete, OnboardingMachine, Retreat, Skip
from .presets import get_onboarding_presets
from .state import TOTAL_STEPS, StepId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def get_store(user: AuthenticatedUser = Depends(get_current_user)) -> OnboardingStore:
    """Store running queries as the calling user (RLS applies)."""
    return SupabaseOnboardingStore(get_authenticated_client(user.access_token), user.id)


# =============================================================================
# Request/Response Models
# =============================================================================


class HouseholdRequest(BaseModel):
    """Step 1: Household name."""
    household_name: str = ""


class DefaultsRequest(BaseModel):
    """Step 2: Preset selections (both optional)."""
    holiday_rule: str | None = None
    attendance: str | None = None


class EmployeeRequest(BaseModel):
    """Step 3: First employee."""
    name: str = ""
    role: str = ""
    employment_type: Literal["monthly", "adhoc"] = "monthly"


class SkipStepRequest(BaseModel):
    step_id: StepId


class AutoSaveRequest(BaseModel):
    step_id: StepId
    data: dict[str, Any] = Field(default_factory=dict)


class StepResponse(BaseModel):
    id: str
    title: str
    description: str
    is_required: bool
    status: str


class StateResponse(BaseModel):
    """Current onboarding state."""
    current_step_index: int
    total_steps: int
    is_completed: bool
    last_saved_at: str | None = None
    current_step: str
    steps: list[StepResponse]
    household_id: str | None = None
    skipped: list[str] = Field(default_factory=list)
    error: str | None = None  # invitation problems on an otherwise normal flow


class DefaultsResponse(BaseModel):
    holiday_rules: list[HouseholdHolidayRule]
    attendance_settings: HouseholdAttendanceSettings | None = None


# =============================================================================
# Helpers
# =============================================================================


def _state_response(machine: OnboardingMachine, error: str | None = None) -> StateResponse:
    snapshot = machine.snapshot()
    return StateResponse(
        current_step_index=snapshot.config.current_step_index,
        total_steps=snapshot.config.total_steps,
        is_completed=snapshot.config.is_completed,
        last_saved_at=snapshot.config.last_saved_at,
        current_step=machine.current_step.id.value,
        steps=[StepResponse(**s.to_dict()) for s in snapshot.steps],
        household_id=snapshot.household_id,
        skipped=[s.value for s in snapshot.skipped],
        error=error,
    )


def _http_error(e: Exception) -> HTTPException:
    """Map onboarding/store errors to HTTP errors with user-facing detail."""
    if isinstance(e, StepValidationError):
        return HTTPException(status_code=422, detail=e.errors)
    if isinstance(e, HouseholdNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, StoreError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


async def _load_machine(store: OnboardingStore) -> OnboardingMachine:
    try:
        return await OnboardingMachine.start(store)
    except StoreError as e:
        raise _http_error(e)


async def _run(store: OnboardingStore, command) -> StateResponse:
    machine = await _load_machine(store)
    try:
        await machine.handle(command)
    except (OnboardingError, StoreError) as e:
        logger.info(f"Onboarding command {type(command).__name__} rejected: {e}")
        raise _http_error(e)
    return _state_response(machine)


# =============================================================================
# Endpoints: State
# =============================================================================


@router.get("/presets")
async def get_presets():
    """Holiday and attendance preset options for the defaults step."""
    return get_onboarding_presets()


@router.get("/state", response_model=StateResponse)
async def get_onboarding_state(
    code: str | None = None,
    store: OnboardingStore = Depends(get_store),
) -> StateResponse:
    """
    Get (or resume) onboarding progress.

    With ?code=..., join the invitation's household first. A rejected code
    falls back to the normal flow and reports the reason in `error`.
    """
    if code:
        try:
            machine = await OnboardingMachine.start(store, invitation_code=code)
            return _state_response(machine)
        except InvitationError as e:
            logger.info(f"Invitation code rejected: {e}")
            machine = await _load_machine(store)
            return _state_response(machine, error=str(e))
        except StoreError as e:
            raise _http_error(e)

    machine = await _load_machine(store)
    return _state_response(machine)


@router.get("/steps/{step_index}/data")
async def get_step_data(step_index: int, store: OnboardingStore = Depends(get_store)) -> dict:
    """Saved payload of one step, for restoring form state."""
    if not 0 <= step_index < TOTAL_STEPS:
        raise HTTPException(status_code=404, detail=f"Unknown step index: {step_index}")
    try:
        data = await store.get_step_data(step_index)
    except StoreError as e:
        raise _http_error(e)
    return {"step_index": step_index, "data": data}


# =============================================================================
# Endpoints: Transitions
# =============================================================================


@router.post("/household", response_model=StateResponse)
async def submit_household(request: HouseholdRequest, store: OnboardingStore = Depends(get_store)) -> StateResponse:
    """Step 1: Create the household."""
    return await _run(store, Advance(StepId.HOUSEHOLD, request.model_dump()))


@router.post("/defaults", response_model=StateResponse)
async def submit_defaults(request: DefaultsRequest, store: OnboardingStore = Depends(get_store)) -> StateResponse:
    """Step 2: Apply holiday / attendance presets."""
    return await _run(store, Advance(StepId.DEFAULTS, request.model_dump()))


@router.post("/employee", response_model=StateResponse)
async def submit_employee(request: EmployeeRequest, store: OnboardingStore = Depends(get_store)) -> StateResponse:
    """Step 3: Add the first employee."""
    return await _run(store, Advance(StepId.EMPLOYEE, request.model_dump()))


@router.post("/skip", response_model=StateResponse)
async def skip_step(request: SkipStepRequest, store: OnboardingStore = Depends(get_store)) -> StateResponse:
    """Skip the current step if it is optional."""
    return await _run(store, Skip(request.step_id))


@router.post("/back", response_model=StateResponse)
async def previous_step(store: OnboardingStore = Depends(get_store)) -> StateResponse:
    """
    Go back one step.

    The machine itself does not persist this; the new position is saved
    best-effort so the next request resumes from it. Once a household is
    attached the household step cannot be reopened (a reload would resume
    past it), so back from the defaults step leaves the state unchanged.
    """
    machine = await _load_machine(store)
    if machine.household_id and machine.config.current_step_index == 1:
        return _state_response(machine)
    try:
        index = await machine.handle(Retreat())
    except OnboardingError as e:
        raise _http_error(e)
    try:
        await store.save_onboarding_progress(index, None)
    except StoreError as e:
        logger.warning(f"Failed to save position after going back: {e}")
    return _state_response(machine)


@router.post("/complete", response_model=StateResponse)
async def complete_onboarding(store: OnboardingStore = Depends(get_store)) -> StateResponse:
    """Finish onboarding from the welcome step."""
    return await _run(store, Complete())


@router.post("/autosave")
async def autosave(request: AutoSaveRequest, store: OnboardingStore = Depends(get_store)) -> dict:
    """Best-effort draft save. Always 200; `saved` reports the outcome."""
    try:
        machine = await OnboardingMachine.start(store)
    except StoreError as e:
        logger.warning(f"Auto-save could not load progress: {e}")
        return {"saved": False}
    return {"saved": await machine.auto_save(request.step_id, request.data)}


@router.post("/reset")
async def reset_onboarding(store: OnboardingStore = Depends(get_store)) -> dict:
    """Delete saved progress so the wizard starts over."""
    try:
        await store.reset_onboarding_progress()
    except StoreError as e:
        raise _http_error(e)
    return {"success": True}


# =============================================================================
# Endpoints: Household Defaults
# =============================================================================


async def _require_household_id(store: OnboardingStore) -> str:
    machine = await _load_machine(store)
    if not machine.household_id:
        raise HTTPException(status_code=409, detail="Create or join a household first")
    return machine.household_id


@router.get("/defaults", response_model=DefaultsResponse)
async def get_defaults(store: OnboardingStore = Depends(get_store)) -> DefaultsResponse:
    """Holiday rules and attendance settings of the onboarding household."""
    household_id = await _require_household_id(store)
    try:
        rules, attendance = await get_household_defaults(store, household_id)
    except StoreError as e:
        raise _http_error(e)
    return DefaultsResponse(holiday_rules=rules, attendance_settings=attendance)


@router.post("/holiday-rules", response_model=HouseholdHolidayRule)
async def create_holiday_rule(
    request: HolidayRuleInput,
    store: OnboardingStore = Depends(get_store),
) -> HouseholdHolidayRule:
    """Add a custom holiday rule (used after choosing the Custom preset)."""
    household_id = await _require_household_id(store)
    try:
        return await create_custom_holiday_rule(store, household_id, request)
    except StoreError as e:
        raise _http_error(e)
