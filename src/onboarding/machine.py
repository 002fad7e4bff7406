"""
Onboarding State Machine.

Drives the four setup steps (household, defaults, first employee, welcome).
Every forward transition runs the step's side effect, persists progress and
only then updates step statuses, so a failed backend call leaves the user on
the same step with nothing half-applied to the wizard state.

The UI talks to the machine through commands:

    machine = await OnboardingMachine.start(store, invitation_code=code)
    await machine.handle(Advance(StepId.HOUSEHOLD, {"household_name": "Sharma Residence"}))
    await machine.handle(Skip(StepId.DEFAULTS))
    await machine.handle(Retreat())
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from homestaff.db.store import OnboardingStore
from homestaff.models import EmployeeInput, EmploymentInput, OnboardingProgress

from .defaults import apply_attendance_preset, apply_holiday_preset
from .errors import (
    FlowCompletedError,
    InvitationError,
    StepMismatchError,
    StepNotSkippableError,
    StepValidationError,
)
from .forms import DefaultsForm, EmployeeForm, HouseholdForm, parse_step_data
from .presets import resolve_attendance_preset, resolve_holiday_preset
from .state import (
    TOTAL_STEPS,
    OnboardingConfig,
    OnboardingSnapshot,
    OnboardingStep,
    StepId,
    StepStatus,
    default_steps,
    step_index,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class Advance:
    step_id: StepId
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Skip:
    step_id: StepId


@dataclass(frozen=True)
class Retreat:
    pass


@dataclass(frozen=True)
class Complete:
    pass


Command = Union[Advance, Skip, Retreat, Complete]


# =============================================================================
# Machine
# =============================================================================


class OnboardingMachine:
    """
    Onboarding flow for one user session.

    Owns the step list and progress config; persistence goes through the
    injected OnboardingStore.
    """

    def __init__(
        self,
        store: OnboardingStore,
        steps: list[OnboardingStep] | None = None,
        config: OnboardingConfig | None = None,
        household_id: str | None = None,
    ):
        self.store = store
        self.steps = steps if steps is not None else default_steps()
        self.config = config if config is not None else OnboardingConfig()
        self.household_id = household_id
        self.skipped: set[StepId] = set()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def resume(cls, store: OnboardingStore, progress: OnboardingProgress | None) -> "OnboardingMachine":
        """
        Rebuild a machine from saved progress.

        Steps before the saved index are completed, the saved index is in
        progress, later steps are pending. A household id in step 0's data
        (e.g. joined via invitation) counts as a completed household step.
        """
        machine = cls(store)
        if progress is None:
            return machine

        step0 = progress.step_data.get("step_0") or {}
        machine.household_id = step0.get("household_id")
        machine.config.user_id = progress.user_id
        machine.config.last_saved_at = progress.last_saved_at
        machine.skipped = {
            step.id
            for i, step in enumerate(machine.steps)
            if (progress.step_data.get(f"step_{i}") or {}).get("skipped")
        }

        if progress.is_completed:
            for step in machine.steps:
                step.status = StepStatus.COMPLETED
            machine.config.current_step_index = TOTAL_STEPS - 1
            machine.config.is_completed = True
            return machine

        index = min(max(progress.current_step_index, 0), TOTAL_STEPS - 1)
        if machine.household_id:
            index = max(index, 1)
        machine._set_pointer(index)
        return machine

    @classmethod
    async def start(cls, store: OnboardingStore, invitation_code: str | None = None) -> "OnboardingMachine":
        """
        Begin or resume onboarding.

        With an invitation code the user joins that household and the
        household step is completed without creating one.

        Raises:
            InvitationError: the code was rejected. Callers fall back to
                start(store) for the normal flow.
        """
        if invitation_code:
            result = await store.accept_invitation_code(invitation_code)
            if not result.success or not result.household_id:
                raise InvitationError(result.error or "Invalid invitation code")

            await store.save_onboarding_progress(
                1,
                {"household_id": result.household_id, "joined_via_invitation": True},
                for_step=0,
            )
            machine = cls(store, household_id=result.household_id)
            machine._move_forward(0)
            logger.info(f"Onboarding joined household {result.household_id} via invitation")
            return machine

        progress = await store.get_onboarding_progress()
        return cls.resume(store, progress)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def current_step(self) -> OnboardingStep:
        return self.steps[self.config.current_step_index]

    def snapshot(self) -> OnboardingSnapshot:
        return OnboardingSnapshot(
            config=self.config,
            steps=self.steps,
            household_id=self.household_id,
            skipped=[step.id for step in self.steps if step.id in self.skipped],
        )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def handle(self, command: Command) -> int:
        """Dispatch a UI command. Returns the resulting step index."""
        if isinstance(command, Advance):
            return await self.advance(command.step_id, command.data)
        if isinstance(command, Skip):
            return await self.skip(command.step_id)
        if isinstance(command, Retreat):
            return self.retreat()
        if isinstance(command, Complete):
            await self.complete()
            return self.config.current_step_index
        raise TypeError(f"Unknown onboarding command: {command!r}")

    async def advance(self, step_id: StepId | str, data: dict[str, Any] | None = None) -> int:
        """
        Validate the current step's data, run its side effect, persist, move on.

        On the final step this completes the flow instead.

        Raises:
            StepValidationError: required data missing; nothing was called.
            StoreError: a backend call failed; state is unchanged.
        """
        step = self._require_current(step_id)
        index = self.config.current_step_index

        if step.id is StepId.WELCOME:
            await self.complete()
            return index

        if step.id is StepId.HOUSEHOLD and self.household_id:
            # Household already exists (invitation, or user came back)
            payload: dict[str, Any] = {"household_id": self.household_id}
        else:
            form, errors = parse_step_data(step.id, data, step.is_required)
            if form is None:
                raise StepValidationError(step.id.value, errors)
            payload = await self._run_side_effect(form)

        await self.store.save_onboarding_progress(index + 1, payload, for_step=index)
        self._move_forward(index)
        logger.info(f"Onboarding advanced past {step.id.value} to step {index + 1}")
        return index + 1

    async def skip(self, step_id: StepId | str) -> int:
        """
        Move past an optional step without running its side effect.

        Raises:
            StepNotSkippableError: the step is required.
        """
        step = self._require_current(step_id)
        if step.is_required:
            raise StepNotSkippableError(f"Step {step.id.value} cannot be skipped")

        index = self.config.current_step_index
        await self.store.save_onboarding_progress(index + 1, {"skipped": True}, for_step=index)
        self._move_forward(index)
        self.skipped.add(step.id)
        logger.info(f"Onboarding skipped {step.id.value}")
        return index + 1

    def retreat(self) -> int:
        """Go back one step. No-op on the first step; nothing is persisted."""
        if self.config.is_completed:
            raise FlowCompletedError("Onboarding is already complete")

        index = self.config.current_step_index
        if index == 0:
            return 0

        self.steps[index].status = StepStatus.PENDING
        self.steps[index - 1].status = StepStatus.IN_PROGRESS
        self.config.current_step_index = index - 1
        return index - 1

    async def complete(self) -> None:
        """Finish onboarding from the final step. Safe to call twice."""
        if self.config.is_completed:
            return
        if self.config.current_step_index != TOTAL_STEPS - 1:
            raise StepMismatchError("Onboarding can only be completed from the final step")

        await self.store.complete_onboarding()
        for step in self.steps:
            step.status = StepStatus.COMPLETED
        self.config.is_completed = True
        self.config.touch()
        logger.info("Onboarding completed")

    async def auto_save(self, step_id: StepId | str, data: dict[str, Any]) -> bool:
        """
        Best-effort save of draft data for the current step.

        Drafts for any other step are dropped, and the saved step pointer is
        never moved. Never raises and never changes machine state. Returns
        whether the write happened.
        """
        try:
            index = step_index(step_id)
        except ValueError:
            logger.warning(f"Auto-save for unknown step {step_id} ignored")
            return False
        if self.config.is_completed or index != self.config.current_step_index:
            logger.info(f"Auto-save for {StepId(step_id).value} ignored; it is not the current step")
            return False

        try:
            await self.store.save_step_draft(index, data)
        except Exception as e:
            logger.warning(f"Failed to auto-save onboarding progress: {e}")
            return False
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require_current(self, step_id: StepId | str) -> OnboardingStep:
        if self.config.is_completed:
            raise FlowCompletedError("Onboarding is already complete")
        try:
            requested = StepId(step_id)
        except ValueError:
            raise StepMismatchError(f"Unknown step: {step_id}") from None
        current = self.current_step
        if requested is not current.id:
            raise StepMismatchError(
                f"Can only act on current step ({current.id.value}), got {requested.value}"
            )
        return current

    def _require_household(self) -> str:
        if not self.household_id:
            raise StepMismatchError("No household yet; complete step-household first")
        return self.household_id

    async def _run_side_effect(self, form: Any) -> dict[str, Any]:
        """Perform the step's backend action. Returns the payload to persist."""
        if isinstance(form, HouseholdForm):
            household = await self.store.create_household(form.household_name)
            self.household_id = household.id
            return {"household_id": household.id, "household_name": household.name}

        if isinstance(form, DefaultsForm):
            if not (form.holiday_rule or form.attendance):
                return form.model_dump()
            household_id = self._require_household()
            # Resolve both before writing either, so an unknown id applies nothing
            if form.holiday_rule:
                resolve_holiday_preset(form.holiday_rule)
            if form.attendance:
                resolve_attendance_preset(form.attendance)
            if form.holiday_rule:
                await apply_holiday_preset(self.store, household_id, form.holiday_rule)
            if form.attendance:
                await apply_attendance_preset(self.store, household_id, form.attendance)
            return form.model_dump()

        if isinstance(form, EmployeeForm):
            payload = form.model_dump()
            if not form.is_complete:
                return payload
            household_id = self._require_household()
            employee = await self.store.create_employee(
                EmployeeInput(name=form.name),
                EmploymentInput(
                    household_id=household_id,
                    employment_type=form.employment_type,
                    role=form.role,
                    start_date=date.today(),
                    payment_method="Cash",
                ),
            )
            payload["employee_id"] = employee.id
            return payload

        return {}

    def _set_pointer(self, index: int) -> None:
        for i, step in enumerate(self.steps):
            if i < index:
                step.status = StepStatus.COMPLETED
            elif i == index:
                step.status = StepStatus.IN_PROGRESS
            else:
                step.status = StepStatus.PENDING
        self.config.current_step_index = index

    def _move_forward(self, index: int) -> None:
        self.steps[index].status = StepStatus.COMPLETED
        if index + 1 < TOTAL_STEPS:
            self.steps[index + 1].status = StepStatus.IN_PROGRESS
            self.config.current_step_index = index + 1
        self.config.touch()
