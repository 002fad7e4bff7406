"""
Onboarding progress persistence.

One onboarding_progress row per user holds the current step index and a JSON
object of per-step data keyed "step_<index>". Completion is tracked on the
user's profile (profiles.onboarding_completed).
"""

import logging
from datetime import datetime, timezone
from typing import Any

from homestaff.db.adapter import DatabaseAdapter
from homestaff.db.client import execute
from homestaff.db.errors import StoreError
from homestaff.models import OnboardingProgress

logger = logging.getLogger(__name__)

TOTAL_STEPS = 4
PROGRESS_TABLE = "onboarding_progress"

# Written by household creation, invitation joins and employee creation
DRAFT_PROTECTED_KEYS = ("household_id", "joined_via_invitation", "employee_id")


def step_key(step_index: int) -> str:
    return f"step_{step_index}"


async def is_onboarding_completed(client: DatabaseAdapter, user_id: str) -> bool:
    result = execute(
        client.table("profiles").select("onboarding_completed").eq("id", user_id).limit(1),
        "fetch profile",
    )
    return bool(result.data and result.data[0].get("onboarding_completed"))


async def get_onboarding_progress(client: DatabaseAdapter, user_id: str) -> OnboardingProgress | None:
    """Load saved progress, or None if the user has never saved any."""
    result = execute(
        client.table(PROGRESS_TABLE).select("*").eq("user_id", user_id).limit(1),
        "fetch onboarding progress",
    )
    if not result.data:
        return None
    row = result.data[0]

    return OnboardingProgress(
        user_id=row["user_id"],
        current_step_index=row.get("current_step_index") or 0,
        total_steps=TOTAL_STEPS,
        is_completed=await is_onboarding_completed(client, user_id),
        last_saved_at=row.get("last_saved_at"),
        step_data=row.get("step_data") or {},
    )


async def get_step_data(client: DatabaseAdapter, user_id: str, step_index: int) -> dict[str, Any] | None:
    """Get the saved payload for one step."""
    progress = await get_onboarding_progress(client, user_id)
    if progress is None:
        return None
    return progress.step_data.get(step_key(step_index))


async def save_onboarding_progress(
    client: DatabaseAdapter,
    user_id: str,
    step_index: int,
    data: dict[str, Any] | None,
    for_step: int | None = None,
) -> None:
    """
    Save the current step index and one step's data.

    Args:
        step_index: Step the user is now on.
        data: Payload to store. None only moves the step pointer.
        for_step: Step the payload belongs to (defaults to step_index).
    """
    if not 0 <= step_index < TOTAL_STEPS:
        raise StoreError(f"Invalid step index: {step_index}")
    data_index = step_index if for_step is None else for_step
    if not 0 <= data_index < TOTAL_STEPS:
        raise StoreError(f"Invalid step index: {data_index}")

    existing = await get_onboarding_progress(client, user_id)
    step_data = dict(existing.step_data) if existing else {}
    if data is not None:
        step_data[step_key(data_index)] = data

    execute(
        client.table(PROGRESS_TABLE).upsert(
            {
                "user_id": user_id,
                "current_step_index": step_index,
                "step_data": step_data,
                "last_saved_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="user_id",
        ),
        "save onboarding progress",
    )
    logger.debug(f"Saved onboarding progress for {user_id}: step {step_index}")


def merge_draft(saved: dict[str, Any] | None, draft: dict[str, Any]) -> dict[str, Any]:
    """Overlay a draft on a step's saved data. Keys written by completed side effects survive."""
    merged = {**(saved or {}), **draft}
    for key in DRAFT_PROTECTED_KEYS:
        if saved and key in saved:
            merged[key] = saved[key]
    return merged


async def save_step_draft(
    client: DatabaseAdapter,
    user_id: str,
    step_index: int,
    draft: dict[str, Any],
) -> None:
    """
    Save draft form data for one step without moving current_step_index.

    With no progress row yet the draft is inserted (not upserted), so a
    concurrent first save wins and the draft fails instead.
    """
    if not 0 <= step_index < TOTAL_STEPS:
        raise StoreError(f"Invalid step index: {step_index}")

    existing = await get_onboarding_progress(client, user_id)
    now = datetime.now(timezone.utc).isoformat()

    if existing is None:
        execute(
            client.table(PROGRESS_TABLE).insert({
                "user_id": user_id,
                "current_step_index": step_index,
                "step_data": {step_key(step_index): dict(draft)},
                "last_saved_at": now,
            }),
            "save onboarding draft",
        )
        return

    step_data = dict(existing.step_data)
    key = step_key(step_index)
    step_data[key] = merge_draft(step_data.get(key), draft)
    execute(
        client.table(PROGRESS_TABLE)
        .update({"step_data": step_data, "last_saved_at": now})
        .eq("user_id", user_id),
        "save onboarding draft",
    )


async def complete_onboarding(client: DatabaseAdapter, user_id: str) -> None:
    """Mark onboarding as complete on the user's profile."""
    execute(
        client.table("profiles").update({"onboarding_completed": True}).eq("id", user_id),
        "complete onboarding",
    )


async def reset_onboarding_progress(client: DatabaseAdapter, user_id: str) -> None:
    """Delete saved progress and clear the completion flag."""
    execute(
        client.table(PROGRESS_TABLE).delete().eq("user_id", user_id),
        "reset onboarding progress",
    )
    execute(
        client.table("profiles").update({"onboarding_completed": False}).eq("id", user_id),
        "reset onboarding status",
    )
