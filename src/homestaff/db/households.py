"""
Household persistence.

Creating a household also makes the creating user its admin member.
"""

import logging

from homestaff.db.adapter import DatabaseAdapter
from homestaff.db.client import execute
from homestaff.db.errors import StoreError
from homestaff.models import Household

logger = logging.getLogger(__name__)

MIN_HOUSEHOLD_NAME_LENGTH = 2


async def create_household(client: DatabaseAdapter, user_id: str, name: str) -> Household:
    """
    Create a household and add the user as admin.

    If the membership insert fails the household row is removed again.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise StoreError("Household name is required")
    if len(cleaned) < MIN_HOUSEHOLD_NAME_LENGTH:
        raise StoreError(f"Household name must be at least {MIN_HOUSEHOLD_NAME_LENGTH} characters")

    result = execute(
        client.table("households").insert({"name": cleaned, "status": "active"}),
        "create household",
    )
    if not result.data:
        raise StoreError("Failed to create household: no row returned")
    household = result.data[0]

    try:
        execute(
            client.table("members").insert({
                "user_id": user_id,
                "household_id": household["id"],
                "role": "admin",
            }),
            "add user as member",
        )
    except StoreError:
        try:
            client.table("households").delete().eq("id", household["id"]).execute()
        except Exception as e:
            logger.warning(f"Failed to clean up household {household['id']}: {e}")
        raise

    logger.info(f"Created household {household['id']} for user {user_id}")
    return Household.from_row(household)


async def get_household(client: DatabaseAdapter, household_id: str) -> Household | None:
    """Get a household by ID, or None if it does not exist."""
    result = execute(
        client.table("households").select("*").eq("id", household_id).limit(1),
        "fetch household",
    )
    if not result.data:
        return None
    return Household.from_row(result.data[0])

