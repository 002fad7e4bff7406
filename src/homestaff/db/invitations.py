"""
Invitation code persistence.

A user who opens onboarding with a valid code joins an existing household
as a member instead of creating one.
"""

import logging
from datetime import datetime, timezone

from homestaff.db.adapter import DatabaseAdapter
from homestaff.db.client import execute
from homestaff.models import InvitationResult, InvitationValidation

logger = logging.getLogger(__name__)


def _parse_iso(iso_str: str | None) -> datetime | None:
    """Parse ISO format string to an aware datetime."""
    if not iso_str:
        return None
    try:
        if iso_str.endswith("Z"):
            iso_str = iso_str[:-1] + "+00:00"
        parsed = datetime.fromisoformat(iso_str)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def validate_invitation_code(client: DatabaseAdapter, code: str) -> InvitationValidation:
    """
    Check that a code is active, unexpired and below its use limit.

    Expired codes are flipped to status 'expired' as a side effect.
    """
    result = execute(
        client.table("invitations")
        .select("*, households(name)")
        .eq("code", code)
        .eq("status", "active")
        .limit(1),
        "fetch invitation",
    )
    if not result.data:
        return InvitationValidation(valid=False, error="Invalid invitation code")
    invitation = result.data[0]

    expires_at = _parse_iso(invitation.get("expires_at"))
    if expires_at and expires_at < datetime.now(timezone.utc):
        execute(
            client.table("invitations").update({"status": "expired"}).eq("id", invitation["id"]),
            "expire invitation",
        )
        return InvitationValidation(valid=False, error="Invitation code has expired")

    max_uses = invitation.get("max_uses")
    if max_uses is not None and (invitation.get("current_uses") or 0) >= max_uses:
        return InvitationValidation(valid=False, error="Invitation code has reached maximum uses")

    household = invitation.get("households") or {}
    return InvitationValidation(
        valid=True,
        household_id=invitation["household_id"],
        household_name=household.get("name") or "Unknown Household",
    )


async def accept_invitation_code(client: DatabaseAdapter, user_id: str, code: str) -> InvitationResult:
    """
    Join the code's household as a 'member'.

    Business failures come back as InvitationResult(success=False, error=...);
    only backend failures raise.
    """
    validation = await validate_invitation_code(client, code)
    if not validation.valid or not validation.household_id:
        return InvitationResult(success=False, error=validation.error or "Invalid invitation code")

    household_id = validation.household_id

    existing = execute(
        client.table("members")
        .select("id")
        .eq("household_id", household_id)
        .eq("user_id", user_id)
        .limit(1),
        "check membership",
    )
    if existing.data:
        # Rejoining is a no-op; a retry after a failed progress save lands here
        logger.info(f"User {user_id} is already a member of household {household_id}")
        return InvitationResult(success=True, household_id=household_id)

    invitation_result = execute(
        client.table("invitations").select("*").eq("code", code).eq("status", "active").limit(1),
        "fetch invitation",
    )
    if not invitation_result.data:
        return InvitationResult(success=False, error="Invalid invitation code")
    invitation = invitation_result.data[0]

    # First household becomes the primary one
    memberships = execute(
        client.table("members").select("id").eq("user_id", user_id).limit(1),
        "fetch memberships",
    )

    execute(
        client.table("members").insert({
            "user_id": user_id,
            "household_id": household_id,
            "role": "member",
            "is_primary": not memberships.data,
        }),
        "join household",
    )

    uses = (invitation.get("current_uses") or 0) + 1
    try:
        client.table("invitations").update({"current_uses": uses}).eq("id", invitation["id"]).execute()
    except Exception as e:
        # Member was added; a stale counter is not worth failing the join
        logger.error(f"Failed to update invitation usage: {e}")

    max_uses = invitation.get("max_uses")
    if max_uses is not None and uses >= max_uses:
        execute(
            client.table("invitations").update({"status": "revoked"}).eq("id", invitation["id"]),
            "revoke used-up invitation",
        )

    logger.info(f"User {user_id} joined household {household_id} via invitation")
    return InvitationResult(success=True, household_id=household_id)
