"""
HomeStaff - Database access.

Thin Supabase wrappers for households, household defaults, employees,
invitations and onboarding progress.
"""

from homestaff.db.client import get_authenticated_client, get_client, get_service_client
from homestaff.db.errors import HouseholdNotFoundError, StoreError
from homestaff.db.store import OnboardingStore, SupabaseOnboardingStore

__all__ = [
    "get_client",
    "get_service_client",
    "get_authenticated_client",
    "StoreError",
    "HouseholdNotFoundError",
    "OnboardingStore",
    "SupabaseOnboardingStore",
]
