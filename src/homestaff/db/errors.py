"""
Persistence errors.

Everything the Supabase layer raises is a StoreError so callers can show a
retryable message without knowing about PostgREST.
"""


class StoreError(Exception):
    """A backend read or write failed (network, constraint, RLS...)."""


class HouseholdNotFoundError(StoreError):
    """The referenced household does not exist or is not visible to the user."""

    def __init__(self, household_id: str):
        self.household_id = household_id
        super().__init__(f"Household not found: {household_id}")
