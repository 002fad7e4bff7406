"""
Tests for the Supabase persistence wrappers.

The client is a MagicMock; each test scripts the sequence of execute() results.
"""

import asyncio
from datetime import date
from unittest.mock import MagicMock

import pytest

from homestaff.db import defaults, employees, households, invitations, progress
from homestaff.db.errors import StoreError
from homestaff.db.store import SupabaseOnboardingStore
from homestaff.models import EmployeeInput, EmploymentInput
from onboarding.presets import resolve_holiday_preset


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _results(*data):
    return [MagicMock(data=d) for d in data]


class TestHolidayRules:
    def test_upsert_uses_default_conflict_key(self, mock_supabase, sample_holiday_rule_row):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_holiday_rule_row])

        rule = _run(defaults.upsert_holiday_rule(mock_supabase, "hh-1", resolve_holiday_preset("p1")))

        assert rule.id == "rule-1"
        mock_supabase.table.assert_called_with("household_holiday_rules")
        row = mock_table.upsert.call_args.args[0]
        assert mock_table.upsert.call_args.kwargs == {"on_conflict": "household_id,is_household_default"}
        assert row["household_id"] == "hh-1"
        assert row["is_household_default"] is True
        assert row["days_per_month"] == 4
        assert row["repeat_on_days_of_week"] is None

    def test_upsert_clears_fields_of_previous_preset(self, mock_supabase, sample_holiday_rule_row):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.return_value = MagicMock(data=[sample_holiday_rule_row])

        _run(defaults.upsert_holiday_rule(mock_supabase, "hh-1", resolve_holiday_preset("p2")))

        row = mock_table.upsert.call_args.args[0]
        assert row["repeat_on_days_of_week"] == [0]
        assert row["days_per_month"] is None

    def test_upsert_without_row(self, mock_supabase):
        with pytest.raises(StoreError, match="no row returned"):
            _run(defaults.upsert_holiday_rule(mock_supabase, "hh-1", resolve_holiday_preset("p1")))

    def test_backend_error_is_wrapped(self, mock_supabase):
        mock_supabase.table.return_value.execute.side_effect = Exception("duplicate key")
        with pytest.raises(StoreError, match="Failed to save holiday rule: duplicate key"):
            _run(defaults.upsert_holiday_rule(mock_supabase, "hh-1", resolve_holiday_preset("p1")))

    def test_insert_is_plain_insert(self, mock_supabase, sample_holiday_rule_row):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.return_value = MagicMock(data=[dict(sample_holiday_rule_row, is_household_default=None)])

        rule = _run(defaults.insert_holiday_rule(mock_supabase, "hh-1", resolve_holiday_preset("p1")))

        assert not rule.is_household_default
        mock_table.insert.assert_called_once()
        mock_table.upsert.assert_not_called()
        assert "is_household_default" not in mock_table.insert.call_args.args[0]

    def test_list_empty(self, mock_supabase):
        assert _run(defaults.list_holiday_rules(mock_supabase, "hh-1")) == []


class TestAttendanceSettings:
    def test_upsert_keyed_by_household(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.return_value = MagicMock(data=[{
            "id": "att-1",
            "household_id": "hh-1",
            "tracking_method": "manual_entry",
        }])

        settings = _run(defaults.upsert_attendance_settings(mock_supabase, "hh-1", "manual_entry"))

        assert settings.tracking_method == "manual_entry"
        assert mock_table.upsert.call_args.kwargs == {"on_conflict": "household_id"}

    def test_missing_settings(self, mock_supabase):
        assert _run(defaults.get_attendance_settings(mock_supabase, "hh-1")) is None


class TestProgress:
    def test_no_row(self, mock_supabase):
        assert _run(progress.get_onboarding_progress(mock_supabase, "user-1")) is None

    def test_load(self, mock_supabase):
        mock_supabase.table.return_value.execute.side_effect = _results(
            [{"user_id": "user-1", "current_step_index": 2, "step_data": {"step_0": {"household_id": "hh-1"}}}],
            [{"onboarding_completed": True}],
        )
        loaded = _run(progress.get_onboarding_progress(mock_supabase, "user-1"))
        assert loaded.current_step_index == 2
        assert loaded.is_completed
        assert loaded.step_data["step_0"]["household_id"] == "hh-1"

    def test_save_merges_step_data(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [{"user_id": "user-1", "current_step_index": 1, "step_data": {"step_0": {"household_id": "hh-1"}}}],
            [{"onboarding_completed": False}],
            [],
        )

        _run(progress.save_onboarding_progress(mock_supabase, "user-1", 2, {"skipped": True}, for_step=1))

        payload = mock_table.upsert.call_args.args[0]
        assert mock_table.upsert.call_args.kwargs == {"on_conflict": "user_id"}
        assert payload["current_step_index"] == 2
        assert payload["step_data"] == {
            "step_0": {"household_id": "hh-1"},
            "step_1": {"skipped": True},
        }
        assert payload["last_saved_at"]

    def test_save_without_data_only_moves_pointer(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results([], [])

        _run(progress.save_onboarding_progress(mock_supabase, "user-1", 0, None))

        payload = mock_table.upsert.call_args.args[0]
        assert payload["current_step_index"] == 0
        assert payload["step_data"] == {}

    def test_draft_updates_step_data_only(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [{"user_id": "user-1", "current_step_index": 1, "step_data": {"step_0": {"household_id": "hh-1"}}}],
            [{"onboarding_completed": False}],
            [],
        )

        _run(progress.save_step_draft(mock_supabase, "user-1", 0, {"household_name": "Villa", "household_id": None}))

        mock_table.upsert.assert_not_called()
        payload = mock_table.update.call_args.args[0]
        assert "current_step_index" not in payload
        assert payload["step_data"] == {"step_0": {"household_id": "hh-1", "household_name": "Villa"}}
        mock_table.eq.assert_called_with("user_id", "user-1")

    def test_draft_without_row_inserts(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results([], [])

        _run(progress.save_step_draft(mock_supabase, "user-1", 0, {"household_name": "Vil"}))

        row = mock_table.insert.call_args.args[0]
        assert row["current_step_index"] == 0
        assert row["step_data"] == {"step_0": {"household_name": "Vil"}}

    def test_merge_draft(self):
        saved = {"employee_id": "emp-1", "name": "Sunita"}
        assert progress.merge_draft(saved, {"name": "Sunita K", "employee_id": "emp-2"}) == {
            "employee_id": "emp-1",
            "name": "Sunita K",
        }
        assert progress.merge_draft(None, {"role": "Cook"}) == {"role": "Cook"}

    @pytest.mark.parametrize("step_index", [-1, 4])
    def test_save_rejects_bad_index(self, mock_supabase, step_index):
        with pytest.raises(StoreError, match="Invalid step index"):
            _run(progress.save_onboarding_progress(mock_supabase, "user-1", step_index, {}))
        mock_supabase.table.assert_not_called()

    def test_complete(self, mock_supabase):
        _run(progress.complete_onboarding(mock_supabase, "user-1"))
        mock_supabase.table.assert_called_with("profiles")
        mock_supabase.table.return_value.update.assert_called_with({"onboarding_completed": True})

    def test_reset(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        _run(progress.reset_onboarding_progress(mock_supabase, "user-1"))
        mock_table.delete.assert_called_once()
        mock_table.update.assert_called_with({"onboarding_completed": False})


class TestHouseholds:
    def test_create(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [{"id": "hh-1", "name": "Villa Rosa", "status": "active"}],
            [{"id": "m-1"}],
        )

        household = _run(households.create_household(mock_supabase, "user-1", "  Villa Rosa "))

        assert household.id == "hh-1"
        mock_table.insert.assert_any_call({"name": "Villa Rosa", "status": "active"})
        mock_table.insert.assert_any_call({"user_id": "user-1", "household_id": "hh-1", "role": "admin"})

    def test_short_name(self, mock_supabase):
        with pytest.raises(StoreError, match="at least 2 characters"):
            _run(households.create_household(mock_supabase, "user-1", "X"))
        mock_supabase.table.assert_not_called()

    def test_member_failure_removes_household(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = [
            MagicMock(data=[{"id": "hh-1", "name": "Villa Rosa", "status": "active"}]),
            Exception("permission denied"),
            MagicMock(data=[]),
        ]

        with pytest.raises(StoreError, match="Failed to add user as member"):
            _run(households.create_household(mock_supabase, "user-1", "Villa Rosa"))
        mock_table.delete.assert_called_once()


class TestEmployees:
    def _inputs(self):
        return (
            EmployeeInput(name="Ramesh"),
            EmploymentInput(household_id="hh-1", role="Driver", start_date=date(2026, 3, 1)),
        )

    def test_create_calls_rpc(self, mock_supabase):
        mock_supabase.rpc.return_value.execute.return_value = MagicMock(data="emp-1")
        mock_supabase.table.return_value.execute.side_effect = _results(
            [{"id": "emp-1", "name": "Ramesh"}],
            [{"role": "Driver", "employment_type": "monthly", "status": "active"}],
        )

        employee = _run(employees.create_employee(mock_supabase, *self._inputs()))

        assert employee.id == "emp-1"
        assert employee.role == "Driver"
        assert employee.status == "active"
        name, params = mock_supabase.rpc.call_args.args
        assert name == "create_employee_with_employment"
        assert params["p_employee"]["name"] == "Ramesh"
        assert params["p_employment"]["start_date"] == "2026-03-01"
        assert params["p_employment"]["payment_method"] == "Cash"

    def test_rpc_without_id(self, mock_supabase):
        with pytest.raises(StoreError, match="no ID returned"):
            _run(employees.create_employee(mock_supabase, *self._inputs()))


class TestInvitations:
    INVITATION = {
        "id": "inv-1",
        "code": "ABC123",
        "household_id": "hh-9",
        "status": "active",
        "expires_at": None,
        "max_uses": 1,
        "current_uses": 0,
        "households": {"name": "Villa Rosa"},
    }

    def test_validate(self, mock_supabase):
        mock_supabase.table.return_value.execute.return_value = MagicMock(data=[self.INVITATION])
        result = _run(invitations.validate_invitation_code(mock_supabase, "ABC123"))
        assert result.valid
        assert result.household_name == "Villa Rosa"

    def test_expired_code_is_marked(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [dict(self.INVITATION, expires_at="2020-01-01T00:00:00Z")],
            [],
        )
        result = _run(invitations.validate_invitation_code(mock_supabase, "ABC123"))
        assert not result.valid
        assert result.error == "Invitation code has expired"
        mock_table.update.assert_called_with({"status": "expired"})

    def test_used_up_code(self, mock_supabase):
        mock_supabase.table.return_value.execute.return_value = MagicMock(
            data=[dict(self.INVITATION, current_uses=1)]
        )
        result = _run(invitations.validate_invitation_code(mock_supabase, "ABC123"))
        assert result.error == "Invitation code has reached maximum uses"

    def test_accept(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [self.INVITATION],  # validate
            [],                 # not yet a member
            [self.INVITATION],  # re-fetch
            [],                 # no other memberships
            [{"id": "m-1"}],    # insert member
            [],                 # increment uses
            [],                 # revoke
        )

        result = _run(invitations.accept_invitation_code(mock_supabase, "user-1", "ABC123"))

        assert result.success
        assert result.household_id == "hh-9"
        mock_table.insert.assert_called_once_with({
            "user_id": "user-1",
            "household_id": "hh-9",
            "role": "member",
            "is_primary": True,
        })
        mock_table.update.assert_any_call({"current_uses": 1})
        mock_table.update.assert_called_with({"status": "revoked"})

    def test_existing_member_rejoins(self, mock_supabase):
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [self.INVITATION],
            [{"id": "m-1"}],
        )
        result = _run(invitations.accept_invitation_code(mock_supabase, "user-1", "ABC123"))
        assert result == invitations.InvitationResult(success=True, household_id="hh-9")
        mock_table.insert.assert_not_called()
        mock_table.update.assert_not_called()

    def test_null_usage_count(self, mock_supabase):
        invitation = dict(self.INVITATION, current_uses=None, max_uses=5)
        mock_table = mock_supabase.table.return_value
        mock_table.execute.side_effect = _results(
            [invitation],
            [],
            [invitation],
            [{"id": "m-0"}],
            [{"id": "m-1"}],
            [],
        )

        result = _run(invitations.accept_invitation_code(mock_supabase, "user-1", "ABC123"))

        assert result.success
        mock_table.update.assert_called_once_with({"current_uses": 1})
        assert mock_table.insert.call_args.args[0]["is_primary"] is False

    def test_unknown_code(self, mock_supabase):
        result = _run(invitations.accept_invitation_code(mock_supabase, "user-1", "NOPE"))
        assert result == invitations.InvitationResult(success=False, error="Invalid invitation code")


def test_supabase_store_binds_user(mock_supabase):
    store = SupabaseOnboardingStore(mock_supabase, "user-1")
    assert _run(store.get_onboarding_progress()) is None
    mock_supabase.table.return_value.eq.assert_called_with("user_id", "user-1")
