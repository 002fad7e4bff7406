"""
Database seam for the HomeStaff persistence modules.

Every db module takes a DatabaseAdapter as its first argument. In production
it is a supabase.Client (anon, service or per-user); tests pass the
MagicMock from conftest.mock_supabase.
"""

from typing import Any, Protocol


class DatabaseAdapter(Protocol):
    """
    The part of supabase.Client the db modules use.

    table() builders are chained with select/insert/upsert/update/delete,
    filtered with eq/limit and run through client.execute(). rpc() is only
    used for create_employee_with_employment.
    """

    def table(self, name: str) -> Any: ...

    def rpc(self, function_name: str, params: dict) -> Any: ...
