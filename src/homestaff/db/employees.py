"""
Employee persistence.

Employees are created together with their first employment through the
create_employee_with_employment database function so both rows land in one
transaction.
"""

import logging

from homestaff.db.adapter import DatabaseAdapter
from homestaff.db.client import execute
from homestaff.db.errors import StoreError
from homestaff.models import Employee, EmployeeInput, EmploymentInput

logger = logging.getLogger(__name__)


def _rpc_payload(employee: EmployeeInput, employment: EmploymentInput) -> dict:
    """Build the create_employee_with_employment parameters."""
    return {
        "p_employee": {
            "name": employee.name,
            "photo": employee.photo,
        },
        "p_employment": {
            "household_id": employment.household_id,
            "employment_type": employment.employment_type,
            "role": employment.role,
            "start_date": employment.start_date.isoformat(),
            "holiday_balance": employment.holiday_balance,
            "current_salary": employment.current_salary,
            "payment_method": employment.payment_method,
        },
        "p_phone_numbers": [p.model_dump() for p in employee.phone_numbers],
        "p_addresses": [a.model_dump() for a in employee.addresses],
        "p_documents": [d.model_dump() for d in employee.documents],
        "p_custom_properties": [c.model_dump() for c in employee.custom_properties],
        "p_notes": [{"content": n.content} for n in employee.notes],
    }


async def create_employee(
    client: DatabaseAdapter,
    employee: EmployeeInput,
    employment: EmploymentInput,
) -> Employee:
    """Create an employee with an employment in the given household."""
    result = execute(
        client.rpc("create_employee_with_employment", _rpc_payload(employee, employment)),
        "create employee",
    )
    employee_id = result.data
    if not employee_id:
        raise StoreError("Failed to create employee: no ID returned")

    created = await get_employee(client, str(employee_id), employment.household_id)
    if created is None:
        raise StoreError("Failed to fetch created employee")

    logger.info(f"Created employee {created.id} in household {employment.household_id}")
    return created


async def get_employee(client: DatabaseAdapter, employee_id: str, household_id: str) -> Employee | None:
    """Get an employee together with their employment in one household."""
    employee_result = execute(
        client.table("employees").select("*").eq("id", employee_id).limit(1),
        "fetch employee",
    )
    if not employee_result.data:
        return None
    row = employee_result.data[0]

    employment_result = execute(
        client.table("employments")
        .select("*")
        .eq("employee_id", employee_id)
        .eq("household_id", household_id)
        .limit(1),
        "fetch employment",
    )
    employment = employment_result.data[0] if employment_result.data else {}

    return Employee(
        id=row["id"],
        name=row["name"],
        photo=row.get("photo"),
        household_id=household_id,
        role=employment.get("role", ""),
        employment_type=employment.get("employment_type", "monthly"),
        status=employment.get("status") or "archived",
        holiday_balance=employment.get("holiday_balance") or 0,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )
