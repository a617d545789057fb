"""Seed script for development data.

Run with:  python -m leavedesk.seed
Expects the API to be running at BASE_URL.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta

import httpx

BASE_URL = "http://localhost:8000"
ADMIN_ID = "EMP002"

HEADERS = {
    "Content-Type": "application/json",
    "X-User-Id": ADMIN_ID,
    "X-Role": "admin",
}

EMPLOYEES = [
    {
        "employee_id": "EMP001",
        "full_name": "John Doe",
        "email": "john.doe@example.com",
        "designation": "Software Engineer",
        "role": "Employee",
        "cl_balance": 10,
        "rh_balance": 5,
        "el_balance": 18,
    },
    {
        "employee_id": "EMP002",
        "full_name": "Jane Smith",
        "email": "jane.smith@example.com",
        "designation": "HR Manager",
        "role": "Admin",
        "cl_balance": 10,
        "rh_balance": 5,
        "el_balance": 18,
    },
]


async def _safe_post(client: httpx.AsyncClient, url: str, json: dict | None, label: str) -> dict | None:
    """POST tolerating 409 (already exists) and 400 (already decided) on re-runs."""
    resp = await client.post(url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code in (400, 409):
        print(f"  [SKIP] {label}: {resp.json().get('detail')}")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_employees(client: httpx.AsyncClient) -> None:
    print("\nEmployees")
    for employee in EMPLOYEES:
        await _safe_post(client, f"{BASE_URL}/employees", employee, f"Employee: {employee['employee_id']}")


async def seed_leaves(client: httpx.AsyncClient) -> None:
    print("\nLeave requests")
    start = date.today() + timedelta(days=14)

    # John: 3 days earned leave, approved.
    approved = await _safe_post(
        client,
        f"{BASE_URL}/leaves",
        {
            "employee_id": "EMP001",
            "leave_type": "EL",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=2)).isoformat(),
            "reason": "Family function",
            "location": "Patna",
        },
        "Request: John 3-day EL",
    )
    if approved:
        await _safe_post(client, f"{BASE_URL}/leaves/{approved['id']}/approve", None, "Approve: John 3-day EL")

    # John: 1 day casual leave, stays pending.
    await _safe_post(
        client,
        f"{BASE_URL}/leaves",
        {
            "employee_id": "EMP001",
            "leave_type": "CL",
            "start_date": (start + timedelta(days=10)).isoformat(),
            "end_date": (start + timedelta(days=10)).isoformat(),
            "reason": "Personal work",
        },
        "Request: John 1-day CL (PENDING)",
    )


async def main() -> None:
    print("=" * 60)
    print("  LeaveDesk: Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            sys.exit(1)

        await seed_employees(client)
        await seed_leaves(client)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
