from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.db import get_session
from leavedesk.main import app
from leavedesk.models import Employee

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


async def test_health_returns_200(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200


async def test_health_response_body(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["environment"] == "development"


async def test_health_response_schema(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    data = response.json()
    assert set(data.keys()) == {"status", "version", "environment", "data_integrity"}
    assert data["status"] in ("ok", "degraded", "error")


async def test_health_reports_out_of_bounds_balances(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(Employee(employee_id="EMP001", full_name="John Doe", designation="Engineer", el_balance=-1))
    db_session.add(Employee(employee_id="EMP002", full_name="Jane Smith", designation="HR Manager", rh_balance=20))
    await db_session.commit()

    response = await async_client.get("/health")
    integrity = response.json()["data_integrity"]
    assert integrity["total_employees"] == 2
    assert integrity["negative_balances"] == 1
    assert integrity["over_cap_balances"] == 1
    assert integrity["needs_attention"] is True


async def test_health_degraded_on_db_failure() -> None:
    """GET /health returns degraded status when the database is unreachable."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute.side_effect = ConnectionError("DB unreachable")

    async def _broken_session() -> AsyncIterator[AsyncSession]:
        yield mock_session

    app.dependency_overrides[get_session] = _broken_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")
        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "degraded"
        assert data["data_integrity"] is None
    finally:
        app.dependency_overrides.clear()
