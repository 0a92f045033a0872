"""Schema constraints on PostgreSQL. Skipped unless TEST_POSTGRES_URL is set."""

import os

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from hive_admin.infrastructure.persistence.database import Base, build_engine
from hive_admin.infrastructure.persistence.errors import is_unique_violation

POSTGRES_URL = os.environ.get("TEST_POSTGRES_URL")

pytestmark = [
    pytest.mark.requires_db,
    pytest.mark.skipif(not POSTGRES_URL, reason="TEST_POSTGRES_URL not set"),
]


@pytest.fixture
async def pg_engine():
    engine = build_engine(POSTGRES_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


async def test_central_role_key_unique(pg_engine) -> None:
    insert = text(
        "INSERT INTO role (id, tenant_id, key, name, scope) "
        "VALUES (:id, NULL, 'auditor', 'Auditor', 'CENTRAL')"
    )
    async with pg_engine.begin() as conn:
        await conn.execute(insert, {"id": "r1"})
    with pytest.raises(IntegrityError) as exc_info:
        async with pg_engine.begin() as conn:
            await conn.execute(insert, {"id": "r2"})
    assert is_unique_violation(exc_info.value)


async def test_scope_must_match_tenant(pg_engine) -> None:
    with pytest.raises(IntegrityError) as exc_info:
        async with pg_engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO role (id, tenant_id, key, name, scope) "
                    "VALUES ('r1', NULL, 'auditor', 'Auditor', 'TENANT')"
                )
            )
    assert not is_unique_violation(exc_info.value)
