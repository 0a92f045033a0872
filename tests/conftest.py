"""Pytest configuration and fixtures for hive-admin.

Every test gets its own SQLite file (aiosqlite) with the schema created
from Base.metadata. `seeded` provisions three tenants, the permission
catalog, the built-in roles and a handful of users. Settings are read
from the environment set below, before any hive_admin import.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["REDIS_ENABLED"] = "false"

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hive_admin.core.config import get_settings
from hive_admin.core.limiter import limiter
from hive_admin.core.policy import get_policy
from hive_admin.infrastructure.persistence import models  # noqa: F401
from hive_admin.infrastructure.persistence.database import (
    Base,
    build_engine,
    build_session_factory,
    get_db,
    get_db_for_write,
)
from hive_admin.infrastructure.security.jwt import create_access_token
from hive_admin.infrastructure.services.factory import RbacServices, build_rbac_services
from hive_admin.infrastructure.services.rbac_provisioning_service import (
    RbacProvisioningService,
)
from hive_admin.shared.context import clear_current_user

get_settings.cache_clear()
get_policy.cache_clear()


@dataclass
class SeedData:
    """Ids of the seeded fixture world.

    central: root (central_superadmin).
    acme: owner (tenant_superadmin), admin (tenant_admin), member and
    shared (tenant_member). beta: shared (tenant_admin), its only member.
    """

    central_id: str
    acme_id: str
    beta_id: str
    central_superadmin_role_id: str
    acme_roles: dict[str, str]
    beta_roles: dict[str, str]
    permissions: dict[str, str]
    root_id: str
    owner_id: str
    admin_id: str
    member_id: str
    shared_id: str


@pytest.fixture(autouse=True)
def _reset_context() -> None:
    clear_current_user()


@pytest.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """Fresh SQLite database with all tables."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'hive.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


async def seed_world(factory: async_sessionmaker[AsyncSession]) -> SeedData:
    policy = get_policy()
    async with factory() as session:
        async with session.begin():
            svc = RbacProvisioningService(session, policy)
            central = await svc.ensure_tenant(
                get_settings().central_tenant_slug, "Central Hive", ("central.localhost",)
            )
            acme = await svc.ensure_tenant("acme-corp", "Acme Corp", ("acme.localhost",))
            beta = await svc.ensure_tenant("beta-labs", "Beta Labs", ("beta.localhost",))
            permissions = await svc.ensure_permissions()
            central_role = await svc.ensure_central_superadmin_role()
            acme_roles = await svc.ensure_tenant_default_roles(acme.id)
            beta_roles = await svc.ensure_tenant_default_roles(beta.id)
            await svc.sync_central_superadmin_permissions()

            root = await svc.assign_membership(
                central.id, "root@hive.test", policy.central_superadmin_key
            )
            owner = await svc.assign_membership(
                acme.id, "owner@acme.test", "tenant_superadmin", role_tenant_id=acme.id
            )
            admin = await svc.assign_membership(
                acme.id, "admin@acme.test", "tenant_admin", role_tenant_id=acme.id
            )
            member = await svc.assign_membership(
                acme.id, "member@acme.test", "tenant_member", role_tenant_id=acme.id
            )
            shared = await svc.assign_membership(
                acme.id, "shared@hive.test", "tenant_member", role_tenant_id=acme.id
            )
            await svc.assign_membership(
                beta.id, "shared@hive.test", "tenant_admin", role_tenant_id=beta.id
            )
            return SeedData(
                central_id=central.id,
                acme_id=acme.id,
                beta_id=beta.id,
                central_superadmin_role_id=central_role.id,
                acme_roles={key: role.id for key, role in acme_roles.items()},
                beta_roles={key: role.id for key, role in beta_roles.items()},
                permissions=permissions,
                root_id=root.user_id,
                owner_id=owner.user_id,
                admin_id=admin.user_id,
                member_id=member.user_id,
                shared_id=shared.user_id,
            )


@pytest.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> SeedData:
    return await seed_world(session_factory)


@pytest.fixture
async def make_services(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[Callable[..., RbacServices]]:
    """Factory for RbacServices, each on its own untouched session."""
    sessions: list[AsyncSession] = []

    def _build(dispatcher=None) -> RbacServices:
        session = session_factory()
        sessions.append(session)
        return build_rbac_services(
            session,
            settings=get_settings(),
            policy=get_policy(),
            dispatcher=dispatcher,
        )

    yield _build
    for session in sessions:
        await session.close()


@pytest.fixture
def services(make_services: Callable[..., RbacServices]) -> RbacServices:
    return make_services()


@pytest.fixture
def read(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[Callable[[AsyncSession], Awaitable]], Awaitable]:
    """Run fn(session) on a throwaway session, for assertions on committed state."""

    async def _read(fn):
        async with session_factory() as session:
            return await fn(session)

    return _read


def bearer(user_id: str) -> dict[str, str]:
    """Authorization header for user_id."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build the Authorization header for a user id."""
    return bearer


@pytest.fixture
async def app(session_factory: async_sessionmaker[AsyncSession]):
    """FastAPI app whose DB dependencies use the per-test database."""
    from hive_admin.main import create_app

    application = create_app()

    async def _test_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _test_db
    application.dependency_overrides[get_db_for_write] = _test_db
    limiter.reset()
    return application


@pytest.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the app; base URL host maps to the central scope."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def acme_client(app) -> AsyncIterator[AsyncClient]:
    """Async HTTP client whose Host resolves to the acme tenant."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://acme.localhost") as ac:
        yield ac
