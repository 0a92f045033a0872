"""Seed tenants, the permission catalog, built-in roles and a central superadmin.

Usage:
    python -m scripts.seed_rbac [--superadmin-email EMAIL]

Idempotent: re-running refreshes names and grants the central superadmin
role any permission it lacks. Requires DATABASE_URL (schema from alembic).
"""

import argparse
import asyncio

from hive_admin.core.config import get_settings
from hive_admin.core.policy import get_policy
from hive_admin.infrastructure.persistence.database import (
    dispose_engine,
    get_session_factory,
)
from hive_admin.infrastructure.services.rbac_provisioning_service import (
    RbacProvisioningService,
)
from hive_admin.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger(__name__)

# (slug, name, domains); the first entry must be the central tenant
DEV_TENANTS: list[tuple[str, str, tuple[str, ...]]] = [
    ("central-hive", "Central Hive", ("central.localhost",)),
    ("acme-corp", "Acme Corp", ("acme.localhost",)),
    ("beta-labs", "Beta Labs", ("beta.localhost",)),
]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--superadmin-email",
        default=None,
        help="Make this user the central superadmin (created if missing)",
    )
    return parser.parse_args()


async def main(superadmin_email: str | None) -> None:
    settings = get_settings()
    policy = get_policy()
    setup_logging()

    async with get_session_factory()() as session:
        async with session.begin():
            svc = RbacProvisioningService(session, policy)
            tenants = []
            for slug, name, domains in DEV_TENANTS:
                if slug == DEV_TENANTS[0][0]:
                    slug = settings.central_tenant_slug
                tenants.append(await svc.ensure_tenant(slug, name, domains))

            await svc.ensure_permissions()
            await svc.ensure_central_superadmin_role()
            for tenant in tenants[1:]:
                await svc.ensure_tenant_default_roles(tenant.id)
            added = await svc.sync_central_superadmin_permissions()

            if superadmin_email:
                await svc.assign_membership(
                    tenants[0].id, superadmin_email, policy.central_superadmin_key
                )
                logger.info("Central superadmin: %s", superadmin_email)

    logger.info(
        "Seeded %d tenants; central superadmin gained %d permissions",
        len(tenants),
        added,
    )
    await dispose_engine()


if __name__ == "__main__":
    args = _parse_args()
    asyncio.run(main(args.superadmin_email))
