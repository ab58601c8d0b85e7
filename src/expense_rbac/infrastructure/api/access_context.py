"""Application-scoped RBAC services.

One AccessControlContext is built at startup and stored on ``app.state``.
It owns the role service, the visibility manager and the access facade,
all sharing a single store and hook registry.
"""

from dataclasses import dataclass

from expense_rbac.core.config import Settings
from expense_rbac.core.hooks import HookRegistry
from expense_rbac.core.logging import get_logger
from expense_rbac.domain.services.access_control import RoleBasedAccess
from expense_rbac.domain.services.feature_catalog import (
    FeatureDependencyGraph,
    default_feature_graph,
)
from expense_rbac.domain.services.feature_visibility_service import FeatureVisibilityManager
from expense_rbac.domain.services.permission_catalog import (
    PermissionCatalog,
    default_permission_catalog,
)
from expense_rbac.domain.services.role_data_store import RoleDataStore
from expense_rbac.domain.services.role_service import RoleService

logger = get_logger(__name__)


@dataclass
class AccessControlContext:
    """Everything the API layer needs to answer RBAC requests."""

    store: RoleDataStore
    events: HookRegistry
    roles: RoleService
    visibility: FeatureVisibilityManager
    access: RoleBasedAccess
    graph: FeatureDependencyGraph
    catalog: PermissionCatalog

    @classmethod
    def build(
        cls,
        store: RoleDataStore,
        settings: Settings,
        events: HookRegistry | None = None,
        graph: FeatureDependencyGraph = default_feature_graph,
        catalog: PermissionCatalog = default_permission_catalog,
    ) -> "AccessControlContext":
        """Wire the services together without touching the store."""
        events = events if events is not None else HookRegistry()
        roles = RoleService(
            store,
            events=events,
            catalog=catalog,
            administrator_role_name=settings.administrator_role_name,
        )
        visibility = FeatureVisibilityManager(
            store,
            roles,
            graph=graph,
            events=events,
            settings=settings,
        )
        access = RoleBasedAccess(roles, visibility, catalog=catalog, settings=settings)
        return cls(
            store=store,
            events=events,
            roles=roles,
            visibility=visibility,
            access=access,
            graph=graph,
            catalog=catalog,
        )

    async def start(self) -> None:
        """Check the catalog and load roles and visibility from the store."""
        check = self.graph.validate_feature_dependencies()
        if not check.is_consistent:
            logger.error(
                "Feature catalog failed integrity check",
                has_circular_dependencies=check.has_circular_dependencies,
                inconsistency_count=len(check.inconsistencies),
            )

        await self.roles.fetch_roles()
        if self.roles.error:
            logger.error("Roles could not be loaded at startup", error=self.roles.error)
        await self.visibility.load()

        logger.info(
            "Access control context started",
            role_count=len(self.roles.roles),
            feature_count=len(self.graph.features),
        )

    async def close(self) -> None:
        """Write queued toggles and release subscriptions."""
        outcomes = await self.visibility.close()
        if outcomes:
            logger.info("Queued toggles written on shutdown", count=len(outcomes))
