"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from expense_rbac.core.config import get_settings
from expense_rbac.core.hooks import HookEvent, HookRegistry
from expense_rbac.core.logging import configure_logging, get_logger
from expense_rbac.domain.exceptions import (
    AccessControlError,
    BulkOperationError,
    CategoryNotFoundError,
    DuplicateRoleError,
    FeatureChangeError,
    PermissionInvariantError,
    PersistenceError,
    RoleDeletionError,
    RoleNotFoundError,
    RoleValidationError,
    SystemRoleError,
)
from expense_rbac.infrastructure.api.access_context import AccessControlContext
from expense_rbac.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)
from expense_rbac.infrastructure.persistence.role_data_store import SqlAlchemyRoleDataStore

logger = get_logger(__name__)

# Most specific first; the first matching class decides the status code.
ERROR_STATUS_CODES: tuple[tuple[type[AccessControlError], int], ...] = (
    (RoleValidationError, 422),
    (FeatureChangeError, 422),
    (BulkOperationError, 422),
    (DuplicateRoleError, 409),
    (RoleNotFoundError, 404),
    (CategoryNotFoundError, 404),
    (RoleDeletionError, 400),
    (SystemRoleError, 400),
    (PermissionInvariantError, 400),
    (PersistenceError, 502),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings = get_settings()

    # Startup
    logger.info(
        "Starting Expense RBAC",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Configure logging
    configure_logging(settings)

    # Initialize database
    try:
        await init_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    # Build the role and visibility services on the shared hook registry
    context = AccessControlContext.build(
        SqlAlchemyRoleDataStore(get_db_manager().session_factory),
        settings,
        events=app.state.hook_registry,
    )
    await context.start()
    app.state.access_context = context

    await app.state.hook_registry.trigger(HookEvent.ON_BOOTSTRAP, {"app_name": settings.app_name})
    logger.info("ON_BOOTSTRAP hooks triggered")

    yield

    # Shutdown
    logger.info("Shutting down Expense RBAC")

    await app.state.hook_registry.trigger(HookEvent.ON_TERMINATE, {"app_name": settings.app_name})
    logger.info("ON_TERMINATE hooks triggered")

    await context.close()
    app.state.access_context = None

    await close_database()
    logger.info("Database connection closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This function creates the FastAPI application with all middleware,
    routes, and configuration.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Roles, permissions and feature visibility for the expense tracker",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Store on app state for access throughout the application
    app.state.hook_registry = HookRegistry()
    app.state.access_context = None

    logger.info("Hook system initialized")

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Register health check endpoint
    register_health_check(app)

    # Register API routes
    register_routes(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register middleware
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity or other dependencies.
        """
        return {
            "status": "healthy",
            "service": "Expense RBAC",
            "version": get_settings().app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint.

        Returns 200 once the database is reachable and roles are loaded.
        """
        db_healthy = await get_db_manager().check_connection()
        context = app.state.access_context
        roles_loaded = context is not None and context.roles.loaded and not context.roles.error

        if db_healthy and roles_loaded:
            return {
                "status": "ready",
                "service": "Expense RBAC",
                "version": get_settings().app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": "Expense RBAC",
                "database": "connected" if db_healthy else "disconnected",
                "roles_loaded": roles_loaded,
            },
        )

    @app.get("/live", tags=["health"])
    async def liveness_check():
        """Liveness check endpoint.

        Returns 200 if the service is alive. This is a simple check
        that the service is running and responding to requests.
        """
        return {
            "status": "alive",
            "service": "Expense RBAC",
            "version": get_settings().app_version,
        }


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from expense_rbac.infrastructure.api.routes import (
        access_router,
        audit_log_router,
        features_router,
        roles_router,
    )

    settings = get_settings()

    app.include_router(roles_router, prefix=f"{settings.api_prefix}/roles", tags=["roles"])
    app.include_router(
        features_router, prefix=f"{settings.api_prefix}/features", tags=["features"]
    )
    app.include_router(access_router, prefix=f"{settings.api_prefix}/access", tags=["access"])
    app.include_router(
        audit_log_router, prefix=f"{settings.api_prefix}/audit-log", tags=["audit-log"]
    )

    @app.get(settings.api_prefix, tags=["root"])
    async def api_root():
        """API root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api_version": "v1",
        }


def error_status_code(exc: AccessControlError) -> int:
    """HTTP status code for a domain error."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Domain errors carry administrator-facing messages and are returned as
    they are; anything else is reported as a generic 500.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(AccessControlError)
    async def access_control_error_handler(request: Request, exc: AccessControlError):
        """Translate domain errors into JSON error responses."""
        status_code = error_status_code(exc)
        content: dict = {"error": type(exc).__name__, "detail": exc.message}

        if isinstance(exc, RoleValidationError):
            content["errors"] = exc.errors
        elif isinstance(exc, (FeatureChangeError, BulkOperationError)) and exc.result is not None:
            content["errors"] = list(exc.result.errors)
            content["warnings"] = list(exc.result.warnings)

        log = logger.error if status_code >= 500 else logger.info
        log(
            "Request rejected",
            path=str(request.url.path),
            method=request.method,
            status_code=status_code,
            error=exc.message,
            exc_type=type(exc).__name__,
        )
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Middleware to log all requests and add correlation ID."""
        import uuid

        from expense_rbac.core.context import clear_current_actor
        from expense_rbac.core.logging import bind_correlation_id, clear_context

        # Generate or extract correlation ID
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        # Log request
        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
            correlation_id=correlation_id,
        )

        try:
            response = await call_next(request)
            # Log response
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            # Add correlation ID to response headers
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Clear context to prevent leakage
            clear_context()
            clear_current_actor()


# Create the application instance
app = create_app()
