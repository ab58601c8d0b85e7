"""FastAPI dependencies for the session user and the RBAC services.

Authentication happens upstream: the gateway forwards the authenticated
user as ``X-User-Id``, ``X-User-Role`` and ``X-User-Admin`` headers. This
module turns those into an AccessSubject and binds the user as the actor
recorded in the settings audit log.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from expense_rbac.core.context import set_current_actor
from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.access import AccessSubject
from expense_rbac.infrastructure.api.access_context import AccessControlContext

logger = get_logger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def get_access_context(request: Request) -> AccessControlContext:
    """Get the access control context from app state.

    Raises:
        HTTPException: 503 if the application has not finished starting.
    """
    context = getattr(request.app.state, "access_context", None)
    if context is None:
        logger.warning("Access control context requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Access control is not initialized",
        )
    return context


AccessContext = Annotated[AccessControlContext, Depends(get_access_context)]


async def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
    x_user_admin: Annotated[str | None, Header()] = None,
) -> AccessSubject:
    """Build the session user from the gateway headers.

    Declared async so the actor bound here is visible to the endpoint and
    everything it awaits.

    Args:
        x_user_id: Authenticated user ID.
        x_user_role: Role slug from the user's profile, if any.
        x_user_admin: Session-level administrator flag.

    Returns:
        AccessSubject: The authenticated user.

    Raises:
        HTTPException: 401 if no user ID was supplied.
    """
    if x_user_id is None or not x_user_id.strip():
        logger.info("Authentication failed: missing X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )

    subject = AccessSubject(
        user_id=x_user_id.strip(),
        role=x_user_role.strip() if x_user_role and x_user_role.strip() else None,
        is_admin=(x_user_admin or "").strip().lower() in _TRUE_VALUES,
    )
    set_current_actor(subject.user_id)
    return subject


AuthenticatedUser = Annotated[AccessSubject, Depends(get_current_user)]


async def require_admin(
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> AccessSubject:
    """Ensure the current user is an administrator.

    Raises:
        HTTPException: 403 if the user is not an administrator.
    """
    if not context.access.is_administrator(current_user):
        logger.info(
            "Administrator access denied",
            user_id=current_user.user_id,
            role=current_user.role,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return current_user


# Type alias for administrator dependency injection
AdminUser = Annotated[AccessSubject, Depends(require_admin)]
