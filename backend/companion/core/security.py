from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from companion.core.logging import auth_logger, bind_user
from companion.core.monitoring import record_auth_attempt
from companion.crud import user as user_crud
from companion.crud import workspace as workspace_crud
from companion.database.connection import get_db
from companion.models.user import User
from companion.models.workspace import Workspace
from companion.services.identity import IdentityError, IdentityProvider, get_identity_provider

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
) -> User:
    """Verify the bearer token with the identity provider and load the profile row"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        record_auth_attempt(success=False)
        raise credentials_exception

    try:
        identity = identity_provider.get_user(credentials.credentials)
    except IdentityError as e:
        record_auth_attempt(success=False)
        auth_logger.info("Token rejected", error=e.message)
        raise credentials_exception

    record_auth_attempt(success=True)
    request.state.user_id = identity.id
    bind_user(identity.id)
    return user_crud.get_or_create_user(db, identity.id, identity.email, identity.name)


def resolve_user_id(current_user: User, user_id: Optional[str] = None) -> str:
    """The caller's own id; a ``userId`` naming anybody else is refused"""
    if user_id and user_id != current_user.id:
        auth_logger.warning("Cross-user request refused", user_id=current_user.id, requested_user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to act for another user"
        )
    return current_user.id


def authorize_workspace(db: Session, current_user: User, workspace_id: Optional[str]) -> Optional[Workspace]:
    """Load a workspace the caller owns; unknown ids come back as None for the caller to judge"""
    if not workspace_id:
        return None
    db_workspace = workspace_crud.get_workspace(db, workspace_id)
    if db_workspace is not None and db_workspace.user_id != current_user.id:
        auth_logger.warning("Workspace access refused", user_id=current_user.id, workspace_id=workspace_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Workspace belongs to another user"
        )
    return db_workspace
