from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from companion.core.logging import auth_logger
from companion.crud import user as user_crud
from companion.database.connection import get_db
from companion.schemas.user import AdminPasswordSet, AppUser, CheckoutSessionResponse
from companion.services.billing import get_checkout_email
from companion.services.identity import IdentityError, IdentityProvider, get_identity_provider

router = APIRouter(prefix="/api", tags=["admin"])


@router.post("/create-user-password")
async def create_user_password(
    payload: AdminPasswordSet,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    """Set the password of a pre-provisioned account (post-checkout flow)"""
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")

    db_user = user_crud.get_user_by_email(db, payload.email)
    if not db_user:
        auth_logger.warning("Password set for unknown user", email=payload.email)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        identity_provider.set_password(db_user.id, payload.password)
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return {"success": True}


@router.get("/checkout-session", response_model=CheckoutSessionResponse)
async def checkout_session(
    session_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Customer email of a completed checkout and the matching billing user, if any"""
    email = get_checkout_email(session_id)
    app_user = user_crud.get_app_user_by_email(db, email)
    return CheckoutSessionResponse(
        email=email,
        user=AppUser.model_validate(app_user) if app_user else None,
    )
