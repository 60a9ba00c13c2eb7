from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional

from pocket_ledger.crud import crud_user
from pocket_ledger.models import user as user_models
from pocket_ledger.db.core import get_db, NotFoundError, UnauthenticatedError
from pocket_ledger.dependencies import get_current_user_id, get_identity_gateway, get_token
from pocket_ledger.services.identity import LocalIdentityGateway

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


@router.post("/", response_model=user_models.UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user: user_models.UserCreate,
    db: Session = Depends(get_db),
    identity: LocalIdentityGateway = Depends(get_identity_gateway)
):
    """
    Sign up a new user.
    """
    try:
        db_user = identity.sign_up(db, user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user_models.UserResponse.model_validate(db_user)


@router.post("/login", response_model=user_models.Token)
def login_for_access_token(
    user_login: user_models.UserLogin,
    db: Session = Depends(get_db),
    identity: LocalIdentityGateway = Depends(get_identity_gateway)
):
    """
    Authenticate user and return a bearer session token.
    """
    try:
        token = identity.sign_in(db, user_login.email, user_login.password)
    except UnauthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_models.Token(access_token=token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    token: Optional[str] = Depends(get_token),
    user_id: int = Depends(get_current_user_id),
    identity: LocalIdentityGateway = Depends(get_identity_gateway)
):
    identity.sign_out(token)


@router.get("/me", response_model=user_models.UserResponse)
def read_current_user(db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    db_user = crud_user.read_db_user(db, user_id=user_id)
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user_models.UserResponse.model_validate(db_user)


@router.patch("/me", response_model=user_models.UserResponse)
def update_current_user(
    user: user_models.UserUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Update the current user's profile.
    """
    try:
        updated_user = crud_user.update_db_user(db=db, user_id=user_id, user_updates=user)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user_models.UserResponse.model_validate(updated_user)
