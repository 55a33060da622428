"""Registration, login and the caller's own profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from invoicing.app.core.security import create_access_token, get_password_hash, verify_password
from invoicing.app.db.session import get_db
from invoicing.app.dependencies.auth import get_current_user
from invoicing.app.models.user import User, UserRole
from invoicing.app.schemas.login import LoginRequest
from invoicing.app.schemas.user import AuthResponse, UserCreate, UserProfileRead, UserProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

CLEARABLE_PROFILE_FIELDS = ("company_name", "address", "phone", "logo_url")


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == user_in.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    # The first account on a fresh install administers it.
    role = UserRole.ADMIN if db.query(User).count() == 0 else UserRole.USER
    user = User(
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        name=user_in.name,
        company_name=user_in.company_name,
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.role)
    return {"user": user, "token": create_access_token(user_id=user.id)}


@router.post("/login", response_model=AuthResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User is inactive")
    return {"user": user, "token": create_access_token(user_id=user.id)}


@router.get("/me", response_model=UserProfileRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserProfileRead)
def update_profile(
    profile: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in profile.model_dump(exclude_unset=True).items():
        if value is not None or field in CLEARABLE_PROFILE_FIELDS:
            setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user
