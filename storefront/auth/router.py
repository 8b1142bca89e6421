from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.database import get_db
from storefront.auth.schemas import UserCreate, UserUpdate, LoginRequest, AuthResponse, UserProfile
from storefront.auth.service import UserService
from storefront.auth.utils import create_access_token
from storefront.auth.dependencies import get_current_user

router = APIRouter()

@router.post("/register", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new customer account"""
    try:
        db_user = UserService.create_user(db=db, user=user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return UserService.to_profile(db, db_user)

@router.post("/login", response_model=AuthResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    user = UserService.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    profile = UserService.to_profile(db, user)
    access_token = create_access_token(
        data={"sub": user.id, "roles": profile.roles},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return AuthResponse(access_token=access_token, token_type="bearer", user=profile)

@router.get("/me", response_model=UserProfile)
def read_users_me(current_user = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get current user profile"""
    return UserService.to_profile(db, current_user)

@router.put("/me", response_model=UserProfile)
def update_user_profile(
    user_update: UserUpdate,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update current user profile"""
    updated_user = UserService.update_user(db=db, user_id=current_user.id, user_update=user_update)
    if not updated_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return UserService.to_profile(db, updated_user)
