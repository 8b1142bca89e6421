from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.database import get_db
from storefront.auth.utils import verify_token
from storefront.auth.service import UserService
from storefront.auth.schemas import RoleName, STAFF_ROLES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    
    token_data = verify_token(token, credentials_exception)
    
    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise credentials_exception
    
    return user

def require_roles(*allowed_roles: str):
    """Build a dependency that lets through users holding any of allowed_roles"""
    def dependency(current_user = Depends(get_current_user), db: Session = Depends(get_db)):
        user_roles = UserService.get_user_roles(db, current_user.id)
        if not any(role in allowed_roles for role in user_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user
    return dependency

require_admin = require_roles(RoleName.ADMIN.value)
require_staff = require_roles(*STAFF_ROLES)

def is_staff(db: Session, user) -> bool:
    return any(role in STAFF_ROLES for role in UserService.get_user_roles(db, user.id))
