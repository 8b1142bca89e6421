import logging
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.cache import cache
from storefront.models import Profile, UserRole, utcnow
from storefront.auth.schemas import UserCreate, UserUpdate, UserProfile, RoleName
from storefront.auth.utils import get_password_hash, verify_password

logger = logging.getLogger(__name__)

def default_permissions(role: str) -> List[str]:
    return ["*"] if role == RoleName.ADMIN.value else ["read"]

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[Profile]:
        """Get user by email"""
        return db.query(Profile).filter(Profile.email == email.lower()).first()
    
    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[Profile]:
        """Get user by ID"""
        return db.query(Profile).filter(Profile.id == user_id).first()
    
    @staticmethod
    def get_user_roles(db: Session, user_id: str) -> List[str]:
        """Get user's role names from the user_roles table"""
        rows = db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
        return [role for (role,) in rows]
    
    @staticmethod
    def create_user(db: Session, user: UserCreate, role: str = RoleName.CUSTOMER.value) -> Profile:
        """Register a new account and give it a role in the same transaction"""
        db_user = Profile(
            email=user.email.lower(),
            password_hash=get_password_hash(user.password),
            full_name=user.full_name,
            phone=user.phone
        )
        
        try:
            db.add(db_user)
            db.flush()
            db.add(UserRole(user_id=db_user.id, role=role, permissions=default_permissions(role)))
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise ValueError("Email already registered")
        
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info("User registered", extra={"user_id": db_user.id, "role": role})
        return db_user
    
    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[Profile]:
        """Authenticate user with email and password"""
        user = UserService.get_user_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        
        user.last_sign_in_at = utcnow()
        db.commit()
        return user
    
    @staticmethod
    def update_user(db: Session, user_id: str, user_update: UserUpdate) -> Optional[Profile]:
        """Update profile fields"""
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            return None
        
        update_data = user_update.model_dump(exclude_unset=True)
        
        if "password" in update_data:
            password = update_data.pop("password")
            if password:
                db_user.password_hash = get_password_hash(password)
        
        for field, value in update_data.items():
            setattr(db_user, field, value)
        
        db.commit()
        db.refresh(db_user)
        return db_user
    
    @staticmethod
    def to_profile(db: Session, user: Profile) -> UserProfile:
        roles = UserService.get_user_roles(db, user.id)
        return UserProfile(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            phone=user.phone,
            address=user.address,
            city=user.city,
            country=user.country,
            avatar_url=user.avatar_url,
            roles=roles,
            is_admin=RoleName.ADMIN.value in roles,
            created_at=user.created_at,
            updated_at=user.updated_at
        )
