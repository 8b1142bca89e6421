import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.cache import cache
from storefront.models import Profile, UserRole, Booking, Payment
from storefront.auth.schemas import RoleName
from storefront.auth.service import UserService, default_permissions
from storefront.auth.utils import get_password_hash
from storefront.users.schemas import AdminUserCreate
from storefront.utils import as_float, as_iso

logger = logging.getLogger(__name__)

ROLE_NAMES = [r.value for r in RoleName]
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")

def serialize_user(user: Profile) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "avatar_url": user.avatar_url,
        "city": user.city,
        "country": user.country,
        "last_sign_in_at": as_iso(user.last_sign_in_at),
        "created_at": as_iso(user.created_at),
        "updated_at": as_iso(user.updated_at),
        "user_roles": [
            {
                "role": role.role,
                "permissions": role.permissions or [],
                "created_at": as_iso(role.created_at)
            }
            for role in user.user_roles
        ]
    }

def validate_role(role: str):
    if role not in ROLE_NAMES:
        raise ValueError(f"Invalid role. Allowed: {', '.join(ROLE_NAMES)}")

class UserAdminService:
    @staticmethod
    def list_users(
        db: Session,
        role: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Profile], int]:
        """Accounts with their roles, newest first"""
        query = db.query(Profile).options(selectinload(Profile.user_roles))

        if role and role != "all":
            query = query.filter(Profile.user_roles.any(UserRole.role == role))

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Profile.full_name.ilike(pattern),
                    Profile.phone.ilike(pattern),
                    Profile.email.ilike(pattern)
                )
            )

        total = query.count()
        users = query.order_by(Profile.created_at.desc()).offset(skip).limit(limit).all()

        return users, total

    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[Profile]:
        return db.query(Profile).options(
            selectinload(Profile.user_roles)
        ).filter(Profile.id == user_id).first()

    @staticmethod
    def booking_summary(db: Session, user_id: str) -> dict:
        total_bookings = db.query(Booking).filter(Booking.user_id == user_id).count()
        total_spent = db.query(func.coalesce(func.sum(Booking.total_amount), 0)).filter(
            Booking.user_id == user_id,
            Booking.status.in_(["confirmed", "completed"])
        ).scalar()
        return {"total_bookings": total_bookings, "total_spent": as_float(total_spent) or 0.0}

    @staticmethod
    def create_account(db: Session, user_data: AdminUserCreate) -> Profile:
        """First step of an admin account creation: the profile row"""
        if UserService.get_user_by_email(db, user_data.email):
            raise ValueError("Email already registered")

        profile = Profile(
            email=user_data.email.lower(),
            password_hash=get_password_hash(user_data.password),
            full_name=user_data.full_name,
            phone=user_data.phone
        )
        try:
            db.add(profile)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValueError("Email already registered")

        db.refresh(profile)
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        return profile

    @staticmethod
    def assign_role(db: Session, user_id: str, role: str) -> UserRole:
        """Second step: the role row with its default permissions"""
        user_role = UserRole(user_id=user_id, role=role, permissions=default_permissions(role))
        db.add(user_role)
        db.commit()
        return user_role

    @staticmethod
    def remove_account(db: Session, user_id: str):
        """Best-effort cleanup of a half-created account; failures are only logged"""
        try:
            db.rollback()
            db.query(Profile).filter(Profile.id == user_id).delete(synchronize_session=False)
            db.commit()
            cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        except Exception:
            db.rollback()
            logger.exception("Cleanup of partially created user failed", extra={"user_id": user_id})

    @staticmethod
    def create_user(db: Session, user_data: AdminUserCreate) -> Profile:
        validate_role(user_data.role)

        profile = UserAdminService.create_account(db, user_data)

        try:
            UserAdminService.assign_role(db, profile.id, user_data.role)
        except Exception:
            logger.exception("Error assigning role to new user", extra={"user_id": profile.id})
            UserAdminService.remove_account(db, profile.id)
            raise

        logger.info("User created by admin", extra={"user_id": profile.id, "role": user_data.role})
        return UserAdminService.get_user(db, profile.id)

    @staticmethod
    def update_role(db: Session, user_id: str, role: str) -> Optional[Profile]:
        """Replace the roles of a user with a single role"""
        validate_role(role)

        user = UserAdminService.get_user(db, user_id)
        if not user:
            return None

        for existing in list(user.user_roles):
            db.delete(existing)
        db.flush()
        db.add(UserRole(user_id=user_id, role=role, permissions=default_permissions(role)))
        db.commit()

        logger.info(f"Role of user changed to {role}", extra={"user_id": user_id})
        return UserAdminService.get_user(db, user_id)

    @staticmethod
    def delete_user(db: Session, user_id: str) -> bool:
        """Delete an account that holds no pending or confirmed bookings"""
        user = UserAdminService.get_user(db, user_id)
        if not user:
            return False

        active = db.query(Booking).filter(
            Booking.user_id == user_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).count()
        if active > 0:
            raise ValueError(f"Cannot delete user with {active} active bookings")

        db.query(Payment).filter(Payment.user_id == user_id).delete(synchronize_session=False)
        for booking in db.query(Booking).filter(Booking.user_id == user_id).all():
            db.delete(booking)
        db.delete(user)
        db.commit()
        cache.delete_prefix(cache.ADMIN_STATS_PREFIX)
        logger.info("User deleted", extra={"user_id": user_id})
        return True
