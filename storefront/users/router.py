import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.auth.dependencies import require_admin
from storefront.users.schemas import AdminUserCreate, RoleUpdate
from storefront.users.service import UserAdminService, serialize_user
from storefront.utils import page_info

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/")
def get_users(
    role: Optional[str] = Query(None, description="Role filter or 'all'"),
    search: Optional[str] = Query(None, description="Search name, phone and email"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List user accounts (admin)"""
    try:
        users, total = UserAdminService.list_users(db, role=role, search=search, skip=offset, limit=limit)
    except Exception:
        logger.exception("Error fetching users")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching users"
        )

    return {
        "users": [serialize_user(user) for user in users],
        **page_info(total, offset, limit)
    }

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: AdminUserCreate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create an account with a role (admin)"""
    try:
        user = UserAdminService.create_user(db, user_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Error creating user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating user"
        )

    return {
        "message": "User created successfully",
        "user": {
            "id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "phone": user.phone,
            "role": user_data.role
        }
    }

@router.get("/{user_id}")
def get_user(
    user_id: str,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get an account with its roles and booking summary (admin)"""
    user = UserAdminService.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {
        "user": {
            **serialize_user(user),
            **UserAdminService.booking_summary(db, user_id)
        }
    }

@router.put("/{user_id}/role")
def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Replace the role of an account (admin)"""
    if user_id == admin_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    try:
        user = UserAdminService.update_role(db, user_id, role_update.role)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"message": "User role updated successfully", "user": serialize_user(user)}

@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    admin_user = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete an account without active bookings (admin)"""
    if user_id == admin_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    try:
        deleted = UserAdminService.delete_user(db, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"message": "User deleted successfully"}
