"""
User Schemas

Request/response models for user operations.
"""
from pydantic import EmailStr
from typing import Optional

from app.models.user import UserStatus
from app.schemas.common import InputModel, Line, Phone, RecordRead, ShortName, partial_model


class UserCreate(InputModel):
    """Schema for creating a user."""
    first_name: ShortName
    last_name: ShortName
    email: EmailStr
    employee_id: ShortName
    title: Optional[Line] = None
    phone: Optional[Phone] = None
    oauth_id: Optional[Line] = None
    role_id: Optional[str] = None
    department_id: Optional[str] = None
    location_id: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE


UserUpdate = partial_model(UserCreate, "UserUpdate")


class UserRead(RecordRead):
    """User response schema."""
    first_name: str
    last_name: str
    name: str
    email: str
    employee_id: str
    title: Optional[str] = None
    phone: Optional[str] = None
    oauth_id: Optional[str] = None
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    department_id: Optional[str] = None
    location_id: Optional[str] = None
    status: UserStatus
