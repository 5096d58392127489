from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

RoleName = Literal["Administrator", "Quality", "Production"]
DocumentType = Literal["CC", "CE", "TI", "PASS"]


class TokenPair(BaseModel):
    """Access and refresh tokens."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class RefreshRequest(BaseModel):
    """Request to refresh an access token."""
    refresh_token: str = Field(..., description="Refresh token")


class Message(BaseModel):
    """Simple message response."""
    message: str = Field(...)


class UserRead(BaseModel):
    """User read model."""
    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="User email")
    role: RoleName = Field(..., description="Role")
    document_type: str = Field(..., serialization_alias="documentType")
    document_number: str = Field(..., serialization_alias="documentNumber")
    avatar_url: Optional[str] = Field(None, serialization_alias="avatarUrl")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Admin create user payload."""
    name: str = Field(..., min_length=3, description="Full name")
    email: EmailStr = Field(..., description="Email")
    role: RoleName = Field(...)
    document_type: DocumentType = Field("CC", alias="documentType")
    document_number: str = Field(..., min_length=5, alias="documentNumber")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    password: str = Field(..., min_length=6, description="Password")
    confirm_password: str = Field(..., alias="confirmPassword")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _passwords_match(self) -> "UserCreate":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserUpdate(BaseModel):
    """Profile changes; omitted fields are left as they are."""
    name: Optional[str] = Field(None, min_length=3)
    email: Optional[EmailStr] = Field(None)
    role: Optional[RoleName] = Field(None)
    document_type: Optional[DocumentType] = Field(None, alias="documentType")
    document_number: Optional[str] = Field(None, min_length=5, alias="documentNumber")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    is_active: Optional[bool] = Field(None, alias="isActive")

    class Config:
        populate_by_name = True


class AdminPasswordSet(BaseModel):
    """Password set by an administrator; length is checked by the endpoint."""
    new_password: str = Field(..., alias="newPassword")

    class Config:
        populate_by_name = True


class PasswordChange(BaseModel):
    """A user changing their own password."""
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")

    class Config:
        populate_by_name = True


class PasswordResetRequest(BaseModel):
    email: EmailStr = Field(..., description="Account email")


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., description="Reset token")
    new_password: str = Field(..., min_length=6, alias="newPassword")

    class Config:
        populate_by_name = True
