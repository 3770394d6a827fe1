from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.schemas.base import BaseResponseSchema


class SignupRequest(BaseModel):
    """Signup request schema."""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password")
    password_confirm: str = Field(..., min_length=8)
    phone: Optional[str] = Field(None, max_length=20)

    # Default issuer details for new documents
    company_name: Optional[str] = Field(None, max_length=200)
    company_address: Optional[str] = None
    company_gst_number: Optional[str] = Field(None, max_length=15)
    company_pan_number: Optional[str] = Field(None, max_length=10)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    """Login request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class UserResponse(BaseResponseSchema):
    id: UUID
    email: str
    name: str
    phone: Optional[str] = None
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    company_gst_number: Optional[str] = None
    company_pan_number: Optional[str] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    """Token response schema."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration in seconds")
    user: UserResponse
