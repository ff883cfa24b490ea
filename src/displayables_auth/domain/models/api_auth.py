"""Authentication API Models

Purpose: Request/response models for authentication endpoints

Request fields are optional on purpose: missing or malformed credentials are
reported through the core's validation errors (with localized descriptions)
instead of framework-level 422 responses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Local login credentials (ignored for external providers)"""

    username: Optional[str] = Field(None, examples=["alice"])
    password: Optional[str] = Field(None, examples=["Secret123"])


class RegisterRequest(BaseModel):
    """Local account registration"""

    username: Optional[str] = Field(None, examples=["alice"])
    password: Optional[str] = Field(None, examples=["Secret123"])
    name: Optional[str] = Field(None, max_length=255, examples=["Alice"])


class PasswordUpdateRequest(BaseModel):
    """Local password change"""

    model_config = ConfigDict(populate_by_name=True)

    old_password: Optional[str] = Field(None, alias="oldPassword")
    password: Optional[str] = None


class SessionBody(BaseModel):
    """Successful login body (token travels in the Authorization header)"""

    message: str
    username: str
    id: int
    provider: str
    name: str


class RefreshBody(BaseModel):
    """Successful refresh body"""

    message: str
    username: str
    id: Optional[int] = None


class RegisterBody(BaseModel):
    """Successful registration body"""

    message: str
    username: str
    id: int


class UserInfoResponse(BaseModel):
    """Basic information about the authenticated user"""

    id: Optional[int] = None
    name: str
    username: str
    provider: str


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Structured error response"""

    error: str = Field(..., description="Machine-readable category")
    description: str = Field(..., description="Localized, human-readable description")
    detail: Optional[str] = Field(None, description="Diagnostic message for internal errors")
