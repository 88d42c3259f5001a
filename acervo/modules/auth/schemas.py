from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional


class Identity(BaseModel):
    """Authenticated principal as issued by Supabase Auth. Read-only to the access core."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
