from pydantic import BaseModel, EmailStr
from typing import Optional
from schemas.return_schemas import ReturnUser


class CreateUserRequest(BaseModel):  # registration schema
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserLogin(BaseModel):  # login schema
    email: Optional[str] = None
    password: Optional[str] = None


class AuthResponse(BaseModel):
    message: str
    user: ReturnUser
    token: str


class CurrentUserResponse(BaseModel):
    user: ReturnUser
