from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AdminCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str
    role: Literal["admin", "voter"] = "voter"


class TokenOut(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    role: str
    user: dict
