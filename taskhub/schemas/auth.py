"""
TaskHub Backend — Auth Request/Response Schemas
=================================================

Token fields are exposed in camelCase (`accessToken`, `refreshToken`) through
aliases; Python code uses the snake_case names (populate_by_name).
"""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str = Field(examples=["Ada Lovelace"])
    email: str = Field(examples=["user@example.com"])
    password: str = Field(examples=["StrongPassword123"], description="6 characters to 72 bytes")


class LoginRequest(BaseModel):
    email: str = Field(examples=["user@example.com"])
    password: str = Field(examples=["StrongPassword123"])


class RefreshRequest(BaseModel):
    refresh_token: str = Field(alias="refreshToken")


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"


class TokenResponse(BaseModel):
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    model_config = {"populate_by_name": True}
