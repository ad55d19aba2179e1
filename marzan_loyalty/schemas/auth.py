from typing import Optional

from pydantic import BaseModel, Field


class SignupIn(BaseModel):
    email: str = Field(max_length=255)
    password: str
    full_name: str = Field(max_length=120)
    phone: str = Field(max_length=30)


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class EmailIn(BaseModel):
    email: str


class ResetPasswordIn(BaseModel):
    token: str
    password: str


class UpdatePasswordIn(BaseModel):
    password: str


class TokenIn(BaseModel):
    token: str


class MessageOut(BaseModel):
    message: str
    sent: Optional[bool] = None
