"""Pydantic schemas for registration and login."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CustomerRegister(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class CustomerLogin(BaseModel):
    phone: str
    password: str


class DriverLogin(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    id: str
    name: str
    phone: str
    role: str
