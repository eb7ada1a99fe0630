"""Pydantic schemas for registration and login."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """New account details."""

    email: str = Field(
        ...,
        min_length=3,
        max_length=320,
        pattern=r"^[^@\s]+@[^@\s]+$",
        description="Login email; matched case-insensitively.",
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=256,
        description="Plain-text password; only a bcrypt digest is stored.",
    )
    tier: str = Field(
        ...,
        max_length=64,
        description="Subscription tier: 'Tier1' or 'Tier2'. Any other value yields a zero quota.",
        examples=["Tier1"],
    )


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=320)
    password: str = Field(..., max_length=256)


class MessageResponse(BaseModel):
    message: str
