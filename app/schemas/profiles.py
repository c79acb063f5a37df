"""Schemas for profile endpoints."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    uid: str
    username: str | None = None


class UsernameUpdateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)


__all__ = ["ProfileResponse", "UsernameUpdateRequest"]
