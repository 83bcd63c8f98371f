"""Account-related DTOs shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, EmailStr


class Account(BaseModel):
    username: str
    email: EmailStr
    city: str
    country: str
    created_at: datetime | None = None
    enabled: bool = False
