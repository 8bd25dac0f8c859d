from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.backend.models.task import utcnow


class User(BaseModel):
    id: int
    username: str
    email: str
    password_hash: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_login_at: Optional[datetime] = None
