from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("email", name="uq_user_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str
    display_name: str
    role: str = Field(default="member")  # "admin" | "organizer" | "member"
    club_id: Optional[int] = Field(default=None, foreign_key="club.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
