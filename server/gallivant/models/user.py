"""User model definition."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .tour import Tour


class User(Base):
    """User entity; creates tours and writes reviews."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Tour the user is currently walking; cleared if that tour goes away
    current_tour_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("tours.id", ondelete="SET NULL", name="fk_users_current_tour_id_tours", use_alter=True),
        nullable=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    tours_created: Mapped[list["Tour"]] = relationship(
        "Tour",
        back_populates="creator",
        foreign_keys="Tour.created_by_user_id",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
