"""Tour model definition."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .associations import TourWaypoint
    from .user import User


class Tour(Base):
    """Tour entity: an (optionally ordered) collection of waypoints."""

    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    created_by_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT", name="fk_tours_created_by_user_id_users"),
        nullable=False,
        index=True
    )

    # Tour information
    tour_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    neighborhood: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_ordered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Cached aggregates
    rating_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_waypoints: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Map starting point
    start_long: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_lat: Mapped[float | None] = mapped_column(Float, nullable=True)

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

    __table_args__ = (
        CheckConstraint("completions >= 0", name="ck_tour_completions_non_negative"),
        CheckConstraint("total_waypoints >= 0", name="ck_tour_total_waypoints_non_negative"),
        CheckConstraint("start_long IS NULL OR (start_long BETWEEN -180 AND 180)", name="ck_tour_start_long_range"),
        CheckConstraint("start_lat IS NULL OR (start_lat BETWEEN -90 AND 90)", name="ck_tour_start_lat_range"),
    )

    # Relationships
    creator: Mapped["User"] = relationship(
        "User",
        back_populates="tours_created",
        foreign_keys=[created_by_user_id],
    )
    waypoint_links: Mapped[list["TourWaypoint"]] = relationship(
        "TourWaypoint",
        back_populates="tour",
        order_by="TourWaypoint.order",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Tour(id={self.id}, tour_name='{self.tour_name}', total_waypoints={self.total_waypoints})>"
