"""Waypoint model definition."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .associations import TourWaypoint


class Waypoint(Base):
    """
    Waypoint entity: a single geographic point of interest.

    Coordinates are fixed at creation; membership in tours lives entirely
    in the ``tours_waypoints`` join table.
    """

    __tablename__ = "waypoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer: Mapped[str | None] = mapped_column(String(255), nullable=True)

    long: Mapped[float] = mapped_column(Float, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)

    rating_avg: Mapped[float | None] = mapped_column(Float, nullable=True)

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
        CheckConstraint("long BETWEEN -180 AND 180", name="ck_waypoint_long_range"),
        CheckConstraint("lat BETWEEN -90 AND 90", name="ck_waypoint_lat_range"),
    )

    # Relationships
    tour_links: Mapped[list["TourWaypoint"]] = relationship(
        "TourWaypoint",
        back_populates="waypoint",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Waypoint(id={self.id}, long={self.long}, lat={self.lat})>"
