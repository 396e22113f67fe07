"""
Join tables for every many-to-many relation in the schema.

Each association is a mapped class with its own surrogate key and named
foreign keys. Parent deletion cascades into the join rows only; the
parents themselves are never removed through a join.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .tour import Tour
    from .waypoint import Waypoint


def _fk(target: str, table: str, column: str):
    """Cascading foreign key with a deterministic constraint name."""
    return ForeignKey(
        f"{target}.id",
        ondelete="CASCADE",
        name=f"fk_{table}_{column}_{target}",
    )


class UserWaypoint(Base):
    """Users to Waypoints: a user's progress at a waypoint."""

    __tablename__ = "users_waypoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, _fk("users", __tablename__, "user_id"), nullable=False, index=True)
    waypoint_id: Mapped[int] = mapped_column(Integer, _fk("waypoints", __tablename__, "waypoint_id"), nullable=False, index=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "waypoint_id", name="uq_users_waypoints_user_waypoint"),
    )


class ImageWaypoint(Base):
    """Images to Waypoints."""

    __tablename__ = "images_waypoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_id: Mapped[int] = mapped_column(Integer, _fk("images", __tablename__, "image_id"), nullable=False, index=True)
    waypoint_id: Mapped[int] = mapped_column(Integer, _fk("waypoints", __tablename__, "waypoint_id"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("image_id", "waypoint_id", name="uq_images_waypoints_image_waypoint"),
    )


class WaypointCategory(Base):
    """Waypoints to Categories."""

    __tablename__ = "waypoints_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    waypoint_id: Mapped[int] = mapped_column(Integer, _fk("waypoints", __tablename__, "waypoint_id"), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(Integer, _fk("categories", __tablename__, "category_id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("waypoint_id", "category_id", name="uq_waypoints_categories_waypoint_category"),
    )


class TourWaypoint(Base):
    """
    Tours to Waypoints: places a waypoint in a tour's sequence.

    ``order`` is 0-based and dense per tour. Uniqueness of positions is kept
    by the service layer rather than a constraint, so a reorder can swap
    positions row by row inside one transaction.
    """

    __tablename__ = "tours_waypoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tour_id: Mapped[int] = mapped_column(Integer, _fk("tours", __tablename__, "tour_id"), nullable=False)
    waypoint_id: Mapped[int] = mapped_column(Integer, _fk("waypoints", __tablename__, "waypoint_id"), nullable=False, index=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("tour_id", "waypoint_id", name="uq_tours_waypoints_tour_waypoint"),
        CheckConstraint('"order" >= 0', name="ck_tours_waypoints_order_non_negative"),
        Index("ix_tours_waypoints_tour_id_order", "tour_id", "order"),
    )

    # Relationships
    tour: Mapped["Tour"] = relationship("Tour", back_populates="waypoint_links")
    waypoint: Mapped["Waypoint"] = relationship("Waypoint", back_populates="tour_links")

    def __repr__(self) -> str:
        return f"<TourWaypoint(tour_id={self.tour_id}, waypoint_id={self.waypoint_id}, order={self.order})>"


class CompletedTour(Base):
    """Completed-Tours: a user finished a tour."""

    __tablename__ = "completed_tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tour_id: Mapped[int] = mapped_column(Integer, _fk("tours", __tablename__, "tour_id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, _fk("users", __tablename__, "user_id"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "tour_id", name="uq_completed_tours_user_tour"),
    )


class ImageReview(Base):
    """Images to Reviews."""

    __tablename__ = "images_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(Integer, _fk("reviews", __tablename__, "review_id"), nullable=False, index=True)
    image_id: Mapped[int] = mapped_column(Integer, _fk("images", __tablename__, "image_id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("image_id", "review_id", name="uq_images_reviews_image_review"),
    )


class ImageTour(Base):
    """Images to Tours."""

    __tablename__ = "images_tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tour_id: Mapped[int] = mapped_column(Integer, _fk("tours", __tablename__, "tour_id"), nullable=False, index=True)
    image_id: Mapped[int] = mapped_column(Integer, _fk("images", __tablename__, "image_id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("image_id", "tour_id", name="uq_images_tours_image_tour"),
    )


class ReviewTour(Base):
    """Reviews to Tours."""

    __tablename__ = "reviews_tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(Integer, _fk("reviews", __tablename__, "review_id"), nullable=False, index=True)
    tour_id: Mapped[int] = mapped_column(Integer, _fk("tours", __tablename__, "tour_id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("review_id", "tour_id", name="uq_reviews_tours_review_tour"),
    )


class ReviewWaypoint(Base):
    """Reviews to Waypoints."""

    __tablename__ = "reviews_waypoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(Integer, _fk("reviews", __tablename__, "review_id"), nullable=False, index=True)
    waypoint_id: Mapped[int] = mapped_column(Integer, _fk("waypoints", __tablename__, "waypoint_id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("review_id", "waypoint_id", name="uq_reviews_waypoints_review_waypoint"),
    )


class ChatTour(Base):
    """Chats to Tours."""

    __tablename__ = "chats_tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[int] = mapped_column(Integer, _fk("chats", __tablename__, "chat_id"), nullable=False, index=True)
    tour_id: Mapped[int] = mapped_column(Integer, _fk("tours", __tablename__, "tour_id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("chat_id", "tour_id", name="uq_chats_tours_chat_tour"),
    )
